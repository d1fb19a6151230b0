"""Manufacturing operations back office: customer orders, stock checks and production orders."""

__version__ = "0.1.0"
