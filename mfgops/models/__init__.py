from .enums import Status, Priority, NeedReason, Outcome
from .master import Customer, Product, WorkCenter
from .sales import CustomerOrder, OrderLine
from .production import ProductionOrder, Operation
from .events import Event

__all__ = [
    "Status",
    "Priority",
    "NeedReason",
    "Outcome",
    "Customer",
    "Product",
    "WorkCenter",
    "CustomerOrder",
    "OrderLine",
    "ProductionOrder",
    "Operation",
    "Event",
]
