from decimal import Decimal

from sqlmodel import Session, select

from .database import engine
from .models.enums import Status
from .models.master import Customer, Product, WorkCenter


def seed_master_data() -> None:
    """
    Seeds customers, products and work centers into the database.
    Skips seeding if Product table is non-empty.
    """
    with Session(engine) as session:
        # Skip if already seeded
        if session.exec(select(Product)).first():
            return

        # === Customers ===
        customers = [
            {"name": "Northwind Traders", "email": "orders@northwind.example", "phone": "+1 555 0100"},
            {"name": "Contoso Industrial", "email": "purchasing@contoso.example", "phone": "+1 555 0101"},
            {"name": "Fabrikam Assembly", "email": "buyers@fabrikam.example", "phone": "+1 555 0102"},
        ]
        session.add_all([Customer(**c) for c in customers])

        # === Products ===
        products = [
            {"sku": "GBX-100", "name": "Gearbox Housing", "current_stock": 120, "minimum_stock_level": 40, "lead_time": 5, "selling_price": Decimal("185.00")},
            {"sku": "SHF-220", "name": "Drive Shaft", "current_stock": 60, "minimum_stock_level": 25, "lead_time": 3, "selling_price": Decimal("72.50")},
            {"sku": "BRK-310", "name": "Mounting Bracket", "current_stock": 400, "minimum_stock_level": 150, "lead_time": 2, "selling_price": Decimal("9.80")},
            {"sku": "PMP-450", "name": "Hydraulic Pump", "current_stock": 15, "minimum_stock_level": 10, "lead_time": 9, "selling_price": Decimal("640.00")},
            {"sku": "VLV-505", "name": "Control Valve", "current_stock": 35, "minimum_stock_level": 30, "lead_time": 6, "selling_price": Decimal("118.00")},
            {"sku": "CPL-610", "name": "Flexible Coupling", "current_stock": 0, "minimum_stock_level": 20, "lead_time": 4, "selling_price": Decimal("44.90"), "status": Status.INACTIVE},
        ]
        session.add_all([Product(**p) for p in products])

        # === Work centers ===
        work_centers = [
            {"code": "WC-ASM", "name": "Assembly Cell A", "location": "Hall 1", "capacity_per_hour": 30},
            {"code": "WC-CNC", "name": "CNC Machining", "location": "Hall 2", "capacity_per_hour": 12},
            {"code": "WC-PNT", "name": "Paint Line", "location": "Hall 3", "capacity_per_hour": 45},
            {"code": "WC-OLD", "name": "Legacy Press", "location": "Hall 2", "capacity_per_hour": 5, "status": Status.INACTIVE},
        ]
        session.add_all([WorkCenter(**wc) for wc in work_centers])

        session.commit()
