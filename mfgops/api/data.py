# mfgops/api/data.py

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from ..database import get_session
from ..models.events import Event
from ..models.master import Customer, Product, WorkCenter
from ..utils.helpers import to_number

router = APIRouter(prefix="/api/data", tags=["data"])


# ---------- master lookups ----------

@router.get("/customers")
def get_customers(session: Session = Depends(get_session)):
    customers = session.exec(select(Customer).order_by(Customer.name)).all()
    return [{"id": c.id, "name": c.name, "email": c.email} for c in customers]


@router.get("/products")
def get_products(session: Session = Depends(get_session)):
    """
    Products with the stock figures the order dialog shows next to each line.
    """
    products = session.exec(select(Product).order_by(Product.name)).all()
    return [
        {
            "id": p.id,
            "sku": p.sku,
            "name": p.name,
            "current_stock": p.current_stock,
            "minimum_stock_level": p.minimum_stock_level,
            "lead_time": p.lead_time,
            "selling_price": to_number(p.selling_price),
            "status": p.status.value,
        }
        for p in products
    ]


@router.get("/work_centers")
def get_work_centers(session: Session = Depends(get_session)):
    centers = session.exec(select(WorkCenter).order_by(WorkCenter.name)).all()
    return centers


# ---------- events (event log) ----------

@router.get("/events")
def get_events(session: Session = Depends(get_session), limit: int = 100):
    """
    Recent events from the Event table (used as event log).
    """
    events = session.exec(
        select(Event).order_by(Event.event_date.desc()).limit(limit)
    ).all()
    return events
