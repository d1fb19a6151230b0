# mfgops/services/product.py

from typing import Dict, List

from sqlmodel import Session, select

from ..errors import NotFoundError
from ..models.enums import Status
from ..models.master import Product
from ..models.production import ProductionOrder
from ..utils.helpers import iso, to_number
from .production_order import serialize_production_order

OPEN_PRODUCTION_STATUSES = (Status.PENDING, Status.IN_PROGRESS)
# How many open production orders the product list shows per product
OPEN_ORDERS_PER_PRODUCT = 5


def _product_dict(p: Product) -> Dict:
    return {
        "id": p.id,
        "sku": p.sku,
        "name": p.name,
        "current_stock": p.current_stock,
        "minimum_stock_level": p.minimum_stock_level,
        "lead_time": p.lead_time,
        "selling_price": to_number(p.selling_price),
        "status": p.status.value,
        "created_at": iso(p.created_at),
    }


def list_products(session: Session) -> List[Dict]:
    """Products by name, each with its most recent open production orders."""
    products = session.exec(select(Product).order_by(Product.name)).all()
    open_orders = session.exec(
        select(ProductionOrder)
        .where(ProductionOrder.status.in_(OPEN_PRODUCTION_STATUSES))
        .order_by(ProductionOrder.created_at.desc())
    ).all()

    by_product: Dict[str, List[Dict]] = {}
    for po in open_orders:
        bucket = by_product.setdefault(po.product_id, [])
        if len(bucket) < OPEN_ORDERS_PER_PRODUCT:
            bucket.append({
                "id": po.id,
                "status": po.status.value,
                "quantity": po.quantity,
                "due_date": iso(po.due_date),
            })

    return [
        {**_product_dict(p), "production_orders": by_product.get(p.id, [])}
        for p in products
    ]


def get_product(session: Session, product_id: str) -> Product:
    product = session.get(Product, product_id)
    if not product:
        raise NotFoundError("Product not found")
    return product


def product_detail(session: Session, product_id: str) -> Dict:
    return _product_dict(get_product(session, product_id))


def production_orders_for_product(session: Session, product_id: str) -> List[Dict]:
    """Every production order of a product, newest first, with its operations."""
    get_product(session, product_id)
    orders = session.exec(
        select(ProductionOrder)
        .where(ProductionOrder.product_id == product_id)
        .order_by(ProductionOrder.created_at.desc())
    ).all()
    return [serialize_production_order(session, po) for po in orders]
