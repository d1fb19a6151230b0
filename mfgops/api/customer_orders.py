# mfgops/api/customer_orders.py

from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..database import get_session
from ..schemas import CreateCustomerOrderInput, InventoryCheckRequest, UpdateCustomerOrderInput
from ..services import customer_order as orders
from ..services.inventory import LineRequest, check_inventory_levels
from ..services.production_order import serialize_production_order
from ..services.view_cache import CUSTOMER_ORDERS, ViewCache
from .deps import get_current_user_id, get_view_cache

router = APIRouter(prefix="/api/customer-orders", tags=["customer-orders"])


@router.get("")
def list_customer_orders(
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
):
    return cache.get_or_compute(CUSTOMER_ORDERS, lambda: orders.list_customer_orders(session))


@router.post("", status_code=201)
def create_customer_order(
    body: CreateCustomerOrderInput,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    """
    Create a customer order and the production orders its lines require.

    Response:
      - customer_order: the stored order with lines
      - production_orders: production orders actually created
      - production_outcomes: one entry per flagged product, SUCCESS or FAILED,
        so partial success is visible to the caller
    """
    result = orders.create_customer_order(session, body, cache=cache, user_id=user_id)
    return {
        "customer_order": orders.serialize_customer_order(session, result.customer_order),
        "production_orders": [
            serialize_production_order(session, po) for po in result.production_orders
        ],
        "production_outcomes": [o.to_dict() for o in result.production_outcomes],
    }


@router.post("/inventory-check")
def inventory_check(body: InventoryCheckRequest, session: Session = Depends(get_session)):
    """
    Dry run of the stock check for a set of lines. Lines are checked one by
    one; send one line per product to check total demand.
    """
    lines = [LineRequest(product_id=l.product_id, quantity=l.quantity) for l in body.order_lines]
    return check_inventory_levels(session, lines).to_dict()


@router.get("/{order_id}")
def get_customer_order(order_id: str, session: Session = Depends(get_session)):
    order = orders.get_customer_order(session, order_id)
    return orders.serialize_customer_order(session, order)


@router.patch("/{order_id}")
def update_customer_order(
    order_id: str,
    body: UpdateCustomerOrderInput,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    order = orders.update_customer_order(session, order_id, body, cache=cache, user_id=user_id)
    return orders.serialize_customer_order(session, order)


@router.delete("/{order_id}")
def delete_customer_order(
    order_id: str,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    orders.delete_customer_order(session, order_id, cache=cache, user_id=user_id)
    return {"status": "deleted", "id": order_id}
