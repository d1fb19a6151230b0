# mfgops/api/production_orders.py

from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..database import get_session
from ..schemas import (
    CreateProductionOrderInput,
    LinkCustomerOrderRequest,
    OperationInput,
    OperationStatusUpdate,
    UpdateProductionOrderInput,
)
from ..services import production_order as production
from ..services.view_cache import PRODUCTION_ORDERS, ViewCache
from ..utils.helpers import iso, to_number
from .deps import get_current_user_id, get_view_cache

router = APIRouter(prefix="/api/production-orders", tags=["production"])


def _operation_dict(op):
    return {
        "id": op.id,
        "production_order_id": op.production_order_id,
        "work_center_id": op.work_center_id,
        "start_time": iso(op.start_time),
        "end_time": iso(op.end_time),
        "cost": to_number(op.cost),
        "status": op.status.value,
        "notes": op.notes,
    }


# ---------- pickers for the create dialog ----------

@router.get("/available/products")
def available_products(session: Session = Depends(get_session)):
    return production.available_products(session)


@router.get("/available/work-centers")
def available_work_centers(session: Session = Depends(get_session)):
    return production.available_work_centers(session)


@router.get("/available/customer-orders")
def available_customer_orders(session: Session = Depends(get_session)):
    return production.available_customer_orders(session)


# ---------- production orders ----------

@router.get("")
def list_production_orders(
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
):
    return cache.get_or_compute(
        PRODUCTION_ORDERS, lambda: production.list_production_orders(session)
    )


@router.post("", status_code=201)
def create_production_order(
    body: CreateProductionOrderInput,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    order = production.create_production_order(session, body, cache=cache, user_id=user_id)
    return production.serialize_production_order(session, order)


@router.get("/{production_order_id}")
def get_production_order(production_order_id: str, session: Session = Depends(get_session)):
    order = production.get_production_order(session, production_order_id)
    return production.serialize_production_order(session, order)


@router.patch("/{production_order_id}")
def update_production_order(
    production_order_id: str,
    body: UpdateProductionOrderInput,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    order = production.update_production_order(
        session, production_order_id, body, cache=cache, user_id=user_id
    )
    return production.serialize_production_order(session, order)


@router.delete("/{production_order_id}")
def delete_production_order(
    production_order_id: str,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    production.delete_production_order(session, production_order_id, cache=cache, user_id=user_id)
    return {"status": "deleted", "id": production_order_id}


@router.post("/{production_order_id}/link")
def link_customer_order(
    production_order_id: str,
    body: LinkCustomerOrderRequest,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    order = production.link_customer_order(
        session, production_order_id, body.customer_order_id, cache=cache, user_id=user_id
    )
    return production.serialize_production_order(session, order)


# ---------- operations ----------

@router.post("/{production_order_id}/operations", status_code=201)
def add_operation(
    production_order_id: str,
    body: OperationInput,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    op = production.add_operation(session, production_order_id, body, cache=cache, user_id=user_id)
    return _operation_dict(op)


@router.patch("/operations/{operation_id}")
def update_operation_status(
    operation_id: int,
    body: OperationStatusUpdate,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    op = production.update_operation_status(
        session, operation_id, body.status, cache=cache, user_id=user_id
    )
    return _operation_dict(op)


@router.delete("/operations/{operation_id}")
def delete_operation(
    operation_id: int,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    production_order_id = production.delete_operation(
        session, operation_id, cache=cache, user_id=user_id
    )
    return {"success": True, "production_order_id": production_order_id}
