# mfgops/services/production_order.py

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.enums import NeedReason, Outcome, Priority, Status
from ..models.master import Customer, Product, WorkCenter
from ..models.production import Operation, ProductionOrder
from ..models.sales import CustomerOrder
from ..schemas import CreateProductionOrderInput, OperationInput, UpdateProductionOrderInput
from ..utils.helpers import as_utc, iso, to_number, utcnow
from .access import require_user
from .event_logger import log_event
from .inventory import NeedEntry
from .view_cache import DASHBOARD, PRODUCTION_ORDERS, ViewCache

logger = logging.getLogger(__name__)

# Customer orders in these states can still get a production order linked
LINKABLE_ORDER_STATUSES = (Status.PENDING, Status.IN_PROGRESS, Status.ACTIVE)


@dataclass
class ProductionOutcome:
    """What happened to one automatic production order attempt."""
    product_id: str
    required_quantity: int
    reason: NeedReason
    outcome: Outcome
    production_order: Optional[ProductionOrder] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "product_id": self.product_id,
            "required_quantity": self.required_quantity,
            "reason": self.reason.value,
            "outcome": self.outcome.value,
            "production_order_id": self.production_order.id if self.production_order else None,
            "error": self.error,
        }


def _revalidate(cache: Optional[ViewCache]) -> None:
    if cache is not None:
        cache.revalidate(PRODUCTION_ORDERS, DASHBOARD)


# ---------- lookups ----------

def first_active_work_center(session: Session) -> Optional[WorkCenter]:
    # No capability matching: any active work center will do
    return session.exec(
        select(WorkCenter)
        .where(WorkCenter.status == Status.ACTIVE)
        .order_by(WorkCenter.name)
    ).first()


def available_products(session: Session) -> List[Dict]:
    products = session.exec(
        select(Product).where(Product.status == Status.ACTIVE).order_by(Product.name)
    ).all()
    return [
        {"id": p.id, "name": p.name, "sku": p.sku, "current_stock": p.current_stock}
        for p in products
    ]


def available_work_centers(session: Session) -> List[Dict]:
    centers = session.exec(
        select(WorkCenter).where(WorkCenter.status == Status.ACTIVE).order_by(WorkCenter.name)
    ).all()
    return [
        {"id": wc.id, "name": wc.name, "capacity_per_hour": wc.capacity_per_hour}
        for wc in centers
    ]


def available_customer_orders(session: Session) -> List[Dict]:
    """Open customer orders a production order can be linked to, newest first."""
    rows = session.exec(
        select(CustomerOrder, Customer)
        .join(Customer, CustomerOrder.customer_id == Customer.id)
        .where(CustomerOrder.status.in_(LINKABLE_ORDER_STATUSES))
        .order_by(CustomerOrder.created_at.desc())
    ).all()
    return [
        {
            "id": order.id,
            "order_number": order.order_number,
            "customer": {"name": customer.name},
            "required_date": iso(order.required_date),
        }
        for order, customer in rows
    ]


def get_production_order(session: Session, production_order_id: str) -> ProductionOrder:
    order = session.get(ProductionOrder, production_order_id)
    if not order:
        raise NotFoundError("Production order not found")
    return order


def serialize_production_order(session: Session, order: ProductionOrder) -> Dict:
    product = session.get(Product, order.product_id)
    customer_order = (
        session.get(CustomerOrder, order.customer_order_id) if order.customer_order_id else None
    )
    ops = session.exec(
        select(Operation, WorkCenter)
        .join(WorkCenter, Operation.work_center_id == WorkCenter.id)
        .where(Operation.production_order_id == order.id)
        .order_by(Operation.start_time)
    ).all()

    return {
        "id": order.id,
        "product_id": order.product_id,
        "product": {"id": product.id, "name": product.name, "sku": product.sku} if product else None,
        "quantity": order.quantity,
        "start_date": iso(order.start_date),
        "due_date": iso(order.due_date),
        "priority": order.priority.value,
        "status": order.status.value,
        "customer_order_id": order.customer_order_id,
        "customer_order": (
            {"id": customer_order.id, "order_number": customer_order.order_number}
            if customer_order else None
        ),
        "notes": order.notes,
        "operations": [
            {
                "id": op.id,
                "work_center_id": op.work_center_id,
                "work_center": {"name": wc.name},
                "start_time": iso(op.start_time),
                "end_time": iso(op.end_time),
                "cost": to_number(op.cost),
                "status": op.status.value,
                "notes": op.notes,
            }
            for op, wc in ops
        ],
        "created_at": iso(order.created_at),
        "updated_at": iso(order.updated_at),
    }


def list_production_orders(session: Session) -> List[Dict]:
    orders = session.exec(
        select(ProductionOrder).order_by(ProductionOrder.status, ProductionOrder.start_date)
    ).all()
    return [serialize_production_order(session, o) for o in orders]


# ---------- automatic production orders ----------

def _need_note(order_number: str, need: NeedEntry) -> str:
    if need.reason == NeedReason.INSUFFICIENT_STOCK:
        detail = f"stock short by {need.required_quantity} units"
    else:
        detail = f"{need.required_quantity} units needed to restore minimum stock level"
    return (
        f"Auto-generated for customer order {order_number}. "
        f"Reason: {need.reason.value} ({detail})."
    )


def trigger_production_orders(
    session: Session,
    customer_order: CustomerOrder,
    needs: Sequence[NeedEntry],
    cache: Optional[ViewCache] = None,
    user_id: Optional[str] = None,
) -> List[ProductionOutcome]:
    """
    Create one HIGH priority production order per need, each with a single
    operation on the first active work center.

      start_date = now
      due_date   = customer order required_date - 1 day

    Every attempt is committed on its own. A failed attempt is rolled back,
    logged and reported as a FAILED outcome; the remaining needs are still
    processed. Nothing is retried or compensated.
    """
    outcomes: List[ProductionOutcome] = []
    if not needs:
        return outcomes

    order_id = customer_order.id
    order_number = customer_order.order_number
    due_date = customer_order.required_date - timedelta(days=1)

    for need in needs:
        product_id = need.product_id
        try:
            work_center = first_active_work_center(session)
            if work_center is None:
                raise NotFoundError("No active work center available")

            start_date = utcnow()
            po = ProductionOrder(
                product_id=product_id,
                quantity=need.required_quantity,
                start_date=start_date,
                due_date=due_date,
                priority=Priority.HIGH,
                customer_order_id=order_id,
                notes=_need_note(order_number, need),
                status=Status.PENDING,
                created_by=user_id,
            )
            session.add(po)
            session.flush()

            # Cost is a placeholder until the operation is costed
            session.add(
                Operation(
                    production_order_id=po.id,
                    work_center_id=work_center.id,
                    start_time=start_date,
                    end_time=due_date,
                    cost=0,
                    status=Status.PENDING,
                    created_by=user_id,
                )
            )
            log_event(
                session,
                "PRODUCTION_ORDER_CREATED",
                f"Production order {po.id} for {need.required_quantity} of {product_id} "
                f"({need.reason.value}) from {order_number}",
                {"customer_order_id": order_id, "work_center_id": work_center.id},
            )
            session.commit()
            session.refresh(po)

            outcomes.append(
                ProductionOutcome(
                    product_id=product_id,
                    required_quantity=need.required_quantity,
                    reason=need.reason,
                    outcome=Outcome.SUCCESS,
                    production_order=po,
                )
            )
        except Exception as exc:  # one failed attempt must not fail the customer order
            session.rollback()
            logger.error(
                "Failed to create production order for product %s (customer order %s): %s",
                product_id, order_number, exc, exc_info=True,
            )
            outcomes.append(
                ProductionOutcome(
                    product_id=product_id,
                    required_quantity=need.required_quantity,
                    reason=need.reason,
                    outcome=Outcome.FAILED,
                    error=str(exc),
                )
            )
            _record_failure(session, order_number, product_id, str(exc))

    _revalidate(cache)
    return outcomes


def _record_failure(session: Session, order_number: str, product_id: str, error: str) -> None:
    try:
        log_event(
            session,
            "PRODUCTION_ORDER_FAILED",
            f"Could not create production order for {product_id} from {order_number}: {error}",
        )
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.warning("Could not record failure event for %s", product_id, exc_info=True)


# ---------- manual production orders ----------

def _require_product(session: Session, product_id: str) -> Product:
    product = session.get(Product, product_id)
    if not product:
        raise ValidationError(f"Product {product_id} not found")
    return product


def _require_customer_order(session: Session, customer_order_id: str) -> CustomerOrder:
    order = session.get(CustomerOrder, customer_order_id)
    if not order:
        raise NotFoundError("Customer order not found")
    return order


def _require_work_center(session: Session, work_center_id: str) -> WorkCenter:
    wc = session.get(WorkCenter, work_center_id)
    if not wc:
        raise ValidationError(f"Work center {work_center_id} not found")
    return wc


def _check_window(start: datetime, end: datetime, what: str) -> None:
    if end < start:
        raise ValidationError(f"{what} cannot end before it starts")


def _new_operation(session: Session, production_order_id: str, data: OperationInput,
                   user_id: str) -> Operation:
    _require_work_center(session, data.work_center_id)
    start, end = as_utc(data.start_time), as_utc(data.end_time)
    _check_window(start, end, "Operation")
    return Operation(
        production_order_id=production_order_id,
        work_center_id=data.work_center_id,
        start_time=start,
        end_time=end,
        cost=data.cost or 0,
        status=Status.PENDING,
        notes=data.notes or None,
        created_by=user_id,
    )


def create_production_order(
    session: Session,
    data: CreateProductionOrderInput,
    cache: Optional[ViewCache] = None,
    user_id: Optional[str] = None,
) -> ProductionOrder:
    user_id = require_user(user_id)

    if data.quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    _require_product(session, data.product_id)
    if data.customer_order_id:
        _require_customer_order(session, data.customer_order_id)

    start, due = as_utc(data.start_date), as_utc(data.due_date)
    _check_window(start, due, "Production order")

    order = ProductionOrder(
        product_id=data.product_id,
        quantity=data.quantity,
        start_date=start,
        due_date=due,
        priority=data.priority,
        customer_order_id=data.customer_order_id or None,
        notes=data.notes or None,
        status=Status.PENDING,
        created_by=user_id,
    )
    session.add(order)
    session.flush()

    for op in data.operations:
        session.add(_new_operation(session, order.id, op, user_id))

    log_event(session, "PRODUCTION_ORDER_CREATED",
              f"Production order {order.id} for {data.quantity} of {data.product_id}")
    session.commit()
    session.refresh(order)

    _revalidate(cache)
    return order


def update_production_order(
    session: Session,
    production_order_id: str,
    data: UpdateProductionOrderInput,
    cache: Optional[ViewCache] = None,
    user_id: Optional[str] = None,
) -> ProductionOrder:
    user_id = require_user(user_id)
    order = get_production_order(session, production_order_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("product_id"):
        _require_product(session, changes["product_id"])
        order.product_id = changes["product_id"]
    if changes.get("quantity") is not None:
        if changes["quantity"] < 1:
            raise ValidationError("Quantity must be at least 1")
        order.quantity = changes["quantity"]
    if changes.get("start_date"):
        order.start_date = as_utc(changes["start_date"])
    if changes.get("due_date"):
        order.due_date = as_utc(changes["due_date"])
    _check_window(order.start_date, order.due_date, "Production order")
    if changes.get("priority"):
        order.priority = changes["priority"]
    if changes.get("status"):
        order.status = changes["status"]
    if "customer_order_id" in changes:
        # Empty value unlinks the customer order
        if changes["customer_order_id"]:
            _require_customer_order(session, changes["customer_order_id"])
        order.customer_order_id = changes["customer_order_id"] or None
    if "notes" in changes:
        order.notes = changes["notes"] or None

    order.modified_by = user_id
    order.updated_at = utcnow()
    session.add(order)
    session.commit()
    session.refresh(order)

    _revalidate(cache)
    return order


def delete_production_order(
    session: Session,
    production_order_id: str,
    cache: Optional[ViewCache] = None,
    user_id: Optional[str] = None,
) -> None:
    require_user(user_id)
    order = get_production_order(session, production_order_id)

    for op in session.exec(
        select(Operation).where(Operation.production_order_id == order.id)
    ).all():
        session.delete(op)
    session.delete(order)
    log_event(session, "PRODUCTION_ORDER_DELETED", f"Production order {production_order_id} deleted")
    session.commit()

    _revalidate(cache)


def add_operation(
    session: Session,
    production_order_id: str,
    data: OperationInput,
    cache: Optional[ViewCache] = None,
    user_id: Optional[str] = None,
) -> Operation:
    user_id = require_user(user_id)
    get_production_order(session, production_order_id)

    op = _new_operation(session, production_order_id, data, user_id)
    session.add(op)
    session.commit()
    session.refresh(op)

    _revalidate(cache)
    return op


def delete_operation(
    session: Session,
    operation_id: int,
    cache: Optional[ViewCache] = None,
    user_id: Optional[str] = None,
) -> str:
    """Delete a not-yet-started operation; returns its production order id."""
    require_user(user_id)
    op = session.get(Operation, operation_id)
    if not op:
        raise NotFoundError("Operation not found")
    if op.status in (Status.IN_PROGRESS, Status.COMPLETED):
        raise ConflictError("Cannot delete an operation that is in progress or completed")

    production_order_id = op.production_order_id
    session.delete(op)
    session.commit()

    _revalidate(cache)
    return production_order_id


def update_operation_status(
    session: Session,
    operation_id: int,
    status: Status,
    cache: Optional[ViewCache] = None,
    user_id: Optional[str] = None,
) -> Operation:
    user_id = require_user(user_id)
    op = session.get(Operation, operation_id)
    if not op:
        raise NotFoundError("Operation not found")

    op.status = status
    op.modified_by = user_id
    session.add(op)
    session.commit()
    session.refresh(op)

    _revalidate(cache)
    return op


def link_customer_order(
    session: Session,
    production_order_id: str,
    customer_order_id: str,
    cache: Optional[ViewCache] = None,
    user_id: Optional[str] = None,
) -> ProductionOrder:
    user_id = require_user(user_id)
    order = get_production_order(session, production_order_id)
    customer_order = _require_customer_order(session, customer_order_id)

    if order.customer_order_id:
        raise ConflictError("Production order is already linked to a customer order")

    order.customer_order_id = customer_order.id
    order.modified_by = user_id
    order.updated_at = utcnow()
    session.add(order)
    log_event(session, "PRODUCTION_ORDER_LINKED",
              f"Production order {order.id} linked to {customer_order.order_number}")
    session.commit()
    session.refresh(order)

    _revalidate(cache)
    return order
