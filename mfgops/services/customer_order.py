# mfgops/services/customer_order.py

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from dateutil import parser as dateparser
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..config import settings
from ..errors import NotFoundError, OrderNumberConflict, ServiceError, ValidationError
from ..models.enums import Outcome, Status
from ..models.master import Customer, Product
from ..models.production import ProductionOrder
from ..models.sales import CustomerOrder, OrderLine
from ..schemas import CreateCustomerOrderInput, OrderLineInput, UpdateCustomerOrderInput
from ..utils.helpers import as_utc, iso, to_number, utcnow
from .access import require_user
from .event_logger import log_event
from .inventory import LineRequest, aggregate_lines, check_inventory_levels
from .order_numbers import next_order_number
from .production_order import ProductionOutcome, trigger_production_orders
from .view_cache import CUSTOMER_ORDERS, DASHBOARD, PRODUCTION_ORDERS, ViewCache

logger = logging.getLogger(__name__)

# YYYY-MM-DD or YYYYMMDD, optionally followed by a time
_FULL_DATE_RE = re.compile(r"^\d{4}-?\d{2}-?\d{2}(?:$|[T ])")


@dataclass
class CreateOrderResult:
    customer_order: CustomerOrder
    production_outcomes: List[ProductionOutcome] = field(default_factory=list)

    @property
    def production_orders(self) -> List[ProductionOrder]:
        """Production orders that were actually created."""
        return [
            o.production_order for o in self.production_outcomes
            if o.outcome == Outcome.SUCCESS and o.production_order is not None
        ]


def parse_required_date(value: Optional[str]) -> datetime:
    """
    ISO 8601 date or date-time. A bare year or year-month is rejected rather
    than filled in; dates without an offset are taken as UTC.
    """
    if value is None or not str(value).strip():
        raise ValidationError("Required date is missing")
    text = str(value).strip()
    if not _FULL_DATE_RE.match(text):
        raise ValidationError("Invalid required date format")
    try:
        parsed = dateparser.isoparse(text)
    except (ValueError, OverflowError):
        raise ValidationError("Invalid required date format")
    return as_utc(parsed)


def compute_total_amount(lines: Iterable[OrderLineInput]) -> Decimal:
    """Sum of quantity x unit price, using the prices the caller sent."""
    total = Decimal("0")
    for line in lines:
        total += Decimal(line.quantity) * Decimal(str(line.unit_price))
    return total


def _validate_lines(lines: List[OrderLineInput]) -> None:
    if not lines:
        raise ValidationError("At least one order line is required")
    for line in lines:
        if not line.product_id:
            raise ValidationError("Product is required")
        if line.quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        if Decimal(str(line.unit_price)) < 0:
            raise ValidationError("Unit price cannot be negative")


# ---------- read side ----------

def get_customer_order(session: Session, order_id: str) -> CustomerOrder:
    order = session.get(CustomerOrder, order_id)
    if not order:
        raise NotFoundError("Customer order not found")
    return order


def serialize_customer_order(session: Session, order: CustomerOrder) -> Dict:
    customer = session.get(Customer, order.customer_id)
    rows = session.exec(
        select(OrderLine, Product)
        .join(Product, OrderLine.product_id == Product.id)
        .where(OrderLine.order_id == order.id)
        .order_by(OrderLine.id)
    ).all()

    return {
        "id": order.id,
        "order_number": order.order_number,
        "customer_id": order.customer_id,
        "customer": (
            {"id": customer.id, "name": customer.name, "email": customer.email}
            if customer else None
        ),
        "order_date": iso(order.order_date),
        "required_date": iso(order.required_date),
        "status": order.status.value,
        "total_amount": to_number(order.total_amount),
        "notes": order.notes,
        "order_lines": [
            {
                "id": line.id,
                "product_id": line.product_id,
                "quantity": line.quantity,
                "unit_price": to_number(line.unit_price),
                "status": line.status.value,
                "product": {
                    "id": product.id,
                    "name": product.name,
                    "sku": product.sku,
                    "selling_price": to_number(product.selling_price),
                },
            }
            for line, product in rows
        ],
        "created_at": iso(order.created_at),
        "updated_at": iso(order.updated_at),
    }


def list_customer_orders(session: Session) -> List[Dict]:
    orders = session.exec(
        select(CustomerOrder).order_by(CustomerOrder.created_at.desc())
    ).all()
    return [serialize_customer_order(session, o) for o in orders]


# ---------- create ----------

def _insert_order(
    session: Session,
    data: CreateCustomerOrderInput,
    required_date: datetime,
    total_amount: Decimal,
    user_id: str,
    max_retries: int,
) -> CustomerOrder:
    """
    Allocate an order number and write the order with its lines.

    The allocator is a read-then-write, so a concurrent request can take the
    same number first. The unique constraint rejects the second insert and we
    allocate again, up to ``max_retries`` attempts.
    """
    for attempt in range(1, max_retries + 1):
        now = utcnow()
        order_number = next_order_number(session, now.year)
        try:
            order = CustomerOrder(
                order_number=order_number,
                customer_id=data.customer_id,
                order_date=now,
                required_date=required_date,
                status=Status.PENDING,
                total_amount=total_amount,
                notes=data.notes,
                created_by=user_id,
            )
            session.add(order)
            session.flush()

            for line in data.order_lines:
                session.add(
                    OrderLine(
                        order_id=order.id,
                        product_id=line.product_id,
                        quantity=line.quantity,
                        unit_price=Decimal(str(line.unit_price)),
                        status=Status.PENDING,
                    )
                )

            log_event(
                session,
                "CUSTOMER_ORDER_CREATED",
                f"Customer order {order_number} created with {len(data.order_lines)} line(s)",
                {"customer_id": data.customer_id, "total_amount": str(total_amount)},
            )
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            if "order_number" not in str(exc.orig):
                raise
            logger.warning(
                "Order number %s already taken (attempt %d/%d)", order_number, attempt, max_retries
            )
            continue

        session.refresh(order)
        return order

    raise OrderNumberConflict(
        f"Could not allocate a unique order number after {max_retries} attempts"
    )


def create_customer_order(
    session: Session,
    data: CreateCustomerOrderInput,
    cache: Optional[ViewCache] = None,
    user_id: Optional[str] = None,
    max_retries: Optional[int] = None,
) -> CreateOrderResult:
    """
    Book a customer order and raise production orders for what stock can't cover.

    Steps, in order:
      1. authorization and input validation (no writes yet)
      2. inventory check on per-product totals of the requested lines
      3. order number allocation and insert of the order with its lines
      4. one production order per flagged product (best effort)

    The inventory snapshot from step 2 is not re-checked in step 4.
    Validation problems raise ``ValidationError`` with a readable message;
    anything unexpected is logged and re-raised as a generic ``ServiceError``.
    """
    user_id = require_user(user_id)
    required_date = parse_required_date(data.required_date)
    _validate_lines(data.order_lines)

    if max_retries is None:
        max_retries = settings.order_number_max_retries

    try:
        if not session.get(Customer, data.customer_id):
            raise ValidationError(f"Customer {data.customer_id} not found")

        requested = aggregate_lines(
            LineRequest(product_id=line.product_id, quantity=line.quantity)
            for line in data.order_lines
        )
        check = check_inventory_levels(session, requested)
        if check.unknown_product_ids:
            raise ValidationError(
                f"Unknown product(s): {', '.join(check.unknown_product_ids)}"
            )

        total_amount = compute_total_amount(data.order_lines)
        order = _insert_order(session, data, required_date, total_amount, user_id, max_retries)
        logger.info("Created customer order %s (%d production need(s))",
                    order.order_number, len(check.needs))

        if cache is not None:
            cache.revalidate(CUSTOMER_ORDERS, DASHBOARD)

        outcomes = trigger_production_orders(session, order, check.needs, cache, user_id)
        failed = [o for o in outcomes if o.outcome == Outcome.FAILED]
        if failed:
            logger.warning("%d of %d production order(s) for %s could not be created",
                           len(failed), len(outcomes), order.order_number)

        return CreateOrderResult(customer_order=order, production_outcomes=outcomes)
    except ServiceError:
        raise
    except Exception as exc:
        session.rollback()
        logger.exception("Error creating customer order")
        raise ServiceError("Failed to create customer order") from exc


# ---------- update / delete ----------

def update_customer_order(
    session: Session,
    order_id: str,
    data: UpdateCustomerOrderInput,
    cache: Optional[ViewCache] = None,
    user_id: Optional[str] = None,
) -> CustomerOrder:
    user_id = require_user(user_id)
    order = get_customer_order(session, order_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("status"):
        order.status = changes["status"]
    if "notes" in changes:
        order.notes = changes["notes"]
    order.modified_by = user_id
    order.updated_at = utcnow()

    session.add(order)
    session.commit()
    session.refresh(order)

    if cache is not None:
        cache.revalidate(CUSTOMER_ORDERS, DASHBOARD)
    return order


def delete_customer_order(
    session: Session,
    order_id: str,
    cache: Optional[ViewCache] = None,
    user_id: Optional[str] = None,
) -> None:
    """
    Delete an order and its lines. Linked production orders are kept and
    only lose their back-reference.
    """
    require_user(user_id)
    order = get_customer_order(session, order_id)

    for line in session.exec(select(OrderLine).where(OrderLine.order_id == order.id)).all():
        session.delete(line)
    for po in session.exec(
        select(ProductionOrder).where(ProductionOrder.customer_order_id == order.id)
    ).all():
        po.customer_order_id = None
        session.add(po)
    session.flush()

    session.delete(order)
    log_event(session, "CUSTOMER_ORDER_DELETED", f"Customer order {order.order_number} deleted")
    session.commit()

    if cache is not None:
        cache.revalidate(CUSTOMER_ORDERS, PRODUCTION_ORDERS, DASHBOARD)
