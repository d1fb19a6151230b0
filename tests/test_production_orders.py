from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import select

from mfgops.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from mfgops.models.enums import Priority, Status
from mfgops.models.production import Operation, ProductionOrder
from mfgops.models.sales import CustomerOrder
from mfgops.schemas import (
    CreateProductionOrderInput,
    OperationInput,
    UpdateProductionOrderInput,
)
from mfgops.services import production_order as production
from mfgops.services.view_cache import PRODUCTION_ORDERS

from .conftest import USER_ID

START = datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)
DUE = datetime(2025, 6, 5, 17, 0, tzinfo=timezone.utc)


@pytest.fixture
def customer_order(session, customer):
    order = CustomerOrder(
        order_number="CO-2025-0001",
        customer_id=customer.id,
        required_date=datetime(2025, 6, 10, tzinfo=timezone.utc),
    )
    session.add(order)
    session.commit()
    session.refresh(order)
    return order


def _create(session, product, work_center=None, **kwargs):
    ops = []
    if work_center is not None:
        ops.append(OperationInput(work_center_id=work_center.id, start_time=START, end_time=DUE))
    data = CreateProductionOrderInput(
        product_id=product.id, quantity=kwargs.pop("quantity", 10),
        start_date=START, due_date=DUE, operations=ops, **kwargs,
    )
    return production.create_production_order(session, data, user_id=USER_ID)


def _ops(session, po):
    return session.exec(select(Operation).where(Operation.production_order_id == po.id)).all()


def test_create_with_operations(session, make_product, work_center):
    p = make_product()

    po = _create(session, p, work_center, priority=Priority.LOW, notes="restock")

    assert po.status == Status.PENDING
    assert po.priority == Priority.LOW
    assert po.customer_order_id is None
    assert po.created_by == USER_ID
    [op] = _ops(session, po)
    assert op.work_center_id == work_center.id
    assert op.status == Status.PENDING


def test_create_requires_user(session, make_product):
    p = make_product()
    data = CreateProductionOrderInput(product_id=p.id, quantity=1, start_date=START, due_date=DUE)

    with pytest.raises(UnauthorizedError):
        production.create_production_order(session, data)
    assert session.exec(select(ProductionOrder)).all() == []


def test_create_rejects_bad_input(session, make_product):
    p = make_product()

    with pytest.raises(ValidationError, match="Quantity"):
        _create(session, p, quantity=0)
    with pytest.raises(ValidationError, match="not found"):
        production.create_production_order(
            session,
            CreateProductionOrderInput(product_id="ghost", quantity=1, start_date=START, due_date=DUE),
            user_id=USER_ID,
        )
    with pytest.raises(ValidationError, match="end before it starts"):
        production.create_production_order(
            session,
            CreateProductionOrderInput(product_id=p.id, quantity=1, start_date=DUE, due_date=START),
            user_id=USER_ID,
        )


def test_create_with_unknown_customer_order(session, make_product):
    p = make_product()

    with pytest.raises(NotFoundError, match="Customer order not found"):
        _create(session, p, customer_order_id="missing")


def test_update_fields_and_unlink(session, make_product, customer_order):
    p = make_product()
    po = _create(session, p, customer_order_id=customer_order.id)

    updated = production.update_production_order(
        session, po.id,
        UpdateProductionOrderInput(quantity=25, status=Status.IN_PROGRESS, customer_order_id=""),
        user_id="planner",
    )

    assert updated.quantity == 25
    assert updated.status == Status.IN_PROGRESS
    assert updated.customer_order_id is None
    assert updated.modified_by == "planner"


def test_update_leaves_unset_fields(session, make_product, customer_order):
    p = make_product()
    po = _create(session, p, customer_order_id=customer_order.id, notes="keep me")

    updated = production.update_production_order(
        session, po.id, UpdateProductionOrderInput(priority=Priority.CRITICAL), user_id=USER_ID
    )

    assert updated.priority == Priority.CRITICAL
    assert updated.customer_order_id == customer_order.id
    assert updated.notes == "keep me"


def test_delete_removes_operations(session, make_product, work_center, cache):
    cache.get_or_compute(PRODUCTION_ORDERS, lambda: [])
    p = make_product()
    po = _create(session, p, work_center)
    po_id = po.id

    production.delete_production_order(session, po_id, cache=cache, user_id=USER_ID)

    assert session.get(ProductionOrder, po_id) is None
    assert session.exec(select(Operation)).all() == []
    assert PRODUCTION_ORDERS not in cache


def test_delete_missing(session):
    with pytest.raises(NotFoundError, match="Production order not found"):
        production.delete_production_order(session, "nope", user_id=USER_ID)


def test_add_and_delete_operation(session, make_product, work_center):
    p = make_product()
    po = _create(session, p)

    op = production.add_operation(
        session, po.id,
        OperationInput(work_center_id=work_center.id, start_time=START,
                       end_time=START + timedelta(hours=4), cost=120, notes="weld"),
        user_id=USER_ID,
    )
    assert op.cost == 120
    assert op.notes == "weld"

    assert production.delete_operation(session, op.id, user_id=USER_ID) == po.id
    assert _ops(session, po) == []


def test_add_operation_unknown_work_center(session, make_product):
    p = make_product()
    po = _create(session, p)

    with pytest.raises(ValidationError, match="Work center"):
        production.add_operation(
            session, po.id,
            OperationInput(work_center_id="ghost", start_time=START, end_time=DUE),
            user_id=USER_ID,
        )


@pytest.mark.parametrize("status", [Status.IN_PROGRESS, Status.COMPLETED])
def test_started_operation_cannot_be_deleted(session, make_product, work_center, status):
    p = make_product()
    po = _create(session, p, work_center)
    [op] = _ops(session, po)
    production.update_operation_status(session, op.id, status, user_id=USER_ID)

    with pytest.raises(ConflictError):
        production.delete_operation(session, op.id, user_id=USER_ID)
    assert len(_ops(session, po)) == 1


def test_update_operation_status(session, make_product, work_center):
    p = make_product()
    po = _create(session, p, work_center)
    [op] = _ops(session, po)

    updated = production.update_operation_status(session, op.id, Status.COMPLETED, user_id="op-7")

    assert updated.status == Status.COMPLETED
    assert updated.modified_by == "op-7"


def test_operation_not_found(session):
    with pytest.raises(NotFoundError, match="Operation not found"):
        production.update_operation_status(session, 999, Status.COMPLETED, user_id=USER_ID)


def test_link_customer_order(session, make_product, customer_order):
    p = make_product()
    po = _create(session, p)

    linked = production.link_customer_order(session, po.id, customer_order.id, user_id=USER_ID)

    assert linked.customer_order_id == customer_order.id
    payload = production.serialize_production_order(session, linked)
    assert payload["customer_order"]["order_number"] == "CO-2025-0001"


def test_link_twice_conflicts(session, make_product, customer_order):
    p = make_product()
    po = _create(session, p, customer_order_id=customer_order.id)

    with pytest.raises(ConflictError, match="already linked"):
        production.link_customer_order(session, po.id, customer_order.id, user_id=USER_ID)


def test_link_missing_sides(session, make_product, customer_order):
    p = make_product()
    po = _create(session, p)

    with pytest.raises(NotFoundError, match="Production order not found"):
        production.link_customer_order(session, "nope", customer_order.id, user_id=USER_ID)
    with pytest.raises(NotFoundError, match="Customer order not found"):
        production.link_customer_order(session, po.id, "nope", user_id=USER_ID)


def test_available_lists_only_active(session, make_product, make_work_center, customer_order, customer):
    make_product(name="Bracket")
    make_product(name="Obsolete Bracket", status=Status.INACTIVE)
    make_work_center("WC-1", "Paint Booth")
    make_work_center("WC-2", "Old Lathe", status=Status.INACTIVE)
    closed = CustomerOrder(
        order_number="CO-2025-0002", customer_id=customer.id,
        required_date=datetime(2025, 7, 1, tzinfo=timezone.utc), status=Status.COMPLETED,
    )
    session.add(closed)
    session.commit()

    assert [p["name"] for p in production.available_products(session)] == ["Bracket"]
    assert [wc["name"] for wc in production.available_work_centers(session)] == ["Paint Booth"]
    open_orders = production.available_customer_orders(session)
    assert [o["order_number"] for o in open_orders] == ["CO-2025-0001"]
    assert open_orders[0]["customer"]["name"] == customer.name


def test_list_orders_by_status_then_start(session, make_product):
    p = make_product()
    later = production.create_production_order(
        session,
        CreateProductionOrderInput(product_id=p.id, quantity=1,
                                   start_date=START + timedelta(days=2), due_date=DUE + timedelta(days=2)),
        user_id=USER_ID,
    )
    earlier = _create(session, p)

    listed = production.list_production_orders(session)

    assert [o["id"] for o in listed] == [earlier.id, later.id]
    assert listed[0]["product"]["sku"] == p.sku


def test_naive_and_offset_times_are_stored_as_utc(session, make_product):
    p = make_product()
    data = CreateProductionOrderInput(
        product_id=p.id, quantity=1,
        start_date=datetime(2025, 6, 1, 8, 0),
        due_date=datetime(2025, 6, 1, 12, 0, tzinfo=timezone(timedelta(hours=2))),
    )

    po = production.create_production_order(session, data, user_id=USER_ID)
    session.refresh(po)

    assert po.start_date == datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)
    assert po.due_date == datetime(2025, 6, 1, 10, 0, tzinfo=timezone.utc)
