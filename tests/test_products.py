from datetime import datetime, timedelta, timezone

import pytest

from mfgops.errors import NotFoundError
from mfgops.models.enums import Status
from mfgops.models.production import Operation, ProductionOrder
from mfgops.services import product as products

START = datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)


def _production_order(session, product, status=Status.PENDING, created_at=START, work_center=None):
    po = ProductionOrder(product_id=product.id, quantity=3, start_date=START,
                         due_date=START + timedelta(days=2), status=status, created_at=created_at)
    session.add(po)
    session.flush()
    if work_center is not None:
        session.add(Operation(production_order_id=po.id, work_center_id=work_center.id,
                              start_time=START, end_time=START + timedelta(hours=8)))
    session.commit()
    return po


def test_product_detail(session, make_product):
    p = make_product(current_stock=42, name="Drive Shaft")

    detail = products.product_detail(session, p.id)

    assert detail["name"] == "Drive Shaft"
    assert detail["current_stock"] == 42
    assert detail["selling_price"] == 10.0


def test_missing_product(session):
    with pytest.raises(NotFoundError, match="Product not found"):
        products.product_detail(session, "nope")
    with pytest.raises(NotFoundError):
        products.production_orders_for_product(session, "nope")


def test_production_orders_for_product_newest_first(session, make_product, work_center):
    p = make_product()
    other = make_product()
    old = _production_order(session, p, status=Status.COMPLETED, work_center=work_center)
    new = _production_order(session, p, created_at=START + timedelta(days=1))
    _production_order(session, other)

    orders = products.production_orders_for_product(session, p.id)

    assert [o["id"] for o in orders] == [new.id, old.id]
    assert orders[1]["operations"][0]["work_center"]["name"] == work_center.name


def test_list_products_shows_open_production_orders(session, make_product):
    busy = make_product(name="Bracket")
    make_product(name="Axle")
    for day in range(6):
        _production_order(session, busy, created_at=START + timedelta(days=day))
    _production_order(session, busy, status=Status.COMPLETED, created_at=START + timedelta(days=10))

    listed = products.list_products(session)

    assert [p["name"] for p in listed] == ["Axle", "Bracket"]
    assert listed[0]["production_orders"] == []
    assert len(listed[1]["production_orders"]) == products.OPEN_ORDERS_PER_PRODUCT
    assert all(o["status"] == "PENDING" for o in listed[1]["production_orders"])
