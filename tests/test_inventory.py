from mfgops.models.enums import NeedReason
from mfgops.services.inventory import (
    LineRequest,
    aggregate_lines,
    check_inventory_levels,
    evaluate_line,
)


def test_insufficient_stock_needs_the_shortfall(session, make_product):
    p = make_product(current_stock=10, minimum_stock_level=0)

    result = check_inventory_levels(session, [LineRequest(p.id, 15)])

    assert len(result.needs) == 1
    need = result.needs[0]
    assert need.product_id == p.id
    assert need.reason == NeedReason.INSUFFICIENT_STOCK
    assert need.required_quantity == 5


def test_below_minimum_restores_the_minimum(session, make_product):
    p = make_product(current_stock=50, minimum_stock_level=20)

    result = check_inventory_levels(session, [LineRequest(p.id, 40)])

    assert [(n.reason, n.required_quantity) for n in result.needs] == [
        (NeedReason.BELOW_MINIMUM, 10)
    ]


def test_adequate_stock_is_not_flagged(session, make_product):
    p = make_product(current_stock=100, minimum_stock_level=20)

    result = check_inventory_levels(session, [LineRequest(p.id, 10)])

    assert result.needs == []
    assert result.unknown_product_ids == []


def test_insufficient_stock_ignores_minimum_level(make_product):
    # Shortfall only brings stock back to zero, not up to the minimum
    p = make_product(current_stock=10, minimum_stock_level=20)

    need = evaluate_line(p, 15)

    assert need.reason == NeedReason.INSUFFICIENT_STOCK
    assert need.required_quantity == 5


def test_boundaries(make_product):
    at_minimum = make_product(current_stock=30, minimum_stock_level=20)
    exactly_empty = make_product(current_stock=10, minimum_stock_level=0)

    assert evaluate_line(at_minimum, 10) is None
    assert evaluate_line(exactly_empty, 10) is None


def test_lead_time_does_not_change_the_quantity(make_product):
    fast = make_product(current_stock=50, minimum_stock_level=20, lead_time=1)
    slow = make_product(current_stock=50, minimum_stock_level=20, lead_time=30)

    assert evaluate_line(fast, 40).required_quantity == evaluate_line(slow, 40).required_quantity == 10


def test_unknown_products_are_reported_not_flagged(session, make_product):
    p = make_product(current_stock=1, minimum_stock_level=0)

    result = check_inventory_levels(
        session, [LineRequest("missing", 5), LineRequest(p.id, 5), LineRequest("missing", 1)]
    )

    assert result.unknown_product_ids == ["missing"]
    assert [n.product_id for n in result.needs] == [p.id]


def test_needs_follow_input_order(session, make_product):
    a = make_product(current_stock=0, minimum_stock_level=0)
    b = make_product(current_stock=0, minimum_stock_level=0)
    c = make_product(current_stock=0, minimum_stock_level=0)

    result = check_inventory_levels(
        session, [LineRequest(c.id, 1), LineRequest(a.id, 1), LineRequest(b.id, 1)]
    )

    assert [n.product_id for n in result.needs] == [c.id, a.id, b.id]


def test_duplicate_lines_are_checked_against_unreduced_stock(session, make_product):
    p = make_product(current_stock=10, minimum_stock_level=0)

    # 6 + 6 exceeds stock, but each line alone fits
    result = check_inventory_levels(session, [LineRequest(p.id, 6), LineRequest(p.id, 6)])
    assert result.needs == []

    # One entry per product even when several lines are short
    result = check_inventory_levels(session, [LineRequest(p.id, 12), LineRequest(p.id, 15)])
    assert len(result.needs) == 1
    assert result.needs[0].required_quantity == 2


def test_aggregated_lines_see_total_demand(session, make_product):
    p = make_product(current_stock=10, minimum_stock_level=0)
    lines = aggregate_lines([LineRequest(p.id, 6), LineRequest(p.id, 6)])

    assert [(l.product_id, l.quantity) for l in lines] == [(p.id, 12)]
    result = check_inventory_levels(session, lines)
    assert result.needs[0].required_quantity == 2


def test_empty_request(session):
    result = check_inventory_levels(session, [])
    assert result.needs == [] and result.unknown_product_ids == []


def test_to_dict(session, make_product):
    p = make_product(current_stock=10, minimum_stock_level=0)

    payload = check_inventory_levels(session, [LineRequest(p.id, 15)]).to_dict()

    assert payload["needs"][0]["reason"] == "INSUFFICIENT_STOCK"
    assert payload["needs"][0]["required_quantity"] == 5
    assert payload["needs"][0]["product_id"] == p.id
    assert payload["needs"][0]["product"]["sku"] == p.sku
