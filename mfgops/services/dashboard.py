# mfgops/services/dashboard.py

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List

import pandas as pd
from sqlalchemy import func
from sqlmodel import Session, select

from ..models.enums import Status
from ..models.master import Customer, Product
from ..models.production import ProductionOrder
from ..models.sales import CustomerOrder, OrderLine
from ..utils.helpers import iso, to_number, utcnow

# A product is flagged once stock is within 20% of its minimum level
WARNING_FACTOR = 1.2
CONSUMPTION_WINDOW_DAYS = 30

_SEVERITY_RANK = {"CRITICAL": 0, "WARNING": 1, "OK": 2}


def production_status(session: Session) -> Dict:
    """
    Counts of production orders per status plus the share of the
    pending / in-progress / completed buckets.
    """
    statuses = session.exec(select(ProductionOrder.status)).all()
    counts = pd.Series([s.value for s in statuses], dtype="object").value_counts()
    total = int(counts.sum()) if not counts.empty else 0

    def _count(status: Status) -> int:
        return int(counts.get(status.value, 0))

    def _pct(n: int) -> float:
        return round(n / total * 100.0, 2) if total else 0.0

    pending = _count(Status.PENDING)
    in_progress = _count(Status.IN_PROGRESS)
    completed = _count(Status.COMPLETED)
    return {
        "total_orders": total,
        "pending_orders": pending,
        "in_progress_orders": in_progress,
        "completed_orders": completed,
        "pending_percentage": _pct(pending),
        "in_progress_percentage": _pct(in_progress),
        "completed_percentage": _pct(completed),
    }


def inventory_alerts(session: Session, now: datetime | None = None) -> List[Dict]:
    """
    Active products at or near their minimum stock level.

      CRITICAL: current_stock <= minimum_stock_level
      WARNING : current_stock <= minimum_stock_level * 1.2

    Daily consumption is the ordered quantity over the last 30 days / 30;
    days_until_stockout is None when nothing was ordered. Sorted by
    severity, then soonest stockout.
    """
    now = now or utcnow()
    products = session.exec(select(Product).where(Product.status == Status.ACTIVE)).all()
    if not products:
        return []

    df = pd.DataFrame(
        [
            {
                "id": p.id,
                "sku": p.sku,
                "name": p.name,
                "current_stock": p.current_stock,
                "minimum_stock_level": p.minimum_stock_level,
                "lead_time": p.lead_time,
            }
            for p in products
        ]
    )
    df = df[df["current_stock"] <= df["minimum_stock_level"] * WARNING_FACTOR]
    if df.empty:
        return []

    since = now - timedelta(days=CONSUMPTION_WINDOW_DAYS)
    recent = session.exec(
        select(OrderLine.product_id, OrderLine.quantity)
        .where(OrderLine.created_at >= since)
        .where(OrderLine.product_id.in_(df["id"].tolist()))
    ).all()
    ordered = (
        pd.DataFrame(recent, columns=["id", "quantity"]).groupby("id")["quantity"].sum()
        if recent else pd.Series(dtype="int64")
    )

    df = df.assign(ordered=df["id"].map(ordered).fillna(0))
    df["daily_consumption"] = df["ordered"] / CONSUMPTION_WINDOW_DAYS
    df["status"] = "WARNING"
    df.loc[df["current_stock"] <= df["minimum_stock_level"], "status"] = "CRITICAL"

    out: List[Dict] = []
    for row in df.itertuples(index=False):
        days = None
        if row.daily_consumption > 0:
            days = int(row.current_stock // row.daily_consumption)
        out.append(
            {
                "id": row.id,
                "sku": row.sku,
                "name": row.name,
                "current_stock": int(row.current_stock),
                "minimum_stock_level": int(row.minimum_stock_level),
                "lead_time": int(row.lead_time),
                "days_until_stockout": days,
                "status": row.status,
            }
        )

    out.sort(
        key=lambda a: (
            _SEVERITY_RANK[a["status"]],
            a["days_until_stockout"] is None,
            a["days_until_stockout"] or 0,
        )
    )
    return out


def recent_orders(session: Session, limit: int = 5) -> List[Dict]:
    rows = session.exec(
        select(CustomerOrder, Customer)
        .join(Customer, CustomerOrder.customer_id == Customer.id)
        .order_by(CustomerOrder.order_date.desc())
        .limit(limit)
    ).all()
    return [
        {
            "id": order.id,
            "order_number": order.order_number,
            "customer_name": customer.name,
            "date": iso(order.order_date),
            "amount": to_number(order.total_amount),
            "status": order.status.value,
        }
        for order, customer in rows
    ]


OPEN_STATUSES = (Status.PENDING, Status.IN_PROGRESS)


def _month_start(ts: datetime) -> datetime:
    return ts.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _growth(current, previous) -> str:
    # No baseline counts as full growth
    if not previous:
        return "+100%"
    return f"{(current - previous) / previous * 100:.1f}%"


def stats(session: Session, now: datetime | None = None) -> Dict:
    """
    Headline figures with growth against the start of the month.

      total_revenue : sum of COMPLETED customer orders
      revenue_growth: total revenue against last month's completed revenue
      active_orders : PENDING / IN_PROGRESS customer orders
      orders_growth : against active orders created before this month
      products_growth: against products created before this month
    """
    now = now or utcnow()
    this_month = _month_start(now)
    last_month = _month_start(this_month - timedelta(days=1))

    total_products = session.exec(select(func.count()).select_from(Product)).one()
    active_orders = session.exec(
        select(func.count()).select_from(CustomerOrder)
        .where(CustomerOrder.status.in_(OPEN_STATUSES))
    ).one()
    total_revenue = session.exec(
        select(func.coalesce(func.sum(CustomerOrder.total_amount), 0))
        .where(CustomerOrder.status == Status.COMPLETED)
    ).one()

    prev_products = session.exec(
        select(func.count()).select_from(Product).where(Product.created_at < this_month)
    ).one()
    prev_orders = session.exec(
        select(func.count()).select_from(CustomerOrder)
        .where(CustomerOrder.status.in_(OPEN_STATUSES))
        .where(CustomerOrder.created_at < this_month)
    ).one()
    prev_revenue = session.exec(
        select(func.coalesce(func.sum(CustomerOrder.total_amount), 0))
        .where(CustomerOrder.status == Status.COMPLETED)
        .where(CustomerOrder.created_at >= last_month)
        .where(CustomerOrder.created_at < this_month)
    ).one()

    total_revenue = Decimal(str(total_revenue))
    prev_revenue = Decimal(str(prev_revenue))
    return {
        "total_revenue": f"{total_revenue:.2f}",
        "total_products": total_products,
        "active_orders": active_orders,
        "revenue_growth": _growth(total_revenue, prev_revenue),
        "products_growth": _growth(total_products, prev_products),
        "orders_growth": _growth(active_orders, prev_orders),
    }


def operational_alerts(session: Session, now: datetime | None = None) -> Dict:
    """Counts behind the dashboard's attention badges."""
    now = now or utcnow()

    products = session.exec(
        select(Product.current_stock, Product.minimum_stock_level)
        .where(Product.status == Status.ACTIVE)
    ).all()
    low_stock = sum(1 for stock, minimum in products if stock <= minimum * WARNING_FACTOR)

    late_production = session.exec(
        select(func.count()).select_from(ProductionOrder)
        .where(ProductionOrder.due_date < now)
        .where(ProductionOrder.status.in_(OPEN_STATUSES))
    ).one()
    late_deliveries = session.exec(
        select(func.count()).select_from(CustomerOrder)
        .where(CustomerOrder.required_date < now)
        .where(CustomerOrder.status.in_(OPEN_STATUSES))
    ).one()

    return {
        "product_stock_alerts": low_stock,
        "late_production_orders": late_production,
        "late_deliveries": late_deliveries,
    }


def dashboard_summary(session: Session) -> Dict:
    return {
        "stats": stats(session),
        "production_status": production_status(session),
        "inventory_alerts": inventory_alerts(session),
        "recent_orders": recent_orders(session),
        "operational_alerts": operational_alerts(session),
    }
