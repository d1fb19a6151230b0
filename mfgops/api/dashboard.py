# mfgops/api/dashboard.py

from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..database import get_session
from ..services import dashboard
from ..services.view_cache import DASHBOARD, ViewCache
from .deps import get_view_cache

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("")
def get_dashboard(
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
):
    return cache.get_or_compute(DASHBOARD, lambda: dashboard.dashboard_summary(session))


@router.get("/production-status")
def get_production_status(
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
):
    return cache.get_or_compute(
        f"{DASHBOARD}:production_status", lambda: dashboard.production_status(session)
    )


@router.get("/inventory-alerts")
def get_inventory_alerts(
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
):
    return cache.get_or_compute(
        f"{DASHBOARD}:inventory_alerts", lambda: dashboard.inventory_alerts(session)
    )


@router.get("/recent-orders")
def get_recent_orders(limit: int = 5, session: Session = Depends(get_session)):
    return dashboard.recent_orders(session, limit=limit)


@router.get("/stats")
def get_stats(
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
):
    return cache.get_or_compute(f"{DASHBOARD}:stats", lambda: dashboard.stats(session))


@router.get("/operational-alerts")
def get_operational_alerts(
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
):
    return cache.get_or_compute(
        f"{DASHBOARD}:operational_alerts", lambda: dashboard.operational_alerts(session)
    )
