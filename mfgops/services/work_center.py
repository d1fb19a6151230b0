# mfgops/services/work_center.py

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.master import WorkCenter
from ..models.production import Operation
from ..schemas import CreateWorkCenterInput, UpdateWorkCenterInput
from ..utils.helpers import iso, to_number, utcnow
from .access import require_user
from .event_logger import log_event
from .view_cache import DASHBOARD, PRODUCTION_ORDERS, ViewCache

logger = logging.getLogger(__name__)


def _validate(values: Dict) -> None:
    # Only checks the fields present, so it serves create and partial update
    if values.get("name") is not None and len(values["name"].strip()) < 2:
        raise ValidationError("Name must be at least 2 characters")
    if values.get("code") is not None and not values["code"].strip():
        raise ValidationError("Code is required")
    if values.get("capacity_per_hour") is not None and values["capacity_per_hour"] < 1:
        raise ValidationError("Capacity must be at least 1")
    if values.get("operating_hours") is not None and values["operating_hours"] < 1:
        raise ValidationError("Operating hours must be at least 1")
    rate = values.get("efficiency_rate")
    if rate is not None and not (Decimal("0") <= Decimal(str(rate)) <= Decimal("100")):
        raise ValidationError("Efficiency rate must be between 0 and 100")


def serialize_work_center(wc: WorkCenter) -> Dict:
    return {
        "id": wc.id,
        "code": wc.code,
        "name": wc.name,
        "description": wc.description,
        "location": wc.location,
        "capacity_per_hour": wc.capacity_per_hour,
        "operating_hours": wc.operating_hours,
        "efficiency_rate": to_number(wc.efficiency_rate),
        "status": wc.status.value,
        "created_at": iso(wc.created_at),
        "updated_at": iso(wc.updated_at),
    }


def list_work_centers(session: Session) -> List[Dict]:
    centers = session.exec(select(WorkCenter).order_by(WorkCenter.name)).all()
    return [serialize_work_center(wc) for wc in centers]


def get_work_center(session: Session, work_center_id: str) -> WorkCenter:
    wc = session.get(WorkCenter, work_center_id)
    if not wc:
        raise NotFoundError("Work center not found")
    return wc


def _commit_unique_code(session: Session, code: str) -> None:
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        if "code" not in str(exc.orig):
            raise
        raise ConflictError(f"Work center code {code} is already in use") from exc


def create_work_center(
    session: Session,
    data: CreateWorkCenterInput,
    cache: Optional[ViewCache] = None,
    user_id: Optional[str] = None,
) -> WorkCenter:
    user_id = require_user(user_id)
    values = data.model_dump()
    _validate(values)

    wc = WorkCenter(
        **{**values, "description": values["description"] or None},
        created_by=user_id,
    )
    session.add(wc)
    log_event(session, "WORK_CENTER_CREATED", f"Work center {wc.code} ({wc.name}) created")
    _commit_unique_code(session, wc.code)
    session.refresh(wc)

    if cache is not None:
        cache.revalidate(DASHBOARD)
    return wc


def update_work_center(
    session: Session,
    work_center_id: str,
    data: UpdateWorkCenterInput,
    cache: Optional[ViewCache] = None,
    user_id: Optional[str] = None,
) -> WorkCenter:
    """
    Partial update. Setting status to INACTIVE takes the work center out of
    the pool automatic production orders are scheduled on.
    """
    user_id = require_user(user_id)
    wc = get_work_center(session, work_center_id)
    changes = data.model_dump(exclude_unset=True)
    _validate(changes)

    for name, value in changes.items():
        if name == "description":
            value = value or None
        elif value is None:
            continue
        setattr(wc, name, value)
    wc.modified_by = user_id
    wc.updated_at = utcnow()

    session.add(wc)
    _commit_unique_code(session, wc.code)
    session.refresh(wc)
    logger.info("Work center %s updated (%s)", wc.code, ", ".join(sorted(changes)) or "no fields")

    if cache is not None:
        cache.revalidate(PRODUCTION_ORDERS, DASHBOARD)
    return wc


def delete_work_center(
    session: Session,
    work_center_id: str,
    cache: Optional[ViewCache] = None,
    user_id: Optional[str] = None,
) -> None:
    require_user(user_id)
    wc = get_work_center(session, work_center_id)

    in_use = session.exec(
        select(Operation.id).where(Operation.work_center_id == wc.id)
    ).first()
    if in_use is not None:
        raise ConflictError("Cannot delete work center as it is linked to operations")

    session.delete(wc)
    log_event(session, "WORK_CENTER_DELETED", f"Work center {wc.code} deleted")
    session.commit()

    if cache is not None:
        cache.revalidate(PRODUCTION_ORDERS, DASHBOARD)
