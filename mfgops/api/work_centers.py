# mfgops/api/work_centers.py

from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..database import get_session
from ..schemas import CreateWorkCenterInput, UpdateWorkCenterInput
from ..services import work_center as centers
from ..services.view_cache import ViewCache
from .deps import get_current_user_id, get_view_cache

router = APIRouter(prefix="/api/work-centers", tags=["work-centers"])


@router.get("")
def list_work_centers(session: Session = Depends(get_session)):
    return centers.list_work_centers(session)


@router.post("", status_code=201)
def create_work_center(
    body: CreateWorkCenterInput,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    wc = centers.create_work_center(session, body, cache=cache, user_id=user_id)
    return centers.serialize_work_center(wc)


@router.get("/{work_center_id}")
def get_work_center(work_center_id: str, session: Session = Depends(get_session)):
    return centers.serialize_work_center(centers.get_work_center(session, work_center_id))


@router.patch("/{work_center_id}")
def update_work_center(
    work_center_id: str,
    body: UpdateWorkCenterInput,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    wc = centers.update_work_center(session, work_center_id, body, cache=cache, user_id=user_id)
    return centers.serialize_work_center(wc)


@router.delete("/{work_center_id}")
def delete_work_center(
    work_center_id: str,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    centers.delete_work_center(session, work_center_id, cache=cache, user_id=user_id)
    return {"status": "deleted", "id": work_center_id}
