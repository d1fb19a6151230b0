# mfgops/api/deps.py

from typing import Optional

from fastapi import Request

from ..config import settings
from ..services.view_cache import ViewCache


def get_view_cache(request: Request) -> ViewCache:
    return request.app.state.view_cache


def get_current_user_id(request: Request) -> Optional[str]:
    """
    Id of the signed-in user, forwarded by the auth proxy in a header.
    Services decide whether a missing user is an error.
    """
    return request.headers.get(settings.user_header) or None
