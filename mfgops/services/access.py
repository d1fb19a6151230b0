from typing import Optional

from ..errors import UnauthorizedError


def require_user(user_id: Optional[str]) -> str:
    """Halt before any side effect when the request carries no signed-in user."""
    if not user_id:
        raise UnauthorizedError()
    return user_id
