from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Union


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_number(value: Optional[Union[Decimal, int, float]]) -> Optional[float]:
    """Decimal column value -> plain float for JSON payloads."""
    if value is None:
        return None
    return float(value)


def iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def as_utc(value: datetime) -> datetime:
    """
    Timezone-aware UTC copy of ``value``.
    Aware datetimes are converted; naive ones are taken to be UTC already.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
