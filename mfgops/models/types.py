from datetime import timezone

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

from ..utils.helpers import as_utc


class UTCDateTime(TypeDecorator):
    """
    Timestamps are written as UTC and always come back timezone-aware,
    including on SQLite, which stores them without an offset.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = as_utc(value)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
