from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from .types import UTCDateTime


class Event(SQLModel, table=True):
    event_id: str = Field(primary_key=True)
    event_type: str
    description: str
    event_date: datetime = Field(sa_type=UTCDateTime)
    metadata_json: Optional[str] = None
