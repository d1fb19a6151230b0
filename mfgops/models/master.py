import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlmodel import SQLModel, Field

from ..utils.helpers import utcnow
from .enums import Status
from .types import UTCDateTime


def new_id() -> str:
    return uuid.uuid4().hex


class Customer(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    status: Status = Status.ACTIVE


class Product(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    sku: str = Field(unique=True, index=True)
    name: str
    current_stock: int = 0          # units on hand
    minimum_stock_level: int = 0    # reorder threshold
    lead_time: int = 0              # days
    selling_price: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    status: Status = Status.ACTIVE
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class WorkCenter(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    code: str = Field(unique=True, index=True)
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    capacity_per_hour: int = 1
    operating_hours: int = 8        # per day
    efficiency_rate: Decimal = Field(default=Decimal("100"), max_digits=5, decimal_places=2)  # percent
    status: Status = Status.ACTIVE

    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    created_by: Optional[str] = None
    modified_by: Optional[str] = None
