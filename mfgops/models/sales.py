from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlmodel import SQLModel, Field

from ..utils.helpers import utcnow
from .enums import Status
from .master import new_id
from .types import UTCDateTime


class CustomerOrder(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    order_number: str = Field(unique=True, index=True)  # CO-<year>-<NNNN>
    customer_id: str = Field(foreign_key="customer.id")
    order_date: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    required_date: datetime = Field(sa_type=UTCDateTime)
    status: Status = Status.PENDING
    total_amount: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    created_by: Optional[str] = None
    modified_by: Optional[str] = None


class OrderLine(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: str = Field(foreign_key="customerorder.id", index=True)
    product_id: str = Field(foreign_key="product.id")
    quantity: int
    unit_price: Decimal = Field(max_digits=12, decimal_places=2)
    status: Status = Status.PENDING
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
