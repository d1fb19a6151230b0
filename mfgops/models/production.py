from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlmodel import SQLModel, Field

from ..utils.helpers import utcnow
from .enums import Priority, Status
from .master import new_id
from .types import UTCDateTime


class ProductionOrder(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    product_id: str = Field(foreign_key="product.id", index=True)
    quantity: int
    start_date: datetime = Field(sa_type=UTCDateTime)
    due_date: datetime = Field(sa_type=UTCDateTime)
    priority: Priority = Priority.MEDIUM
    # Weak back-reference: a production order can exist without a customer order
    customer_order_id: Optional[str] = Field(default=None, foreign_key="customerorder.id", index=True)
    notes: Optional[str] = None
    status: Status = Status.PENDING

    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    created_by: Optional[str] = None
    modified_by: Optional[str] = None


class Operation(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    production_order_id: str = Field(foreign_key="productionorder.id", index=True)
    work_center_id: str = Field(foreign_key="workcenter.id")
    start_time: datetime = Field(sa_type=UTCDateTime)
    end_time: datetime = Field(sa_type=UTCDateTime)
    cost: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    status: Status = Status.PENDING
    notes: Optional[str] = None
    created_by: Optional[str] = None
    modified_by: Optional[str] = None
