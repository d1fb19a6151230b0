# mfgops/schemas.py
"""
Request bodies accepted by the API and the service functions behind it.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from .models.enums import Priority, Status


# ============ Customer orders ============

class OrderLineInput(BaseModel):
    product_id: str
    quantity: int
    unit_price: Decimal


class CreateCustomerOrderInput(BaseModel):
    customer_id: str
    # Kept as the raw string so the service can reject it with a readable message
    required_date: Optional[str] = None
    order_lines: List[OrderLineInput] = Field(default_factory=list)
    notes: Optional[str] = None


class UpdateCustomerOrderInput(BaseModel):
    status: Optional[Status] = None
    notes: Optional[str] = None


class InventoryCheckLine(BaseModel):
    product_id: str
    quantity: int


class InventoryCheckRequest(BaseModel):
    order_lines: List[InventoryCheckLine]


# ============ Production orders ============

class OperationInput(BaseModel):
    work_center_id: str
    start_time: datetime
    end_time: datetime
    cost: Decimal = Decimal("0")
    notes: Optional[str] = None


class CreateProductionOrderInput(BaseModel):
    product_id: str
    quantity: int
    start_date: datetime
    due_date: datetime
    priority: Priority = Priority.MEDIUM
    customer_order_id: Optional[str] = None
    notes: Optional[str] = None
    operations: List[OperationInput] = Field(default_factory=list)


class UpdateProductionOrderInput(BaseModel):
    product_id: Optional[str] = None
    quantity: Optional[int] = None
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    priority: Optional[Priority] = None
    status: Optional[Status] = None
    customer_order_id: Optional[str] = None
    notes: Optional[str] = None


class OperationStatusUpdate(BaseModel):
    status: Status


class LinkCustomerOrderRequest(BaseModel):
    customer_order_id: str


# ============ Work centers ============

class CreateWorkCenterInput(BaseModel):
    code: str
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    capacity_per_hour: int = 1
    operating_hours: int = 8
    efficiency_rate: Decimal = Decimal("100")
    status: Status = Status.ACTIVE


class UpdateWorkCenterInput(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    capacity_per_hour: Optional[int] = None
    operating_hours: Optional[int] = None
    efficiency_rate: Optional[Decimal] = None
    status: Optional[Status] = None
