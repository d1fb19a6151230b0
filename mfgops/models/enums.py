from enum import Enum


class Status(str, Enum):
    """Lifecycle status shared by orders, lines, operations and master data."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    SUSPENDED = "SUSPENDED"
    ARCHIVED = "ARCHIVED"


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class NeedReason(str, Enum):
    """Why a product needs a production order after an order is booked."""
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"  # stock goes negative
    BELOW_MINIMUM = "BELOW_MINIMUM"            # stock stays >= 0 but under the minimum level


class Outcome(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
