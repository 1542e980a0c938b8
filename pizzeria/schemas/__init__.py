from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


# Shared Pydantic base with ORM support (Pydantic v2)
class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


# Enums shared across schemas and models
class UserRole(str, Enum):
    CUSTOMER = "customer"
    EMPLOYEE = "employee"
    KITCHEN = "kitchen"
    MANAGER = "manager"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


ADMIN_ROLES = (UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value)
STAFF_ROLES = (
    UserRole.EMPLOYEE.value,
    UserRole.KITCHEN.value,
    UserRole.MANAGER.value,
    UserRole.ADMIN.value,
    UserRole.SUPER_ADMIN.value,
)


class OrderStatus(str, Enum):
    PENDING = "pending"
    COOKING = "cooking"
    COMPLETED = "completed"
    PICKED_UP = "picked_up"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class OrderType(str, Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


class FulfillmentTime(str, Enum):
    ASAP = "asap"
    SCHEDULED = "scheduled"


class DiscountType(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"
    DELIVERY_FEE = "delivery_fee"


class VoucherStatus(str, Enum):
    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"


class PointsTransactionType(str, Enum):
    EARNED = "earned"
    REDEEMED = "redeemed"
    SIGNUP = "signup"


class EmailStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
