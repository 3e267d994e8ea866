"""
Domain enums for carts and orders.
"""

from enum import Enum


class ItemKind(str, Enum):
    PRODUCT = "product"
    SERVICE = "service"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    REFUNDED = "refunded"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class DiscountType(str, Enum):
    PERCENT = "PERCENT"
    AMOUNT = "AMOUNT"
