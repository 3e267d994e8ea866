"""
SQLAlchemy ORM models for the Binary Craft orders API.

Tables:
    users        — account rows created on demand from verified access tokens
    carts        — one server-side cart per user (optional; clients may keep their own)
    cart_items   — line items inside a cart, one row per (cart, item_id)
    orders       — immutable order records; only status/payment_status change
    order_items  — frozen line-item snapshot taken at checkout
"""
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, Text, ForeignKey,
    UniqueConstraint, Index,
)
from sqlalchemy.orm import relationship

from database import Base


def utcnow() -> datetime:
    # Naive UTC, consistent across SQLite and Postgres
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """Customers and admins, keyed by the access-token subject."""
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=True, index=True)
    name = Column(String(200), nullable=True)
    role = Column(String(20), nullable=False, default="user")  # "user" | "admin"
    created_at = Column(DateTime, default=utcnow)



# ════════════════════════════════════════════════════════════════════
# Server-side cart
# ════════════════════════════════════════════════════════════════════

class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, unique=True, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.position",
        lazy="selectin",
    )


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(String(64), nullable=False)
    item_type = Column(String(20), nullable=False)  # "product" | "service"
    title = Column(String(300), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)  # price snapshot at add time
    quantity = Column(Integer, nullable=False, default=1)
    image = Column(Text, nullable=False, default="")
    position = Column(Integer, nullable=False, default=0)  # insertion order

    cart = relationship("Cart", back_populates="items")

    __table_args__ = (
        UniqueConstraint("cart_id", "item_id", name="uq_cart_item"),
    )


# ════════════════════════════════════════════════════════════════════
# Orders
# ════════════════════════════════════════════════════════════════════

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)

    # Amounts are computed once at creation and never rewritten
    subtotal_amount = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    promo_code = Column(String(50), nullable=True)

    status = Column(String(20), nullable=False, default="pending")  # pending | processing | completed | cancelled
    payment_status = Column(String(20), nullable=False, default="unpaid")  # unpaid | paid | refunded
    payment_method = Column(String(30), nullable=False, default="cod")

    shipping_street = Column(String(300), nullable=True)
    shipping_city = Column(String(100), nullable=True)
    shipping_state = Column(String(100), nullable=True)
    shipping_zip = Column(String(20), nullable=True)
    shipping_country = Column(String(100), nullable=True)
    notes = Column(Text, nullable=False, default="")

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.id",
        lazy="selectin",
    )

    __table_args__ = (
        # Owner order history, newest first
        Index("ix_orders_user_created", "user_id", "created_at"),
        Index("ix_orders_status", "status"),
        Index("ix_orders_payment_status", "payment_status"),
        Index("ix_orders_created", "created_at"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    item_id = Column(String(64), nullable=False, index=True)
    item_type = Column(String(20), nullable=False)
    title = Column(String(300), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    image = Column(Text, nullable=False, default="")

    order = relationship("Order", back_populates="items")
