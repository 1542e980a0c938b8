from __future__ import annotations

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from pizzeria.database import Base
from pizzeria.schemas import OrderStatus, PaymentStatus


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


ORDER_STATUS_TYPE = SAEnum(OrderStatus, name="order_status_enum", values_callable=_enum_values)
PAYMENT_STATUS_TYPE = SAEnum(PaymentStatus, name="payment_status_enum", values_callable=_enum_values)


# ---------------------------------------------------------------------------
# orders
# ---------------------------------------------------------------------------

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)  # null for guests
    status = Column(ORDER_STATUS_TYPE, nullable=False, default=OrderStatus.PENDING)
    payment_status = Column(PAYMENT_STATUS_TYPE, nullable=False, default=PaymentStatus.PENDING)
    order_type = Column(String(20), nullable=False)
    fulfillment_time = Column(String(20), nullable=False, default="asap")
    scheduled_time = Column(DateTime(timezone=True), nullable=True)

    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    tax = Column(Numeric(10, 2), nullable=False, default=0)
    delivery_fee = Column(Numeric(10, 2), nullable=False, default=0)
    tip = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)

    phone = Column(String(30), nullable=False)
    customer_name = Column(String(200), nullable=True)
    address = Column(Text, nullable=True)
    special_instructions = Column(Text, nullable=True)
    voucher_code = Column(String(50), nullable=True)
    promo_code = Column(String(50), nullable=True)
    payment_intent_id = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship("OrderItem", back_populates="order", cascade="all,delete-orphan", order_by="OrderItem.id")
    status_logs = relationship("OrderStatusLog", back_populates="order", cascade="all,delete-orphan", order_by="OrderStatusLog.id")
    user = relationship("User")

    __table_args__ = (
        CheckConstraint("total >= 0", name="ck_orders_total_non_negative"),
        Index("ix_orders_status_created_at", "status", "created_at"),
    )


# ---------------------------------------------------------------------------
# order_items
# ---------------------------------------------------------------------------

class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id"), nullable=False)
    name = Column(String(150), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)  # unit price
    options = Column(JSON, nullable=True)
    special_instructions = Column(Text, nullable=True)

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_gt_0"),
    )


# ---------------------------------------------------------------------------
# order_status_log (history)
# ---------------------------------------------------------------------------

class OrderStatusLog(Base):
    __tablename__ = "order_status_log"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    from_status = Column(ORDER_STATUS_TYPE, nullable=True)
    to_status = Column(ORDER_STATUS_TYPE, nullable=False)
    changed_by = Column(Integer, ForeignKey("users.id"), nullable=True)  # null for guest/system
    reason = Column(String(255), nullable=True)
    changed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="status_logs")
