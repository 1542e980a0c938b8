from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from pizzeria.database import Base


class LoyaltyProgram(Base):
    __tablename__ = "loyalty_program"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False, default="Favilla's Loyalty Program")
    points_per_dollar = Column(Numeric(10, 2), nullable=False, default=1)
    bonus_points_threshold = Column(Numeric(10, 2), nullable=False, default=50)
    bonus_points_multiplier = Column(Numeric(10, 2), nullable=False, default=1.5)
    points_for_signup = Column(Integer, nullable=False, default=100)
    points_for_first_order = Column(Integer, nullable=False, default=50)
    is_active = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class UserPoints(Base):
    __tablename__ = "user_points"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    points = Column(Integer, nullable=False, default=0)
    total_earned = Column(Integer, nullable=False, default=0)
    total_redeemed = Column(Integer, nullable=False, default=0)
    last_earned_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("total_earned >= total_redeemed", name="ck_user_points_earned_gte_redeemed"),
        CheckConstraint("points = total_earned - total_redeemed", name="ck_user_points_balance"),
    )


class PointsTransaction(Base):
    __tablename__ = "points_transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)
    type = Column(String(20), nullable=False)
    points = Column(Integer, nullable=False)
    description = Column(String(255), nullable=False)
    order_amount = Column(Numeric(10, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        # one ledger row of each type per order; rows without an order are unconstrained
        UniqueConstraint("order_id", "type", name="uq_points_transactions_order_type"),
    )


class Reward(Base):
    __tablename__ = "rewards"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=False, default="")
    image_url = Column(String(500), nullable=True)
    points_required = Column(Integer, nullable=False, default=50)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    discount_type = Column(String(20), nullable=False, default="fixed")
    min_order_amount = Column(Numeric(10, 2), nullable=False, default=0)
    voucher_validity_days = Column(Integer, nullable=False, default=30)
    max_uses_per_user = Column(Integer, nullable=True, default=1)
    usage_instructions = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class UserVoucher(Base):
    __tablename__ = "user_vouchers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reward_id = Column(Integer, ForeignKey("rewards.id", ondelete="SET NULL"), nullable=True)
    voucher_code = Column(String(50), unique=True, nullable=False, index=True)
    discount_amount = Column(Numeric(10, 2), nullable=False)
    discount_type = Column(String(20), nullable=False, default="fixed")
    min_order_amount = Column(Numeric(10, 2), nullable=False, default=0)
    points_used = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="active")
    expires_at = Column(DateTime(timezone=True), nullable=False)
    applied_to_order_id = Column(Integer, ForeignKey("orders.id"), nullable=True)
    title = Column(String(150), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)

    reward = relationship("Reward")
