from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from pizzeria.database import Base


class AdventCalendarEntry(Base):
    __tablename__ = "advent_calendar"

    id = Column(Integer, primary_key=True, index=True)
    day = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    reward_id = Column(Integer, ForeignKey("rewards.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_closed = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    reward = relationship("Reward")

    __table_args__ = (
        UniqueConstraint("day", "year", name="uq_advent_calendar_day_year"),
        CheckConstraint("day BETWEEN 1 AND 25", name="ck_advent_calendar_day_range"),
    )


class AdventClaim(Base):
    __tablename__ = "advent_claims"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    advent_day = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    reward_id = Column(Integer, ForeignKey("rewards.id", ondelete="SET NULL"), nullable=True)
    voucher_id = Column(Integer, ForeignKey("user_vouchers.id", ondelete="SET NULL"), nullable=True)
    claimed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "year", "advent_day", name="uq_advent_claims_user_year_day"),
    )
