"""Loyalty ledger: program config, point awards and redemptions.

None of these helpers commit. Callers own the transaction so that an award or
a deduction lands together with the order, user or voucher row it belongs to.
"""
import logging
import math
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pizzeria.model.loyalty import LoyaltyProgram, PointsTransaction, UserPoints
from pizzeria.model.order import Order
from pizzeria.schemas import PaymentStatus, PointsTransactionType
from pizzeria.utils.helper import money, utcnow

logger = logging.getLogger(__name__)


# ---------------- PROGRAM ----------------
def get_program(db: Session) -> LoyaltyProgram:
    program = db.query(LoyaltyProgram).order_by(LoyaltyProgram.id).first()
    if program is None:
        program = LoyaltyProgram(
            points_per_dollar=Decimal("1.00"),
            bonus_points_threshold=Decimal("50.00"),
            bonus_points_multiplier=Decimal("1.50"),
            points_for_signup=100,
            points_for_first_order=50,
            is_active=True,
        )
        db.add(program)
        db.flush()
    return program


def calculate_points(amount, program: LoyaltyProgram) -> int:
    amount = money(amount)
    if amount <= 0:
        return 0
    points = math.floor(amount * Decimal(str(program.points_per_dollar)))
    if amount >= Decimal(str(program.bonus_points_threshold)):
        points = math.floor(points * Decimal(str(program.bonus_points_multiplier)))
    return int(points)


# ---------------- BALANCE ----------------
def lock_user_points(db: Session, user_id: int) -> UserPoints:
    # FOR UPDATE serialises concurrent awards and redemptions on Postgres
    row = (
        db.query(UserPoints)
        .filter(UserPoints.user_id == user_id)
        .with_for_update()
        .first()
    )
    if row is None:
        row = UserPoints(user_id=user_id, points=0, total_earned=0, total_redeemed=0)
        db.add(row)
        db.flush()
    return row


def get_balance(db: Session, user_id: int, limit: int = 20) -> dict:
    row = db.query(UserPoints).filter(UserPoints.user_id == user_id).first()
    transactions = (
        db.query(PointsTransaction)
        .filter(PointsTransaction.user_id == user_id)
        .order_by(PointsTransaction.created_at.desc(), PointsTransaction.id.desc())
        .limit(limit)
        .all()
    )
    return {
        "points": row.points if row else 0,
        "total_earned": row.total_earned if row else 0,
        "total_redeemed": row.total_redeemed if row else 0,
        "last_earned_at": row.last_earned_at if row else None,
        "transactions": transactions,
    }


def _credit(db: Session, user_id: int, points: int, tx_type: str, description: str,
            order_id: Optional[int] = None, order_amount=None) -> PointsTransaction:
    row = lock_user_points(db, user_id)
    row.total_earned += points
    row.points = row.total_earned - row.total_redeemed
    row.last_earned_at = utcnow()
    tx = PointsTransaction(
        user_id=user_id,
        order_id=order_id,
        type=tx_type,
        points=points,
        description=description,
        order_amount=order_amount,
    )
    db.add(tx)
    db.flush()
    return tx


# ---------------- AWARDS ----------------
def award_signup_points(db: Session, user_id: int) -> int:
    program = get_program(db)
    if not program.is_active or program.points_for_signup <= 0:
        return 0
    _credit(db, user_id, program.points_for_signup, PointsTransactionType.SIGNUP.value, "Welcome bonus for signing up")
    return program.points_for_signup


def award_order_points(db: Session, order: Order) -> int:
    """Credit points for a paid order exactly once. Returns the points added (0 if none)."""
    if order.user_id is None or order.payment_status != PaymentStatus.PAID:
        return 0
    program = get_program(db)
    if not program.is_active:
        return 0

    # take the balance lock before the existence check so two awards cannot interleave
    lock_user_points(db, order.user_id)
    already = (
        db.query(PointsTransaction.id)
        .filter(
            PointsTransaction.order_id == order.id,
            PointsTransaction.type == PointsTransactionType.EARNED.value,
        )
        .first()
    )
    if already:
        return 0

    points = calculate_points(order.total, program)
    description = f"Earned from order #{order.id}"

    previous_orders = (
        db.query(func.count(PointsTransaction.id))
        .filter(
            PointsTransaction.user_id == order.user_id,
            PointsTransaction.type == PointsTransactionType.EARNED.value,
        )
        .scalar()
    )
    if previous_orders == 0 and program.points_for_first_order > 0:
        points += program.points_for_first_order
        description += f" (includes {program.points_for_first_order} first order bonus)"

    if points <= 0:
        return 0
    _credit(db, order.user_id, points, PointsTransactionType.EARNED.value, description,
            order_id=order.id, order_amount=order.total)
    logger.info("Awarded %s points to user %s for order %s", points, order.user_id, order.id)
    return points


# ---------------- REDEMPTION ----------------
def redeem_points(db: Session, user_id: int, points: int, description: str,
                  order_id: Optional[int] = None) -> UserPoints:
    if points <= 0:
        raise HTTPException(status_code=400, detail="Points must be a positive integer")
    row = lock_user_points(db, user_id)
    if row.points < points:
        raise HTTPException(
            status_code=400,
            detail=f"Insufficient points: {row.points} available, {points} required",
        )
    row.total_redeemed += points
    row.points = row.total_earned - row.total_redeemed
    db.add(PointsTransaction(
        user_id=user_id,
        order_id=order_id,
        type=PointsTransactionType.REDEEMED.value,
        points=-points,
        description=description,
    ))
    db.flush()
    return row


# ---------------- AUDIT ----------------
def audit(db: Session) -> dict:
    """Paid orders with no earned row, and balances that disagree with the ledger."""
    earned_orders = select(PointsTransaction.order_id).where(
        PointsTransaction.type == PointsTransactionType.EARNED.value,
        PointsTransaction.order_id.isnot(None),
    )
    missing = (
        db.query(Order.id)
        .filter(
            Order.payment_status == PaymentStatus.PAID,
            Order.user_id.isnot(None),
            Order.id.notin_(earned_orders),
        )
        .order_by(Order.id)
        .all()
    )

    ledger = dict(
        db.query(PointsTransaction.user_id, func.coalesce(func.sum(PointsTransaction.points), 0))
        .group_by(PointsTransaction.user_id)
        .all()
    )
    inconsistent = [
        row.user_id
        for row in db.query(UserPoints).order_by(UserPoints.user_id).all()
        if row.points != int(ledger.get(row.user_id, 0)) or row.total_earned < row.total_redeemed
    ]
    return {
        "orders_missing_points": [order_id for (order_id,) in missing],
        "inconsistent_balances": inconsistent,
    }
