import secrets
import string
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from pizzeria.model.loyalty import Reward, UserVoucher
from pizzeria.schemas import DiscountType, VoucherStatus
from pizzeria.utils.helper import money, utcnow

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def random_suffix(length: int = 6) -> str:
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


def generate_code(db: Session, prefix: str, length: int = 8) -> str:
    while True:
        code = f"{prefix}{random_suffix(length)}"
        if not db.query(UserVoucher.id).filter(UserVoucher.voucher_code == code).first():
            return code


def expire_stale(db: Session, user_id: int) -> int:
    """Flip the user's active vouchers past their expiry to expired."""
    count = (
        db.query(UserVoucher)
        .filter(
            UserVoucher.user_id == user_id,
            UserVoucher.status == VoucherStatus.ACTIVE.value,
            UserVoucher.expires_at <= utcnow(),
        )
        .update({UserVoucher.status: VoucherStatus.EXPIRED.value}, synchronize_session=False)
    )
    if count:
        db.commit()
    return count


def list_for_user(db: Session, user_id: int, status: Optional[str] = None) -> List[UserVoucher]:
    expire_stale(db, user_id)
    query = db.query(UserVoucher).filter(UserVoucher.user_id == user_id)
    if status:
        query = query.filter(UserVoucher.status == status)
    return query.order_by(UserVoucher.created_at.desc(), UserVoucher.id.desc()).all()


def find_valid(db: Session, user_id: int, code: str, lock: bool = False) -> Optional[UserVoucher]:
    """Active, unexpired voucher owned by the user."""
    query = db.query(UserVoucher).filter(
        UserVoucher.voucher_code == code.strip(),
        UserVoucher.user_id == user_id,
        UserVoucher.status == VoucherStatus.ACTIVE.value,
        UserVoucher.expires_at > utcnow(),
    )
    if lock:
        query = query.with_for_update()
    return query.first()


def compute_discount(voucher: UserVoucher, subtotal: Decimal, delivery_fee: Decimal) -> Tuple[Decimal, Decimal]:
    """Returns (subtotal discount, delivery fee discount)."""
    amount = money(voucher.discount_amount)
    if voucher.discount_type == DiscountType.DELIVERY_FEE.value:
        return Decimal("0.00"), min(amount, delivery_fee)
    if voucher.discount_type == DiscountType.PERCENTAGE.value:
        return min(money(subtotal * amount / Decimal("100")), subtotal), Decimal("0.00")
    return min(amount, subtotal), Decimal("0.00")


def issue(db: Session, user_id: int, code: str, expires_at: datetime, reward: Optional[Reward] = None,
          points_used: int = 0, discount_amount=None, discount_type: Optional[str] = None,
          title: Optional[str] = None, description: Optional[str] = None) -> UserVoucher:
    voucher = UserVoucher(
        user_id=user_id,
        reward_id=reward.id if reward else None,
        voucher_code=code,
        discount_amount=money(discount_amount if discount_amount is not None else (reward.discount_amount if reward else 0)),
        discount_type=discount_type or (reward.discount_type if reward else DiscountType.FIXED.value),
        min_order_amount=money(reward.min_order_amount if reward else 0),
        points_used=points_used,
        status=VoucherStatus.ACTIVE.value,
        expires_at=expires_at,
        title=title or (reward.name if reward else None),
        description=description or (reward.description if reward else None),
    )
    db.add(voucher)
    db.flush()
    return voucher


def count_for_reward(db: Session, user_id: int, reward_id: int) -> int:
    return (
        db.query(func.count(UserVoucher.id))
        .filter(UserVoucher.user_id == user_id, UserVoucher.reward_id == reward_id)
        .scalar()
    )


def mark_used(voucher: UserVoucher, order_id: int) -> None:
    voucher.status = VoucherStatus.USED.value
    voucher.applied_to_order_id = order_id
    voucher.used_at = utcnow()
