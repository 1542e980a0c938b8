import logging
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from pizzeria.crud.base import CRUDBase
from pizzeria.model.promo import PromoCode
from pizzeria.schemas.promo_schema import PromoCodeCreate, PromoCodeUpdate, PromoDiscountType
from pizzeria.utils.helper import money, to_utc, utcnow

logger = logging.getLogger(__name__)


class CRUDPromoCode(CRUDBase[PromoCode, PromoCodeCreate, PromoCodeUpdate]):
    def _code_taken(self, db: Session, code: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(PromoCode.id).filter(PromoCode.code == code)
        if exclude_id is not None:
            query = query.filter(PromoCode.id != exclude_id)
        return query.first() is not None

    def create(self, db: Session, obj_in: PromoCodeCreate) -> PromoCode:
        if self._code_taken(db, obj_in.code):
            raise HTTPException(status_code=400, detail="Promo code already exists")
        return super().create(db, obj_in)

    def update(self, db: Session, db_obj: PromoCode, obj_in: PromoCodeUpdate) -> PromoCode:
        changes = obj_in.model_dump(exclude_unset=True)
        if changes.get("code") and self._code_taken(db, changes["code"], exclude_id=db_obj.id):
            raise HTTPException(status_code=400, detail="Promo code already exists")
        start = changes.get("start_date") or to_utc(db_obj.start_date)
        end = changes.get("end_date") or to_utc(db_obj.end_date)
        if end <= start:
            raise HTTPException(status_code=400, detail="endDate must be after startDate")
        return super().update(db, db_obj, obj_in)

    def find_valid(self, db: Session, code: str, lock: bool = False) -> PromoCode:
        """Active promo inside its date window with uses left; 400 otherwise."""
        now = utcnow()
        query = db.query(PromoCode).filter(
            PromoCode.code == code.strip().upper(),
            PromoCode.is_active.is_(True),
            PromoCode.start_date <= now,
            PromoCode.end_date >= now,
        )
        if lock:
            query = query.with_for_update()
        promo = query.first()
        if promo is None:
            raise HTTPException(status_code=400, detail="This promo code is not valid or has expired")
        if promo.max_uses and promo.current_uses >= promo.max_uses:
            raise HTTPException(status_code=400, detail="This promo code has reached its maximum number of uses")
        return promo

    @staticmethod
    def check_minimum(promo: PromoCode, subtotal: Decimal) -> None:
        minimum = money(promo.min_order_amount)
        if subtotal < minimum:
            raise HTTPException(status_code=400, detail=f"Promo code requires a minimum order of ${minimum}")

    @staticmethod
    def compute_discount(promo: PromoCode, subtotal: Decimal) -> Decimal:
        amount = money(promo.discount)
        if promo.discount_type == PromoDiscountType.PERCENTAGE.value:
            return min(money(subtotal * amount / Decimal("100")), subtotal)
        return min(amount, subtotal)

    @staticmethod
    def record_use(promo: PromoCode) -> None:
        # caller holds the row lock and commits
        promo.current_uses = (promo.current_uses or 0) + 1


promo_crud = CRUDPromoCode(PromoCode, order_by=("start_date", "id"))
