import logging
from datetime import timedelta
from typing import List

from fastapi import HTTPException
from sqlalchemy.orm import Session

from pizzeria.crud import points_crud, voucher_crud
from pizzeria.crud.base import CRUDBase
from pizzeria.model.loyalty import Reward, UserPoints, UserVoucher
from pizzeria.schemas.loyalty_schema import RewardCreate, RewardUpdate
from pizzeria.utils.helper import utcnow

logger = logging.getLogger(__name__)


class CRUDReward(CRUDBase[Reward, RewardCreate, RewardUpdate]):
    def list_active(self, db: Session) -> List[Reward]:
        return (
            db.query(Reward)
            .filter(Reward.active.is_(True))
            .order_by(Reward.points_required, Reward.id)
            .all()
        )

    def remove(self, db: Session, id: int):
        # issued vouchers keep their discount; the reward is only retired
        reward = self.get(db, id)
        reward.active = False
        db.commit()
        return {"message": "Reward deactivated successfully"}

    def redeem(self, db: Session, reward_id: int, user_id: int) -> tuple[UserVoucher, UserPoints]:
        """Deduct the reward's points and issue its voucher in one transaction."""
        reward = self.get(db, reward_id)
        if not reward.active:
            raise HTTPException(status_code=400, detail="Reward is not available")
        if reward.max_uses_per_user and voucher_crud.count_for_reward(db, user_id, reward.id) >= reward.max_uses_per_user:
            raise HTTPException(status_code=400, detail="You have already redeemed this reward the maximum number of times")

        try:
            if reward.points_required > 0:
                balance = points_crud.redeem_points(
                    db, user_id, reward.points_required, f"Redeemed reward: {reward.name}"
                )
            else:
                # free rewards write no ledger row
                balance = points_crud.lock_user_points(db, user_id)
            voucher = voucher_crud.issue(
                db,
                user_id=user_id,
                code=voucher_crud.generate_code(db, "RWD-"),
                expires_at=utcnow() + timedelta(days=reward.voucher_validity_days),
                reward=reward,
                points_used=reward.points_required,
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(voucher)
        db.refresh(balance)
        logger.info("User %s redeemed reward %s for %s points", user_id, reward.id, reward.points_required)
        return voucher, balance


reward_crud = CRUDReward(Reward, order_by=("points_required", "id"))
