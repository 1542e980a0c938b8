import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from pizzeria.crud import points_crud, voucher_crud
from pizzeria.crud.reward_crud import reward_crud
from pizzeria.crud.settings_crud import get_restaurant_settings
from pizzeria.database import get_db
from pizzeria.schemas.loyalty_schema import (
    LoyaltyProgramOut,
    LoyaltyProgramUpdate,
    PointsAuditOut,
    RedeemPointsRequest,
    RedeemResponse,
    RewardCreate,
    RewardOut,
    RewardUpdate,
    UserPointsOut,
    VoucherOut,
    VoucherValidateRequest,
    VoucherValidateResponse,
)
from pizzeria.utils.auth.jwt_bearer import JWTBearer, require_admin
from pizzeria.utils.helper import money

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Rewards"])


# ---------------- POINTS ----------------
@router.get("/user/points", response_model=UserPointsOut)
def get_user_points(
    limit: int = Query(20, le=100),
    db: Session = Depends(get_db),
    current_user: dict = Depends(JWTBearer()),
):
    return points_crud.get_balance(db, current_user["user_id"], limit=limit)


@router.post("/redeem-points", response_model=RedeemResponse)
def redeem_points(body: RedeemPointsRequest, db: Session = Depends(get_db), current_user: dict = Depends(JWTBearer())):
    try:
        balance = points_crud.redeem_points(
            db, current_user["user_id"], body.points, body.description or "Points redemption"
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("User %s redeemed %s points", current_user["user_id"], body.points)
    return {"message": "Points redeemed successfully", "points_redeemed": body.points,
            "remaining_points": balance.points}


# ---------------- REWARDS ----------------
@router.get("/rewards", response_model=List[RewardOut])
def get_rewards(db: Session = Depends(get_db)):
    return reward_crud.list_active(db)


@router.post("/rewards/{reward_id}/redeem", response_model=RedeemResponse)
def redeem_reward(reward_id: int, db: Session = Depends(get_db), current_user: dict = Depends(JWTBearer())):
    voucher, balance = reward_crud.redeem(db, reward_id, current_user["user_id"])
    return {
        "message": "Reward redeemed successfully",
        "points_redeemed": voucher.points_used,
        "remaining_points": balance.points,
        "voucher": voucher,
    }


# ---------------- VOUCHERS ----------------
@router.get("/user/vouchers", response_model=List[VoucherOut])
def get_user_vouchers(
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: dict = Depends(JWTBearer()),
):
    return voucher_crud.list_for_user(db, current_user["user_id"], status=status)


@router.post("/vouchers/validate", response_model=VoucherValidateResponse)
def validate_voucher(body: VoucherValidateRequest, db: Session = Depends(get_db),
                     current_user: dict = Depends(JWTBearer())):
    voucher = voucher_crud.find_valid(db, current_user["user_id"], body.voucher_code)
    if voucher is None:
        raise HTTPException(status_code=400, detail="Voucher not found, expired, or already used")

    data = VoucherOut.model_validate(voucher).model_dump()
    if body.order_total is not None:
        order_total = money(body.order_total)
        if order_total < money(voucher.min_order_amount):
            raise HTTPException(
                status_code=400,
                detail=f"Voucher requires a minimum order of ${money(voucher.min_order_amount)}",
            )
        delivery_fee = money(get_restaurant_settings(db).delivery_fee)
        discount, delivery_discount = voucher_crud.compute_discount(voucher, order_total, delivery_fee)
        data["estimated_discount"] = float(discount + delivery_discount)
    return data


# ---------------- ADMIN ----------------
@router.get("/admin/rewards", response_model=List[RewardOut])
def admin_list_rewards(db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return reward_crud.get_all(db, limit=500)


@router.post("/admin/rewards", response_model=RewardOut, status_code=status.HTTP_201_CREATED)
def create_reward(reward: RewardCreate, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return reward_crud.create(db, reward)


@router.put("/admin/rewards/{reward_id}", response_model=RewardOut)
def update_reward(reward_id: int, reward: RewardUpdate, db: Session = Depends(get_db),
                  current_user: dict = Depends(require_admin)):
    db_reward = reward_crud.get(db, reward_id)
    return reward_crud.update(db, db_reward, reward)


@router.delete("/admin/rewards/{reward_id}")
def delete_reward(reward_id: int, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return reward_crud.remove(db, reward_id)


@router.get("/admin/loyalty-program", response_model=LoyaltyProgramOut)
def get_loyalty_program(db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    program = points_crud.get_program(db)
    db.commit()
    return program


@router.put("/admin/loyalty-program", response_model=LoyaltyProgramOut)
def update_loyalty_program(update: LoyaltyProgramUpdate, db: Session = Depends(get_db),
                           current_user: dict = Depends(require_admin)):
    program = points_crud.get_program(db)
    for key, value in update.model_dump(exclude_unset=True).items():
        setattr(program, key, value)
    db.commit()
    db.refresh(program)
    return program


@router.get("/admin/points-audit", response_model=PointsAuditOut)
def points_audit(db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return points_crud.audit(db)
