from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from . import DiscountType, ORMModel


class PointsTransactionOut(ORMModel):
    id: int
    order_id: Optional[int] = Field(None, alias="orderId")
    type: str
    points: int
    description: str
    order_amount: Optional[float] = Field(None, alias="orderAmount")
    created_at: Optional[datetime] = Field(None, alias="createdAt")


class UserPointsOut(BaseModel):
    points: int = 0
    total_earned: int = Field(0, alias="totalEarned")
    total_redeemed: int = Field(0, alias="totalRedeemed")
    last_earned_at: Optional[datetime] = Field(None, alias="lastEarnedAt")
    transactions: List[PointsTransactionOut] = []

    model_config = {"populate_by_name": True}


class LoyaltyProgramOut(ORMModel):
    name: str
    points_per_dollar: float = Field(alias="pointsPerDollar")
    bonus_points_threshold: float = Field(alias="bonusPointsThreshold")
    bonus_points_multiplier: float = Field(alias="bonusPointsMultiplier")
    points_for_signup: int = Field(alias="pointsForSignup")
    points_for_first_order: int = Field(alias="pointsForFirstOrder")
    is_active: bool = Field(alias="isActive")


class LoyaltyProgramUpdate(BaseModel):
    name: Optional[str] = None
    points_per_dollar: Optional[float] = Field(None, ge=0, alias="pointsPerDollar")
    bonus_points_threshold: Optional[float] = Field(None, ge=0, alias="bonusPointsThreshold")
    bonus_points_multiplier: Optional[float] = Field(None, ge=1, alias="bonusPointsMultiplier")
    points_for_signup: Optional[int] = Field(None, ge=0, alias="pointsForSignup")
    points_for_first_order: Optional[int] = Field(None, ge=0, alias="pointsForFirstOrder")
    is_active: Optional[bool] = Field(None, alias="isActive")

    model_config = {"populate_by_name": True}


class RewardCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: str = ""
    image_url: Optional[str] = Field(None, alias="imageUrl")
    points_required: int = Field(50, ge=0, alias="pointsRequired")
    discount_amount: float = Field(0, ge=0, alias="discountAmount")
    discount_type: DiscountType = Field(DiscountType.FIXED, alias="discountType")
    min_order_amount: float = Field(0, ge=0, alias="minOrderAmount")
    voucher_validity_days: int = Field(30, ge=1, alias="voucherValidityDays")
    max_uses_per_user: Optional[int] = Field(1, ge=1, alias="maxUsesPerUser")
    usage_instructions: Optional[str] = Field(None, alias="usageInstructions")
    active: bool = True

    model_config = {"populate_by_name": True, "use_enum_values": True}


class RewardUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")
    points_required: Optional[int] = Field(None, ge=0, alias="pointsRequired")
    discount_amount: Optional[float] = Field(None, ge=0, alias="discountAmount")
    discount_type: Optional[DiscountType] = Field(None, alias="discountType")
    min_order_amount: Optional[float] = Field(None, ge=0, alias="minOrderAmount")
    voucher_validity_days: Optional[int] = Field(None, ge=1, alias="voucherValidityDays")
    max_uses_per_user: Optional[int] = Field(None, ge=1, alias="maxUsesPerUser")
    usage_instructions: Optional[str] = Field(None, alias="usageInstructions")
    active: Optional[bool] = None

    model_config = {"populate_by_name": True, "use_enum_values": True}


class RewardOut(ORMModel):
    id: int
    name: str
    description: str
    image_url: Optional[str] = Field(None, alias="imageUrl")
    points_required: int = Field(alias="pointsRequired")
    discount_amount: float = Field(alias="discountAmount")
    discount_type: str = Field(alias="discountType")
    min_order_amount: float = Field(alias="minOrderAmount")
    voucher_validity_days: int = Field(alias="voucherValidityDays")
    max_uses_per_user: Optional[int] = Field(None, alias="maxUsesPerUser")
    usage_instructions: Optional[str] = Field(None, alias="usageInstructions")
    active: bool


class VoucherOut(ORMModel):
    id: int
    voucher_code: str = Field(alias="voucherCode")
    reward_id: Optional[int] = Field(None, alias="rewardId")
    discount_amount: float = Field(alias="discountAmount")
    discount_type: str = Field(alias="discountType")
    min_order_amount: float = Field(alias="minOrderAmount")
    points_used: int = Field(alias="pointsUsed")
    status: str
    expires_at: datetime = Field(alias="expiresAt")
    applied_to_order_id: Optional[int] = Field(None, alias="appliedToOrderId")
    title: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    used_at: Optional[datetime] = Field(None, alias="usedAt")


class VoucherValidateRequest(BaseModel):
    voucher_code: str = Field(..., min_length=1, alias="voucherCode")
    order_total: Optional[float] = Field(None, ge=0, alias="orderTotal")

    model_config = {"populate_by_name": True}


class VoucherValidateResponse(VoucherOut):
    estimated_discount: Optional[float] = Field(None, alias="estimatedDiscount")


class RedeemPointsRequest(BaseModel):
    points: int = Field(..., gt=0, le=10000)
    description: Optional[str] = Field(None, max_length=255)


class RedeemResponse(BaseModel):
    message: str
    points_redeemed: int = Field(alias="pointsRedeemed")
    remaining_points: int = Field(alias="remainingPoints")
    voucher: Optional[VoucherOut] = None

    model_config = {"populate_by_name": True}


class PointsAuditOut(BaseModel):
    orders_missing_points: List[int] = Field([], alias="ordersMissingPoints")
    inconsistent_balances: List[int] = Field([], alias="inconsistentBalances")

    model_config = {"populate_by_name": True}
