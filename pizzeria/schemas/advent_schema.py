from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from . import ORMModel
from .loyalty_schema import VoucherOut


class AdventClaimRequest(BaseModel):
    day: int


class AdventResetRequest(BaseModel):
    day: int
    user_id: Optional[int] = Field(None, alias="userId")
    year: Optional[int] = None

    model_config = {"populate_by_name": True}


class AdventEntryUpsert(BaseModel):
    day: int = Field(..., ge=1, le=25)
    reward_id: Optional[int] = Field(None, alias="rewardId")
    year: Optional[int] = None
    is_active: bool = Field(True, alias="isActive")
    is_closed: bool = Field(False, alias="isClosed")

    model_config = {"populate_by_name": True}


class AdventEntryOut(ORMModel):
    id: int
    day: int
    year: int
    reward_id: Optional[int] = Field(None, alias="rewardId")
    is_active: bool = Field(alias="isActive")
    is_closed: bool = Field(alias="isClosed")
    reward_name: Optional[str] = Field(None, alias="rewardName")
    claim_count: int = Field(0, alias="claimCount")


class AdventDayOut(BaseModel):
    day: int
    reward_id: Optional[int] = Field(None, alias="rewardId")
    reward_name: Optional[str] = Field(None, alias="rewardName")
    reward_description: Optional[str] = Field(None, alias="rewardDescription")
    reward_image: Optional[str] = Field(None, alias="rewardImage")
    is_current_day: bool = Field(alias="isCurrentDay")
    is_past_day: bool = Field(alias="isPastDay")
    is_future_day: bool = Field(alias="isFutureDay")
    is_claimed: bool = Field(alias="isClaimed")
    is_closed: bool = Field(alias="isClosed")
    can_claim: bool = Field(alias="canClaim")

    model_config = {"populate_by_name": True}


class AdventCalendarOut(BaseModel):
    enabled: bool
    year: Optional[int] = None
    days_until_christmas: Optional[int] = Field(None, alias="daysUntilChristmas")
    calendar: List[AdventDayOut] = []

    model_config = {"populate_by_name": True}


class AdventClaimOut(BaseModel):
    message: str
    day: int
    voucher: VoucherOut


class AdventResetOut(BaseModel):
    message: str
    claims_removed: int = Field(alias="claimsRemoved")
    vouchers_removed: int = Field(alias="vouchersRemoved")

    model_config = {"populate_by_name": True}
