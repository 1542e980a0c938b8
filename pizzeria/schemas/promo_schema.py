from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field, field_validator, model_validator

from pizzeria.utils.config import settings

from . import ORMModel


class PromoDiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def _aware(v: datetime) -> datetime:
    # naive admin input is restaurant-local
    if v.tzinfo is None:
        v = v.replace(tzinfo=ZoneInfo(settings.RESTAURANT_TIMEZONE))
    return v.astimezone(timezone.utc)


def _upper_code(v: str) -> str:
    v = v.strip().upper()
    if not v:
        raise ValueError("code must not be blank")
    return v


class PromoCodeCreate(BaseModel):
    code: str = Field(..., max_length=50)
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    discount: float = Field(..., gt=0)
    discount_type: PromoDiscountType = Field(..., alias="discountType")
    min_order_amount: float = Field(0, ge=0, alias="minOrderAmount")
    max_uses: int = Field(0, ge=0, alias="maxUses")
    is_active: bool = Field(True, alias="isActive")
    start_date: datetime = Field(..., alias="startDate")
    end_date: datetime = Field(..., alias="endDate")

    model_config = {"populate_by_name": True, "use_enum_values": True}

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return _upper_code(v)

    @field_validator("start_date", "end_date")
    @classmethod
    def aware(cls, v: datetime) -> datetime:
        return _aware(v)

    @model_validator(mode="after")
    def check_window(self):
        if self.end_date <= self.start_date:
            raise ValueError("endDate must be after startDate")
        if self.discount_type == PromoDiscountType.PERCENTAGE.value and self.discount > 100:
            raise ValueError("percentage discount cannot exceed 100")
        return self


class PromoCodeUpdate(BaseModel):
    code: Optional[str] = Field(None, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    discount: Optional[float] = Field(None, gt=0)
    discount_type: Optional[PromoDiscountType] = Field(None, alias="discountType")
    min_order_amount: Optional[float] = Field(None, ge=0, alias="minOrderAmount")
    max_uses: Optional[int] = Field(None, ge=0, alias="maxUses")
    is_active: Optional[bool] = Field(None, alias="isActive")
    start_date: Optional[datetime] = Field(None, alias="startDate")
    end_date: Optional[datetime] = Field(None, alias="endDate")

    model_config = {"populate_by_name": True, "use_enum_values": True}

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: Optional[str]) -> Optional[str]:
        return _upper_code(v) if v is not None else v

    @field_validator("start_date", "end_date")
    @classmethod
    def aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _aware(v) if v is not None else v


class PromoCodeOut(ORMModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    discount: float
    discount_type: str = Field(alias="discountType")
    min_order_amount: float = Field(alias="minOrderAmount")
    max_uses: int = Field(alias="maxUses")
    current_uses: int = Field(alias="currentUses")
    is_active: bool = Field(alias="isActive")
    start_date: datetime = Field(alias="startDate")
    end_date: datetime = Field(alias="endDate")
    created_at: Optional[datetime] = Field(None, alias="createdAt")


class PromoValidateRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    order_total: Optional[float] = Field(None, ge=0, alias="orderTotal")

    model_config = {"populate_by_name": True}


class PromoValidateResponse(ORMModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    discount: float
    discount_type: str = Field(alias="discountType")
    min_order_amount: float = Field(alias="minOrderAmount")
    valid: bool = True
    estimated_discount: Optional[float] = Field(None, alias="estimatedDiscount")
