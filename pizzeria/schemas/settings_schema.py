from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from . import ORMModel


class RestaurantSettingsBase(BaseModel):
    restaurant_name: Optional[str] = Field(None, alias="restaurantName", max_length=150)
    address: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=255)
    website: Optional[str] = Field(None, max_length=255)
    currency: Optional[str] = Field(None, max_length=10)
    timezone: Optional[str] = Field(None, max_length=64)
    delivery_fee: Optional[float] = Field(None, ge=0, alias="deliveryFee")
    minimum_order: Optional[float] = Field(None, ge=0, alias="minimumOrder")
    auto_accept_orders: Optional[bool] = Field(None, alias="autoAcceptOrders")
    send_order_notifications: Optional[bool] = Field(None, alias="sendOrderNotifications")
    send_customer_notifications: Optional[bool] = Field(None, alias="sendCustomerNotifications")
    out_of_stock_enabled: Optional[bool] = Field(None, alias="outOfStockEnabled")
    delivery_enabled: Optional[bool] = Field(None, alias="deliveryEnabled")
    pickup_enabled: Optional[bool] = Field(None, alias="pickupEnabled")
    order_scheduling_enabled: Optional[bool] = Field(None, alias="orderSchedulingEnabled")
    max_advance_order_hours: Optional[int] = Field(None, ge=0, alias="maxAdvanceOrderHours")
    service_fee_percentage: Optional[float] = Field(None, ge=0, le=100, alias="serviceFeePercentage")
    service_fee_enabled: Optional[bool] = Field(None, alias="serviceFeeEnabled")

    model_config = {"populate_by_name": True}


class RestaurantSettingsUpdate(RestaurantSettingsBase):
    pass


class RestaurantSettingsOut(ORMModel):
    id: Optional[int] = None
    restaurant_name: str = Field(alias="restaurantName")
    address: str
    phone: str
    email: str
    website: str
    currency: str
    timezone: str
    delivery_fee: float = Field(alias="deliveryFee")
    minimum_order: float = Field(alias="minimumOrder")
    auto_accept_orders: bool = Field(alias="autoAcceptOrders")
    send_order_notifications: bool = Field(alias="sendOrderNotifications")
    send_customer_notifications: bool = Field(alias="sendCustomerNotifications")
    out_of_stock_enabled: bool = Field(alias="outOfStockEnabled")
    delivery_enabled: bool = Field(alias="deliveryEnabled")
    pickup_enabled: bool = Field(alias="pickupEnabled")
    order_scheduling_enabled: bool = Field(alias="orderSchedulingEnabled")
    max_advance_order_hours: int = Field(alias="maxAdvanceOrderHours")
    service_fee_percentage: float = Field(alias="serviceFeePercentage")
    service_fee_enabled: bool = Field(alias="serviceFeeEnabled")


# ---------------- System settings ----------------
def _stringify(v):
    if v is None or isinstance(v, str):
        return v
    if isinstance(v, bool):
        return "true" if v else "false"
    return str(v)


class SystemSettingIn(BaseModel):
    setting_key: str = Field(..., min_length=1, max_length=100)
    setting_value: Optional[Any] = None
    category: str = "general"
    description: Optional[str] = None
    setting_type: str = "text"
    is_sensitive: bool = False

    @field_validator("setting_value")
    @classmethod
    def stringify_value(cls, v):
        return _stringify(v)


class SystemSettingsBulk(BaseModel):
    # validated one by one so a bad entry does not reject the batch
    settings: List[Dict[str, Any]] = Field(..., min_length=1)


class SystemSettingUpdate(BaseModel):
    setting_value: Optional[Any] = None
    category: Optional[str] = None
    description: Optional[str] = None

    @field_validator("setting_value")
    @classmethod
    def stringify_value(cls, v):
        return _stringify(v)


class SystemSettingOut(ORMModel):
    id: int
    setting_key: str
    setting_value: Optional[str] = None
    setting_type: str
    category: str
    description: Optional[str] = None
    is_sensitive: bool
    updated_at: Optional[datetime] = None


class SystemSettingsBulkResult(BaseModel):
    message: str
    saved: List[SystemSettingOut]
    skipped: List[Dict[str, Any]] = []


# ---------------- Store hours ----------------
_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class StoreHoursIn(BaseModel):
    is_open: bool = Field(True, alias="isOpen")
    open_time: Optional[str] = Field(None, alias="openTime", pattern=_TIME_PATTERN)
    close_time: Optional[str] = Field(None, alias="closeTime", pattern=_TIME_PATTERN)
    is_break_time: bool = Field(False, alias="isBreakTime")
    break_start_time: Optional[str] = Field(None, alias="breakStartTime", pattern=_TIME_PATTERN)
    break_end_time: Optional[str] = Field(None, alias="breakEndTime", pattern=_TIME_PATTERN)

    model_config = {"populate_by_name": True}


class StoreHoursOut(ORMModel):
    day_of_week: int = Field(alias="dayOfWeek")
    day_name: str = Field(alias="dayName")
    is_open: bool = Field(alias="isOpen")
    open_time: Optional[str] = Field(None, alias="openTime")
    close_time: Optional[str] = Field(None, alias="closeTime")
    is_break_time: bool = Field(alias="isBreakTime")
    break_start_time: Optional[str] = Field(None, alias="breakStartTime")
    break_end_time: Optional[str] = Field(None, alias="breakEndTime")


class StoreStatusOut(BaseModel):
    is_open: bool = Field(alias="isOpen")
    is_past_cutoff: bool = Field(alias="isPastCutoff")
    message: str
    current_time: Optional[str] = Field(None, alias="currentTime")
    minutes_until_close: Optional[int] = Field(None, alias="minutesUntilClose")
    next_open_time: Optional[str] = Field(None, alias="nextOpenTime")
    scheduling_window_end: Optional[str] = Field(None, alias="schedulingWindowEnd")
    can_place_asap_orders: bool = Field(alias="canPlaceAsapOrders")
    store_hours: Optional[StoreHoursOut] = Field(None, alias="storeHours")

    model_config = {"populate_by_name": True}


# ---------------- Pause / vacation ----------------
DEFAULT_PAUSE_MESSAGE = "We are temporarily closed. Please check back later."
DEFAULT_VACATION_MESSAGE = "We are currently on vacation and will be back soon. Thank you for your patience!"


class PauseSettingsIn(BaseModel):
    is_paused: bool = Field(False, alias="isPaused")
    pause_message: Optional[str] = Field(None, alias="pauseMessage", max_length=500)
    pause_start_time: Optional[str] = Field(None, alias="pauseStartTime", max_length=50)
    pause_end_time: Optional[str] = Field(None, alias="pauseEndTime", max_length=50)
    pause_reason: Optional[str] = Field(None, alias="pauseReason", max_length=100)

    model_config = {"populate_by_name": True}


class PauseSettingsOut(BaseModel):
    is_paused: bool = Field(alias="isPaused")
    pause_message: str = Field(alias="pauseMessage")
    pause_start_time: Optional[str] = Field(None, alias="pauseStartTime")
    pause_end_time: Optional[str] = Field(None, alias="pauseEndTime")
    pause_reason: str = Field(alias="pauseReason")

    model_config = {"populate_by_name": True}


class VacationModeIn(BaseModel):
    is_enabled: bool = Field(False, alias="isEnabled")
    start_date: Optional[date] = Field(None, alias="startDate")
    end_date: Optional[date] = Field(None, alias="endDate")
    message: Optional[str] = Field(None, max_length=500)
    reason: Optional[str] = Field(None, max_length=100)

    model_config = {"populate_by_name": True}


class VacationModeOut(BaseModel):
    is_enabled: bool = Field(alias="isEnabled")
    is_active: bool = Field(alias="isActive")
    start_date: Optional[date] = Field(None, alias="startDate")
    end_date: Optional[date] = Field(None, alias="endDate")
    message: str
    reason: Optional[str] = None
    is_paused: bool = Field(alias="isPaused")
    pause_message: str = Field(alias="pauseMessage")

    model_config = {"populate_by_name": True}


class SettingsSaved(BaseModel):
    success: bool = True
    message: str
