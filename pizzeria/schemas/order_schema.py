from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from . import FulfillmentTime, ORMModel, OrderStatus, OrderType, PaymentStatus


class OrderItemIn(BaseModel):
    menu_item_id: int = Field(..., alias="menuItemId")
    quantity: int = Field(..., ge=1, le=99)
    price: Optional[float] = Field(None, ge=0)
    # list of {choiceItemId, ...} selections, or a legacy {size: ..., toppings: ...} object
    options: Any = None
    special_instructions: Optional[str] = Field(None, alias="specialInstructions", max_length=500)

    model_config = {"populate_by_name": True}


class OrderCreate(BaseModel):
    order_type: OrderType = Field(..., alias="orderType")
    phone: str = Field(..., min_length=1, max_length=30)
    items: List[OrderItemIn] = Field(..., min_length=1)
    fulfillment_time: FulfillmentTime = Field(FulfillmentTime.ASAP, alias="fulfillmentTime")
    scheduled_time: Optional[str] = Field(None, alias="scheduledTime")
    tip: float = Field(0, ge=0)
    address: Optional[str] = Field(None, max_length=500)
    special_instructions: Optional[str] = Field(None, alias="specialInstructions", max_length=1000)
    customer_name: Optional[str] = Field(None, alias="customerName", max_length=200)
    voucher_code: Optional[str] = Field(None, alias="voucherCode", max_length=50)
    promo_code: Optional[str] = Field(None, alias="promoCode", max_length=50)
    # coordinates select a delivery zone; without them the flat restaurant fee applies
    delivery_latitude: Optional[float] = Field(None, ge=-90, le=90, alias="deliveryLatitude")
    delivery_longitude: Optional[float] = Field(None, ge=-180, le=180, alias="deliveryLongitude")
    # staff only: the customer account a counter order belongs to
    customer_id: Optional[int] = Field(None, alias="customerId")
    payment_status: PaymentStatus = Field(PaymentStatus.PENDING, alias="paymentStatus")
    payment_intent_id: Optional[str] = Field(None, alias="paymentIntentId", max_length=100)
    # client-side figures, only compared against the server computation
    total: Optional[float] = None
    tax: Optional[float] = None

    model_config = {"populate_by_name": True}

    @field_validator("phone")
    @classmethod
    def phone_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("phone is required")
        return v


class OrderItemOut(ORMModel):
    id: int
    menu_item_id: int = Field(alias="menuItemId")
    name: str
    quantity: int
    price: float
    options: Any = None
    special_instructions: Optional[str] = Field(None, alias="specialInstructions")


class OrderOut(ORMModel):
    id: int
    user_id: Optional[int] = Field(None, alias="userId")
    status: OrderStatus
    payment_status: PaymentStatus = Field(alias="paymentStatus")
    order_type: str = Field(alias="orderType")
    fulfillment_time: str = Field(alias="fulfillmentTime")
    scheduled_time: Optional[datetime] = Field(None, alias="scheduledTime")
    subtotal: float
    discount: float
    tax: float
    delivery_fee: float = Field(alias="deliveryFee")
    tip: float
    total: float
    phone: str
    customer_name: Optional[str] = Field(None, alias="customerName")
    address: Optional[str] = None
    special_instructions: Optional[str] = Field(None, alias="specialInstructions")
    voucher_code: Optional[str] = Field(None, alias="voucherCode")
    promo_code: Optional[str] = Field(None, alias="promoCode")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    completed_at: Optional[datetime] = Field(None, alias="completedAt")
    items: List[OrderItemOut] = []


class KitchenOrderOut(OrderOut):
    ready_to_start: bool = Field(True, alias="readyToStart")
    minutes_until_scheduled: Optional[int] = Field(None, alias="minutesUntilScheduled")


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    reason: Optional[str] = Field(None, max_length=255)


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus = Field(..., alias="paymentStatus")
    payment_intent_id: Optional[str] = Field(None, alias="paymentIntentId", max_length=100)

    model_config = {"populate_by_name": True}


class OrderStatusLogOut(ORMModel):
    id: int
    order_id: int = Field(alias="orderId")
    from_status: Optional[OrderStatus] = Field(None, alias="fromStatus")
    to_status: OrderStatus = Field(alias="toStatus")
    changed_by: Optional[int] = Field(None, alias="changedBy")
    reason: Optional[str] = None
    changed_at: Optional[datetime] = Field(None, alias="changedAt")
