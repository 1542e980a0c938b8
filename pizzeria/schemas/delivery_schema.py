from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from . import ORMModel


class DeliveryZoneCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    max_radius: float = Field(..., gt=0, alias="maxRadius")
    delivery_fee: float = Field(..., ge=0, alias="deliveryFee")
    is_active: bool = Field(True, alias="isActive")
    sort_order: int = Field(0, alias="sortOrder")

    model_config = {"populate_by_name": True}


class DeliveryZoneUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    max_radius: Optional[float] = Field(None, gt=0, alias="maxRadius")
    delivery_fee: Optional[float] = Field(None, ge=0, alias="deliveryFee")
    is_active: Optional[bool] = Field(None, alias="isActive")
    sort_order: Optional[int] = Field(None, alias="sortOrder")

    model_config = {"populate_by_name": True}


class DeliveryZoneOut(ORMModel):
    id: int
    name: str
    max_radius: float = Field(alias="maxRadius")
    delivery_fee: float = Field(alias="deliveryFee")
    is_active: bool = Field(alias="isActive")
    sort_order: int = Field(alias="sortOrder")


class DeliverySettingsUpdate(BaseModel):
    restaurant_address: Optional[str] = Field(None, max_length=255, alias="restaurantAddress")
    restaurant_lat: Optional[float] = Field(None, ge=-90, le=90, alias="restaurantLat")
    restaurant_lng: Optional[float] = Field(None, ge=-180, le=180, alias="restaurantLng")
    max_delivery_radius: Optional[float] = Field(None, gt=0, alias="maxDeliveryRadius")
    fallback_delivery_fee: Optional[float] = Field(None, ge=0, alias="fallbackDeliveryFee")

    model_config = {"populate_by_name": True}


class DeliverySettingsOut(ORMModel):
    restaurant_address: Optional[str] = Field(None, alias="restaurantAddress")
    restaurant_lat: Optional[float] = Field(None, alias="restaurantLat")
    restaurant_lng: Optional[float] = Field(None, alias="restaurantLng")
    max_delivery_radius: float = Field(alias="maxDeliveryRadius")
    distance_unit: str = Field(alias="distanceUnit")
    fallback_delivery_fee: float = Field(alias="fallbackDeliveryFee")


class DeliveryConfigOut(ORMModel):
    zones: List[DeliveryZoneOut]
    settings: DeliverySettingsOut


class DeliveryFeeRequest(BaseModel):
    address: Optional[str] = Field(None, max_length=500)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    model_config = {"populate_by_name": True}


class DeliveryQuoteOut(BaseModel):
    can_deliver: bool = Field(alias="canDeliver")
    distance: float
    delivery_fee: float = Field(alias="deliveryFee")
    zone_name: Optional[str] = Field(None, alias="zoneName")
    max_distance: float = Field(alias="maxDistance")
    message: str

    model_config = {"populate_by_name": True}
