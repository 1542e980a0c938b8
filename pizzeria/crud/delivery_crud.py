import logging
import math
from decimal import Decimal
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from pizzeria.crud.base import CRUDBase
from pizzeria.crud.settings_crud import with_defaults
from pizzeria.model.delivery import DeliverySettings, DeliveryZone
from pizzeria.schemas.delivery_schema import DeliverySettingsUpdate, DeliveryZoneCreate, DeliveryZoneUpdate
from pizzeria.utils.helper import money

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3959
MAX_ZONES = 3


def distance_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle (haversine) distance, rounded to hundredths of a mile."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return round(EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a)), 2)


# ---------------- SETTINGS ----------------
def get_settings(db: Session) -> DeliverySettings:
    row = db.query(DeliverySettings).order_by(DeliverySettings.id).first()
    return row or with_defaults(DeliverySettings)


def update_settings(db: Session, obj_in: DeliverySettingsUpdate) -> DeliverySettings:
    row = db.query(DeliverySettings).order_by(DeliverySettings.id).first()
    if row is None:
        row = with_defaults(DeliverySettings)
        db.add(row)
    for key, value in obj_in.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


def store_location_known(config: DeliverySettings) -> bool:
    return config.restaurant_lat is not None and config.restaurant_lng is not None


# ---------------- ZONES ----------------
class CRUDDeliveryZone(CRUDBase[DeliveryZone, DeliveryZoneCreate, DeliveryZoneUpdate]):
    def create(self, db: Session, obj_in: DeliveryZoneCreate) -> DeliveryZone:
        if db.query(DeliveryZone).count() >= MAX_ZONES:
            raise HTTPException(status_code=400, detail=f"Maximum of {MAX_ZONES} delivery zones allowed")
        return super().create(db, obj_in)

    def list_active(self, db: Session) -> List[DeliveryZone]:
        return (
            db.query(DeliveryZone)
            .filter(DeliveryZone.is_active.is_(True))
            .order_by(DeliveryZone.max_radius, DeliveryZone.sort_order, DeliveryZone.id)
            .all()
        )

    def zone_for(self, db: Session, distance: float) -> Optional[DeliveryZone]:
        """Smallest active zone whose radius covers the distance."""
        for zone in self.list_active(db):
            if distance <= float(zone.max_radius):
                return zone
        return None


delivery_zone_crud = CRUDDeliveryZone(DeliveryZone, order_by=("sort_order", "id"))


def quote(db: Session, latitude: float, longitude: float) -> dict:
    config = get_settings(db)
    if not store_location_known(config):
        raise HTTPException(status_code=503, detail="Store location not configured")

    distance = distance_miles(float(config.restaurant_lat), float(config.restaurant_lng), latitude, longitude)
    max_distance = float(config.max_delivery_radius)
    if distance > max_distance:
        return {
            "can_deliver": False,
            "distance": distance,
            "delivery_fee": Decimal("0.00"),
            "zone_name": None,
            "max_distance": max_distance,
            "message": (
                f"Sorry, we don't deliver to locations more than {max_distance:g} miles away. "
                f"You are {distance} miles from our store."
            ),
        }

    zone = delivery_zone_crud.zone_for(db, distance)
    fee = money(zone.delivery_fee if zone else config.fallback_delivery_fee)
    if zone is None:
        logger.info("No zone covers %s miles, using fallback fee %s", distance, fee)
    return {
        "can_deliver": True,
        "distance": distance,
        "delivery_fee": fee,
        "zone_name": zone.name if zone else None,
        "max_distance": max_distance,
        "message": f"Delivery available to your area ({distance} miles away)",
    }
