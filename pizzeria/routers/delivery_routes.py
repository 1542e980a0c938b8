from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from pizzeria.crud import delivery_crud
from pizzeria.crud.delivery_crud import delivery_zone_crud
from pizzeria.database import get_db
from pizzeria.schemas.delivery_schema import (
    DeliveryConfigOut,
    DeliveryFeeRequest,
    DeliveryQuoteOut,
    DeliverySettingsOut,
    DeliverySettingsUpdate,
    DeliveryZoneCreate,
    DeliveryZoneOut,
    DeliveryZoneUpdate,
)
from pizzeria.utils.auth.jwt_bearer import require_admin

router = APIRouter(prefix="/api", tags=["Delivery"])


@router.post("/calculate-delivery-fee", response_model=DeliveryQuoteOut)
def calculate_delivery_fee(body: DeliveryFeeRequest, db: Session = Depends(get_db)):
    if body.latitude is None or body.longitude is None:
        if not body.address:
            raise HTTPException(status_code=400, detail="Address or coordinates required")
        # no geocoder: the client resolves the address to coordinates
        raise HTTPException(
            status_code=400,
            detail="Please provide latitude and longitude coordinates with your address",
        )
    return delivery_crud.quote(db, body.latitude, body.longitude)


# ---------------- ADMIN ----------------
@router.get("/admin/delivery-zones", response_model=DeliveryConfigOut)
def get_delivery_config(db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return {"zones": delivery_zone_crud.get_all(db), "settings": delivery_crud.get_settings(db)}


@router.post("/admin/delivery-zones", response_model=DeliveryZoneOut, status_code=status.HTTP_201_CREATED)
def create_delivery_zone(body: DeliveryZoneCreate, db: Session = Depends(get_db),
                         current_user: dict = Depends(require_admin)):
    return delivery_zone_crud.create(db, body)


@router.put("/admin/delivery-zones/{zone_id}", response_model=DeliveryZoneOut)
def update_delivery_zone(zone_id: int, body: DeliveryZoneUpdate, db: Session = Depends(get_db),
                         current_user: dict = Depends(require_admin)):
    return delivery_zone_crud.update(db, delivery_zone_crud.get(db, zone_id), body)


@router.delete("/admin/delivery-zones/{zone_id}")
def delete_delivery_zone(zone_id: int, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return delivery_zone_crud.remove(db, zone_id)


@router.put("/admin/delivery-settings", response_model=DeliverySettingsOut)
def update_delivery_settings(body: DeliverySettingsUpdate, db: Session = Depends(get_db),
                             current_user: dict = Depends(require_admin)):
    return delivery_crud.update_settings(db, body)
