import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pizzeria.crud import settings_crud
from pizzeria.database import get_db
from pizzeria.schemas.settings_schema import (
    PauseSettingsIn,
    PauseSettingsOut,
    RestaurantSettingsOut,
    RestaurantSettingsUpdate,
    SettingsSaved,
    StoreHoursIn,
    StoreHoursOut,
    StoreStatusOut,
    SystemSettingOut,
    SystemSettingsBulk,
    SystemSettingsBulkResult,
    SystemSettingUpdate,
    VacationModeIn,
    VacationModeOut,
)
from pizzeria.utils.auth.jwt_bearer import require_admin, require_staff
from pizzeria.utils.config import settings
from pizzeria.utils.helper import restaurant_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Settings"])


# ---------------- RESTAURANT SETTINGS ----------------
@router.get("/restaurant-settings", response_model=RestaurantSettingsOut)
def get_restaurant_settings(db: Session = Depends(get_db)):
    return settings_crud.get_restaurant_settings(db)


@router.put("/restaurant-settings", response_model=RestaurantSettingsOut)
def update_restaurant_settings(
    update: RestaurantSettingsUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_admin),
):
    return settings_crud.update_restaurant_settings(db, update)


# ---------------- STORE HOURS ----------------
@router.get("/store-hours", response_model=List[StoreHoursOut])
def get_store_hours(db: Session = Depends(get_db)):
    return settings_crud.list_store_hours(db)


@router.put("/admin/store-hours/{day_of_week}", response_model=StoreHoursOut)
def update_store_hours(
    day_of_week: int,
    hours: StoreHoursIn,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_admin),
):
    return settings_crud.upsert_store_hours(db, day_of_week, hours)


@router.get("/store-status", response_model=StoreStatusOut)
def get_store_status(db: Session = Depends(get_db)):
    status = settings_crud.store_status(
        settings_crud.list_store_hours(db), restaurant_now(), settings.ORDER_CUTOFF_MINUTES
    )
    status["can_place_asap_orders"] = status["is_open"] and not status["is_past_cutoff"]
    return status


# ---------------- SYSTEM SETTINGS ----------------
@router.get("/admin/system-settings", response_model=List[SystemSettingOut])
def get_system_settings(
    category: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_admin),
):
    return [settings_crud.masked(s) for s in settings_crud.list_system_settings(db, category)]


@router.post("/admin/system-settings", response_model=SystemSettingsBulkResult)
def save_system_settings(
    body: SystemSettingsBulk,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_admin),
):
    saved, skipped = settings_crud.bulk_upsert(db, body.settings)
    return {
        "message": f"Saved {len(saved)} settings",
        "saved": [settings_crud.masked(s) for s in saved],
        "skipped": skipped,
    }


@router.put("/admin/system-settings/{setting_key}", response_model=SystemSettingOut)
def update_system_setting(
    setting_key: str,
    update: SystemSettingUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_admin),
):
    return settings_crud.masked(settings_crud.update_system_setting(db, setting_key, update))


# ---------------- PAUSE / VACATION ----------------
@router.get("/pause-services", response_model=PauseSettingsOut)
def get_pause_services(db: Session = Depends(get_db)):
    return settings_crud.pause_state(db)


@router.post("/pause-services", response_model=SettingsSaved)
def update_pause_services(
    body: PauseSettingsIn,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_staff),
):
    settings_crud.save_pause(db, body)
    logger.info("Pause services set to %s by user %s", body.is_paused, current_user.get("user_id"))
    return {"message": "Pause settings updated"}


@router.get("/vacation-mode", response_model=VacationModeOut)
def get_vacation_mode(db: Session = Depends(get_db)):
    return settings_crud.vacation_state(db, restaurant_now().date())


@router.put("/vacation-mode", response_model=SettingsSaved)
def update_vacation_mode(
    body: VacationModeIn,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_staff),
):
    settings_crud.save_vacation(db, body)
    logger.info("Vacation mode set to %s by user %s", body.is_enabled, current_user.get("user_id"))
    return {"message": "Vacation mode settings updated"}
