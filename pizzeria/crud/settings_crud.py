from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.orm import Session

from pizzeria.model.settings import RestaurantSettings, StoreHours, SystemSetting
from pizzeria.schemas.settings_schema import (
    DEFAULT_PAUSE_MESSAGE,
    DEFAULT_VACATION_MESSAGE,
    PauseSettingsIn,
    RestaurantSettingsUpdate,
    StoreHoursIn,
    SystemSettingIn,
    SystemSettingUpdate,
    VacationModeIn,
)

MASK = "********"
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
SCHEDULING_WINDOW_AFTER_OPEN = 30


# ---------------- RESTAURANT SETTINGS ----------------
def with_defaults(model):
    """Unsaved singleton row carrying column defaults, served until an admin saves settings."""
    row = model()
    for column in model.__table__.columns:
        if column.default is not None and getattr(row, column.key) is None and not callable(column.default.arg):
            setattr(row, column.key, column.default.arg)
    return row


def get_restaurant_settings(db: Session) -> RestaurantSettings:
    row = db.query(RestaurantSettings).order_by(RestaurantSettings.id).first()
    return row or with_defaults(RestaurantSettings)


def update_restaurant_settings(db: Session, obj_in: RestaurantSettingsUpdate) -> RestaurantSettings:
    row = db.query(RestaurantSettings).order_by(RestaurantSettings.id).first()
    if row is None:
        row = with_defaults(RestaurantSettings)
        db.add(row)
    for key, value in obj_in.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


# ---------------- SYSTEM SETTINGS ----------------
def masked(setting: SystemSetting) -> dict:
    data = {c.key: getattr(setting, c.key) for c in SystemSetting.__table__.columns}
    if setting.is_sensitive and setting.setting_value:
        data["setting_value"] = MASK
    return data


def list_system_settings(db: Session, category: Optional[str] = None) -> List[SystemSetting]:
    query = db.query(SystemSetting)
    if category:
        query = query.filter(SystemSetting.category == category).order_by(SystemSetting.setting_key)
    else:
        query = query.order_by(SystemSetting.category, SystemSetting.setting_key)
    return query.all()


def get_setting_value(db: Session, key: str, default: Optional[str] = None) -> Optional[str]:
    row = db.query(SystemSetting).filter(SystemSetting.setting_key == key).first()
    return row.setting_value if row else default


def _truthy(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def get_bool_setting(db: Session, key: str, default: bool = False) -> bool:
    value = get_setting_value(db, key)
    if value is None:
        return default
    return _truthy(value)


def bulk_upsert(db: Session, entries: List[dict]) -> Tuple[List[SystemSetting], List[dict]]:
    saved, skipped = [], []
    for raw in entries:
        try:
            entry = SystemSettingIn.model_validate(raw)
        except ValidationError as exc:
            skipped.append({"entry": raw, "reason": exc.errors(include_url=False)[0]["msg"]})
            continue
        row = db.query(SystemSetting).filter(SystemSetting.setting_key == entry.setting_key).first()
        if row is None:
            row = SystemSetting(setting_key=entry.setting_key)
            db.add(row)
        # a masked value echoed back by the admin UI keeps the stored secret
        if not (row.is_sensitive and entry.setting_value == MASK):
            row.setting_value = entry.setting_value
        row.category = entry.category
        row.description = entry.description
        row.setting_type = entry.setting_type
        row.is_sensitive = entry.is_sensitive
        saved.append(row)
    db.commit()
    for row in saved:
        db.refresh(row)
    return saved, skipped


def update_system_setting(db: Session, key: str, obj_in: SystemSettingUpdate) -> SystemSetting:
    row = db.query(SystemSetting).filter(SystemSetting.setting_key == key).first()
    if row is None:
        raise HTTPException(status_code=404, detail=f"Setting '{key}' not found")
    row.setting_value = obj_in.setting_value
    if obj_in.category is not None:
        row.category = obj_in.category
    if obj_in.description is not None:
        row.description = obj_in.description
    db.commit()
    db.refresh(row)
    return row


# ---------------- STORE HOURS ----------------
def list_store_hours(db: Session) -> List[StoreHours]:
    return db.query(StoreHours).order_by(StoreHours.day_of_week).all()


def upsert_store_hours(db: Session, day_of_week: int, obj_in: StoreHoursIn) -> StoreHours:
    if not 0 <= day_of_week <= 6:
        raise HTTPException(status_code=400, detail="day_of_week must be between 0 (Sunday) and 6 (Saturday)")
    if obj_in.is_open and not (obj_in.open_time and obj_in.close_time):
        raise HTTPException(status_code=400, detail="openTime and closeTime are required when the store is open")
    row = db.query(StoreHours).filter(StoreHours.day_of_week == day_of_week).first()
    if row is None:
        row = StoreHours(day_of_week=day_of_week, day_name=DAY_NAMES[day_of_week])
        db.add(row)
    for key, value in obj_in.model_dump().items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


def _minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def _hhmm(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def _next_open(hours: List[StoreHours], day: int, current_minutes: int) -> Optional[dict]:
    by_day = {h.day_of_week: h for h in hours}
    for offset in range(7):
        check = by_day.get((day + offset) % 7)
        if not check or not check.is_open or not check.open_time:
            continue
        open_minutes = _minutes(check.open_time)
        if offset == 0 and open_minutes <= current_minutes:
            continue
        return {
            "next_open_time": check.open_time,
            "scheduling_window_end": _hhmm(open_minutes + SCHEDULING_WINDOW_AFTER_OPEN),
        }
    return None


def store_status(hours: List[StoreHours], now: datetime, cutoff_minutes: int) -> dict:
    """Open/closed state for `now` (restaurant-local). ASAP orders stop cutoff_minutes before close."""
    # python weekday(): Monday=0; stored day_of_week: Sunday=0
    day = (now.weekday() + 1) % 7
    current = now.hour * 60 + now.minute
    result = {"is_open": False, "is_past_cutoff": True, "current_time": _hhmm(current)}

    today = next((h for h in hours if h.day_of_week == day), None)
    if today is None:
        return {**result, "message": "Store hours not configured"}
    result["store_hours"] = today

    if not today.is_open:
        return {**result, **(_next_open(hours, day, current) or {}), "message": "We are closed today"}
    if not today.open_time or not today.close_time:
        return {**result, "message": "Store hours not properly configured"}

    open_minutes, close_minutes = _minutes(today.open_time), _minutes(today.close_time)
    if current < open_minutes:
        wait = open_minutes - current
        wait_text = f"{wait // 60}h {wait % 60}m" if wait >= 60 else f"{wait} minutes"
        return {**result, **(_next_open(hours, day, current) or {}),
                "message": f"We open at {today.open_time} (in {wait_text})"}
    if current >= close_minutes:
        return {**result, **(_next_open(hours, day, current) or {}),
                "message": f"We are closed for the day (closed at {today.close_time})"}
    if today.is_break_time and today.break_start_time and today.break_end_time:
        if _minutes(today.break_start_time) <= current < _minutes(today.break_end_time):
            return {**result, "message": f"We are currently on break. We'll reopen at {today.break_end_time}"}

    until_close = close_minutes - current
    if current >= close_minutes - cutoff_minutes:
        return {
            **result,
            "is_open": True,
            "minutes_until_close": until_close,
            "message": (
                f"ASAP orders have ended for the day. We stop taking new orders "
                f"{cutoff_minutes} minutes before closing."
            ),
        }
    return {
        **result,
        "is_open": True,
        "is_past_cutoff": False,
        "minutes_until_close": until_close,
        "message": "Store is open and accepting orders",
    }


# ---------------- PAUSE / VACATION ----------------
PAUSE_DEFAULTS = {
    "pause_enabled": "false",
    "pause_message": DEFAULT_PAUSE_MESSAGE,
    "pause_start_time": "",
    "pause_end_time": "",
    "pause_reason": "maintenance",
}
VACATION_DEFAULTS = {
    "vacation_enabled": "false",
    "vacation_start_date": "",
    "vacation_end_date": "",
    "vacation_message": DEFAULT_VACATION_MESSAGE,
    "vacation_reason": "",
}


def _read_group(db: Session, defaults: Dict[str, str]) -> Dict[str, str]:
    values = dict(defaults)
    for row in db.query(SystemSetting).filter(SystemSetting.setting_key.in_(list(defaults))):
        # blank stored values fall back to the default text
        values[row.setting_key] = row.setting_value or defaults[row.setting_key]
    return values


def _write_group(db: Session, values: Dict[str, str], category: str) -> None:
    existing = {
        row.setting_key: row
        for row in db.query(SystemSetting).filter(SystemSetting.setting_key.in_(list(values)))
    }
    for key, value in values.items():
        row = existing.get(key)
        if row is None:
            row = SystemSetting(setting_key=key, category=category)
            db.add(row)
        row.setting_value = value
    db.commit()


def _parse_day(value: str) -> Optional[date]:
    try:
        return date.fromisoformat(value[:10]) if value else None
    except ValueError:
        return None


def pause_state(db: Session) -> dict:
    values = _read_group(db, PAUSE_DEFAULTS)
    return {
        "is_paused": _truthy(values["pause_enabled"]),
        "pause_message": values["pause_message"],
        "pause_start_time": values["pause_start_time"] or None,
        "pause_end_time": values["pause_end_time"] or None,
        "pause_reason": values["pause_reason"],
    }


def save_pause(db: Session, obj_in: PauseSettingsIn) -> None:
    _write_group(db, {
        "pause_enabled": "true" if obj_in.is_paused else "false",
        "pause_message": obj_in.pause_message or DEFAULT_PAUSE_MESSAGE,
        "pause_start_time": obj_in.pause_start_time or "",
        "pause_end_time": obj_in.pause_end_time or "",
        "pause_reason": obj_in.pause_reason or PAUSE_DEFAULTS["pause_reason"],
    }, category="operations")


def vacation_state(db: Session, today: date) -> dict:
    values = _read_group(db, VACATION_DEFAULTS)
    pause = pause_state(db)
    enabled = _truthy(values["vacation_enabled"])
    start, end = _parse_day(values["vacation_start_date"]), _parse_day(values["vacation_end_date"])
    # an enabled vacation without dates applies until switched off
    active = enabled and (start is None or start <= today) and (end is None or today <= end)
    return {
        "is_enabled": enabled,
        "is_active": active,
        "start_date": start,
        "end_date": end,
        "message": values["vacation_message"],
        "reason": values["vacation_reason"] or None,
        "is_paused": pause["is_paused"],
        "pause_message": pause["pause_message"],
    }


def save_vacation(db: Session, obj_in: VacationModeIn) -> None:
    if obj_in.start_date and obj_in.end_date and obj_in.end_date < obj_in.start_date:
        raise HTTPException(status_code=400, detail="endDate must not be before startDate")
    _write_group(db, {
        "vacation_enabled": "true" if obj_in.is_enabled else "false",
        "vacation_start_date": obj_in.start_date.isoformat() if obj_in.start_date else "",
        "vacation_end_date": obj_in.end_date.isoformat() if obj_in.end_date else "",
        "vacation_message": obj_in.message or DEFAULT_VACATION_MESSAGE,
        "vacation_reason": obj_in.reason or "",
    }, category="operations")


def ordering_closed_message(db: Session, today: date) -> Optional[str]:
    """Why online ordering is switched off right now, or None while it is on."""
    pause = pause_state(db)
    if pause["is_paused"]:
        return pause["pause_message"]
    vacation = vacation_state(db, today)
    if vacation["is_active"]:
        return vacation["message"]
    return None
