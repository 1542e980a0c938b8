import logging
from datetime import date, datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pizzeria.crud import voucher_crud
from pizzeria.crud.settings_crud import get_bool_setting
from pizzeria.model.advent import AdventCalendarEntry, AdventClaim
from pizzeria.model.loyalty import Reward, UserVoucher
from pizzeria.schemas import VoucherStatus
from pizzeria.schemas.advent_schema import AdventEntryUpsert
from pizzeria.utils.config import settings
from pizzeria.utils.helper import to_utc

logger = logging.getLogger(__name__)

ENABLED_SETTING = "advent_calendar_enabled"
LAST_DAY = 25


def _validate_day(day: int) -> None:
    if not isinstance(day, int) or not 1 <= day <= LAST_DAY:
        raise HTTPException(status_code=400, detail=f"Invalid day. Must be between 1 and {LAST_DAY}")


def is_enabled(db: Session) -> bool:
    return get_bool_setting(db, ENABLED_SETTING, default=False)


def calendar_for(db: Session, today: date, user_id: Optional[int]) -> dict:
    if not is_enabled(db):
        return {"enabled": False, "year": today.year, "days_until_christmas": None, "calendar": []}

    entries = (
        db.query(AdventCalendarEntry, Reward)
        .outerjoin(Reward, Reward.id == AdventCalendarEntry.reward_id)
        .filter(AdventCalendarEntry.year == today.year, AdventCalendarEntry.is_active.is_(True))
        .order_by(AdventCalendarEntry.day)
        .all()
    )
    claimed = set()
    if user_id is not None:
        claimed = {
            day for (day,) in db.query(AdventClaim.advent_day)
            .filter(AdventClaim.user_id == user_id, AdventClaim.year == today.year)
        }

    in_december = today.month == 12
    calendar = []
    for entry, reward in entries:
        is_current = in_december and today.day == entry.day
        is_claimed = entry.day in claimed
        calendar.append({
            "day": entry.day,
            "reward_id": entry.reward_id,
            "reward_name": reward.name if reward else None,
            "reward_description": reward.description if reward else None,
            "reward_image": reward.image_url if reward else None,
            "is_current_day": is_current,
            "is_past_day": in_december and today.day > entry.day,
            "is_future_day": not in_december or today.day < entry.day,
            "is_claimed": is_claimed,
            "is_closed": bool(entry.is_closed),
            "can_claim": is_current and not is_claimed and not entry.is_closed and user_id is not None,
        })

    days_left = (date(today.year, 12, LAST_DAY) - today).days
    return {
        "enabled": True,
        "year": today.year,
        "days_until_christmas": max(0, days_left),
        "calendar": calendar,
    }


def claim(db: Session, user_id: int, day: int, today: date) -> UserVoucher:
    _validate_day(day)
    if not is_enabled(db):
        raise HTTPException(status_code=400, detail="Advent calendar is not active")
    if today.month != 12 or today.day != day:
        raise HTTPException(status_code=400, detail="You can only claim today's reward")

    entry = (
        db.query(AdventCalendarEntry)
        .filter(
            AdventCalendarEntry.day == day,
            AdventCalendarEntry.year == today.year,
            AdventCalendarEntry.is_active.is_(True),
        )
        .first()
    )
    if entry is not None and entry.is_closed:
        raise HTTPException(status_code=400, detail="This day is closed")

    existing = (
        db.query(AdventClaim.id)
        .filter(AdventClaim.user_id == user_id, AdventClaim.year == today.year, AdventClaim.advent_day == day)
        .first()
    )
    if existing:
        raise HTTPException(status_code=400, detail="You have already claimed this reward")

    reward = db.query(Reward).filter(Reward.id == entry.reward_id).first() if entry and entry.reward_id else None
    if reward is None:
        raise HTTPException(status_code=404, detail="No reward available for this day")

    try:
        voucher = voucher_crud.issue(
            db,
            user_id=user_id,
            code=f"XMAS{today.year}-DAY{day}-{voucher_crud.random_suffix(6)}",
            # end of Christmas Day, restaurant-local
            expires_at=to_utc(datetime(today.year, 12, 26, tzinfo=ZoneInfo(settings.RESTAURANT_TIMEZONE))),
            reward=reward,
        )
        db.add(AdventClaim(
            user_id=user_id,
            advent_day=day,
            year=today.year,
            reward_id=reward.id,
            voucher_id=voucher.id,
        ))
        db.commit()
    except IntegrityError:
        # concurrent claim for the same (user, year, day)
        db.rollback()
        raise HTTPException(status_code=400, detail="You have already claimed this reward")
    except Exception:
        db.rollback()
        raise
    db.refresh(voucher)
    logger.info("User %s claimed advent day %s/%s (voucher %s)", user_id, day, today.year, voucher.voucher_code)
    return voucher


def reset_claims(db: Session, day: int, year: int, user_id: Optional[int] = None) -> dict:
    """Remove claims for a day so it can be claimed again. Unused vouchers from those claims are deleted."""
    _validate_day(day)
    query = db.query(AdventClaim).filter(AdventClaim.advent_day == day, AdventClaim.year == year)
    if user_id is not None:
        query = query.filter(AdventClaim.user_id == user_id)
    claims = query.all()

    voucher_ids = [c.voucher_id for c in claims if c.voucher_id]
    vouchers_removed = 0
    try:
        for c in claims:
            db.delete(c)
        db.flush()
        if voucher_ids:
            vouchers_removed = (
                db.query(UserVoucher)
                .filter(UserVoucher.id.in_(voucher_ids), UserVoucher.status == VoucherStatus.ACTIVE.value)
                .delete(synchronize_session=False)
            )
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Reset advent day %s/%s for user=%s: %s claims", day, year, user_id, len(claims))
    return {"claims_removed": len(claims), "vouchers_removed": vouchers_removed}


# ---------------- ADMIN ENTRIES ----------------
def list_entries(db: Session, year: int) -> List[dict]:
    counts = dict(
        db.query(AdventClaim.advent_day, func.count(AdventClaim.id))
        .filter(AdventClaim.year == year)
        .group_by(AdventClaim.advent_day)
        .all()
    )
    rows = (
        db.query(AdventCalendarEntry, Reward)
        .outerjoin(Reward, Reward.id == AdventCalendarEntry.reward_id)
        .filter(AdventCalendarEntry.year == year)
        .order_by(AdventCalendarEntry.day)
        .all()
    )
    return [
        {
            "id": entry.id,
            "day": entry.day,
            "year": entry.year,
            "reward_id": entry.reward_id,
            "is_active": entry.is_active,
            "is_closed": entry.is_closed,
            "reward_name": reward.name if reward else None,
            "claim_count": counts.get(entry.day, 0),
        }
        for entry, reward in rows
    ]


def upsert_entry(db: Session, obj_in: AdventEntryUpsert, year: int) -> AdventCalendarEntry:
    if obj_in.reward_id is not None and not db.query(Reward.id).filter(Reward.id == obj_in.reward_id).first():
        raise HTTPException(status_code=404, detail="Reward not found")
    entry = (
        db.query(AdventCalendarEntry)
        .filter(AdventCalendarEntry.day == obj_in.day, AdventCalendarEntry.year == year)
        .first()
    )
    if entry is None:
        entry = AdventCalendarEntry(day=obj_in.day, year=year)
        db.add(entry)
    entry.reward_id = obj_in.reward_id
    entry.is_active = obj_in.is_active
    entry.is_closed = obj_in.is_closed
    db.commit()
    db.refresh(entry)
    return entry


def clear_entry(db: Session, day: int, year: int) -> AdventCalendarEntry:
    _validate_day(day)
    entry = (
        db.query(AdventCalendarEntry)
        .filter(AdventCalendarEntry.day == day, AdventCalendarEntry.year == year)
        .first()
    )
    if entry is None:
        raise HTTPException(status_code=404, detail="Advent calendar entry not found")
    entry.reward_id = None
    entry.is_active = False
    db.commit()
    db.refresh(entry)
    return entry
