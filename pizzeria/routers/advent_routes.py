from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pizzeria.crud import advent_crud
from pizzeria.database import get_db
from pizzeria.schemas.advent_schema import (
    AdventCalendarOut,
    AdventClaimOut,
    AdventClaimRequest,
    AdventEntryOut,
    AdventEntryUpsert,
    AdventResetOut,
    AdventResetRequest,
)
from pizzeria.utils.auth.jwt_bearer import JWTBearer, optional_user, require_admin
from pizzeria.utils.helper import restaurant_now

router = APIRouter(prefix="/api", tags=["Advent Calendar"])


def calendar_today() -> date:
    return restaurant_now().date()


@router.get("/advent-calendar", response_model=AdventCalendarOut)
def get_advent_calendar(db: Session = Depends(get_db), current_user: Optional[dict] = Depends(optional_user)):
    user_id = current_user["user_id"] if current_user else None
    return advent_crud.calendar_for(db, calendar_today(), user_id)


@router.post("/advent-calendar", response_model=AdventClaimOut)
def claim_advent_reward(body: AdventClaimRequest, db: Session = Depends(get_db),
                        current_user: dict = Depends(JWTBearer())):
    voucher = advent_crud.claim(db, current_user["user_id"], body.day, calendar_today())
    return {"message": "Reward claimed successfully!", "day": body.day, "voucher": voucher}


@router.delete("/advent-calendar", response_model=AdventResetOut)
def reset_advent_claims(body: AdventResetRequest, db: Session = Depends(get_db),
                        current_user: dict = Depends(require_admin)):
    year = body.year or calendar_today().year
    result = advent_crud.reset_claims(db, body.day, year, body.user_id)
    return {"message": f"Reset day {body.day} of {year}", **result}


# ---------------- ADMIN ENTRIES ----------------
@router.get("/admin/advent-calendar", response_model=List[AdventEntryOut])
def list_advent_entries(year: Optional[int] = Query(None), db: Session = Depends(get_db),
                        current_user: dict = Depends(require_admin)):
    return advent_crud.list_entries(db, year or calendar_today().year)


@router.post("/admin/advent-calendar", response_model=AdventEntryOut)
def upsert_advent_entry(entry: AdventEntryUpsert, db: Session = Depends(get_db),
                        current_user: dict = Depends(require_admin)):
    return advent_crud.upsert_entry(db, entry, entry.year or calendar_today().year)


@router.delete("/admin/advent-calendar/{day}", response_model=AdventEntryOut)
def clear_advent_entry(day: int, year: Optional[int] = Query(None), db: Session = Depends(get_db),
                       current_user: dict = Depends(require_admin)):
    return advent_crud.clear_entry(db, day, year or calendar_today().year)
