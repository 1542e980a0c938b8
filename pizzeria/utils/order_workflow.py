from datetime import datetime, timedelta
from typing import Optional, Tuple

from fastapi import HTTPException

from pizzeria.schemas import ADMIN_ROLES, OrderStatus

# current status -> statuses staff may move it to
TRANSITIONS: dict[OrderStatus, tuple[OrderStatus, ...]] = {
    OrderStatus.PENDING: (OrderStatus.COOKING, OrderStatus.CANCELLED),
    OrderStatus.COOKING: (OrderStatus.COMPLETED,),
    OrderStatus.COMPLETED: (OrderStatus.PICKED_UP, OrderStatus.COOKING),
    OrderStatus.PICKED_UP: (),
    OrderStatus.CANCELLED: (),
}

# transitions only admins may make
ADMIN_ONLY: set[tuple[OrderStatus, OrderStatus]] = {
    (OrderStatus.COMPLETED, OrderStatus.COOKING),
}

ACTIVE_STATUSES = (OrderStatus.PENDING, OrderStatus.COOKING, OrderStatus.COMPLETED)


def allowed_next(current: OrderStatus, role: Optional[str]) -> list[OrderStatus]:
    return [
        target
        for target in TRANSITIONS.get(current, ())
        if (current, target) not in ADMIN_ONLY or role in ADMIN_ROLES
    ]


def validate_transition(current: OrderStatus, target: OrderStatus, role: Optional[str]) -> None:
    if target in TRANSITIONS.get(current, ()) and (current, target) in ADMIN_ONLY and role not in ADMIN_ROLES:
        raise HTTPException(
            status_code=403,
            detail=f"Only an admin can move an order from '{current.value}' back to '{target.value}'",
        )
    allowed = allowed_next(current, role)
    if target not in allowed:
        options = ", ".join(s.value for s in allowed) or "none"
        raise HTTPException(
            status_code=409,
            detail=f"Cannot change order status from '{current.value}' to '{target.value}' (allowed: {options})",
        )


def ready_to_start(fulfillment_time: str, scheduled_time: Optional[datetime], now: datetime,
                   lead_minutes: int) -> Tuple[bool, Optional[int]]:
    """ASAP orders are always ready; scheduled ones once now is within lead_minutes of the slot.

    Returns (ready, whole minutes until the scheduled time or None for ASAP).
    """
    if fulfillment_time != "scheduled" or scheduled_time is None:
        return True, None
    remaining = scheduled_time - now
    minutes = int(remaining.total_seconds() // 60)
    return remaining <= timedelta(minutes=lead_minutes), minutes
