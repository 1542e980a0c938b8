from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from pizzeria.crud.order_crud import order_crud
from pizzeria.database import get_db
from pizzeria.schemas import OrderStatus
from pizzeria.schemas.order_schema import KitchenOrderOut, OrderOut
from pizzeria.utils.auth.jwt_bearer import require_staff
from pizzeria.utils.config import settings
from pizzeria.utils.email_servicer import email_service
from pizzeria.utils.helper import restaurant_now, to_utc, utcnow
from pizzeria.utils.notification_sender import ORDER_STATUS_UPDATE, publish_order_event
from pizzeria.utils.order_workflow import ready_to_start

router = APIRouter(prefix="/api/kitchen", tags=["Kitchen"])


def _kitchen_view(order, now) -> dict:
    scheduled = to_utc(order.scheduled_time) if order.scheduled_time else None
    ready, minutes = ready_to_start(order.fulfillment_time, scheduled, now, settings.SCHEDULED_ORDER_LEAD_MINUTES)
    data = OrderOut.model_validate(order).model_dump()
    data.update(ready_to_start=ready, minutes_until_scheduled=minutes)
    return data


@router.get("/orders", response_model=List[KitchenOrderOut])
def get_kitchen_orders(
    include_picked_up: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_staff),
):
    now = utcnow()
    return [_kitchen_view(o, now) for o in order_crud.kitchen_orders(db, include_picked_up=include_picked_up)]


async def _move(db: Session, order_id: int, target: OrderStatus, current_user: dict):
    order, previous = order_crud.change_status(db, order_id, target, current_user)
    await publish_order_event(db, ORDER_STATUS_UPDATE, order, previous.value)
    return _kitchen_view(order, utcnow())


@router.post("/orders/{order_id}/start", response_model=KitchenOrderOut)
async def start_order(order_id: int, db: Session = Depends(get_db), current_user: dict = Depends(require_staff)):
    return await _move(db, order_id, OrderStatus.COOKING, current_user)


@router.post("/orders/{order_id}/complete", response_model=KitchenOrderOut)
async def complete_order(order_id: int, db: Session = Depends(get_db), current_user: dict = Depends(require_staff)):
    return await _move(db, order_id, OrderStatus.COMPLETED, current_user)


@router.get("/orders/{order_id}/receipt", response_class=HTMLResponse)
def get_receipt(order_id: int, db: Session = Depends(get_db), current_user: dict = Depends(require_staff)):
    order = order_crud.get_for(db, order_id, current_user)
    tz = restaurant_now().tzinfo
    placed_at = to_utc(order.created_at).astimezone(tz) if order.created_at else restaurant_now()
    scheduled_at = to_utc(order.scheduled_time).astimezone(tz) if order.scheduled_time else None
    html = email_service.render(
        "receipt.html",
        dict(
            order=order,
            placed_at=placed_at.strftime("%b %d, %Y %I:%M %p"),
            scheduled_at=scheduled_at.strftime("%b %d, %Y %I:%M %p") if scheduled_at else None,
            restaurant_name=settings.RESTAURANT_NAME,
            restaurant_phone=settings.RESTAURANT_PHONE,
            restaurant_address=settings.RESTAURANT_ADDRESS,
        ),
    )
    return HTMLResponse(content=html)
