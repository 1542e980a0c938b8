from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from pizzeria.crud.order_crud import order_crud
from pizzeria.database import get_db
from pizzeria.schemas import OrderStatus, PaymentStatus
from pizzeria.schemas.order_schema import (
    OrderCreate,
    OrderOut,
    OrderStatusLogOut,
    OrderStatusUpdate,
    PaymentStatusUpdate,
)
from pizzeria.utils.auth.jwt_bearer import JWTBearer, optional_user, require_staff
from pizzeria.utils.notification_sender import (
    NEW_ORDER,
    ORDER_STATUS_UPDATE,
    PAYMENT_COMPLETED,
    publish_order_event,
)

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.post("/", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_in: OrderCreate,
    db: Session = Depends(get_db),
    current_user: Optional[dict] = Depends(optional_user),
):
    order = order_crud.create_order(db=db, order_in=order_in, current_user=current_user)
    await publish_order_event(db, NEW_ORDER, order)
    return order


@router.get("/", response_model=List[OrderOut])
def list_orders(
    db: Session = Depends(get_db),
    status: Optional[OrderStatus] = Query(None),
    skip: int = 0,
    limit: int = Query(50, le=200),
    current_user: dict = Depends(JWTBearer()),
):
    return order_crud.list_for(db, current_user, status=status, skip=skip, limit=limit)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, db: Session = Depends(get_db), current_user: dict = Depends(JWTBearer())):
    return order_crud.get_for(db, order_id, current_user)


async def _update_status(db: Session, order_id: int, update: OrderStatusUpdate, current_user: dict):
    order, previous = order_crud.change_status(db, order_id, update.status, current_user, update.reason)
    await publish_order_event(db, ORDER_STATUS_UPDATE, order, previous.value)
    return order


@router.patch("/{order_id}", response_model=OrderOut)
async def update_order(
    order_id: int,
    update: OrderStatusUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_staff),
):
    return await _update_status(db, order_id, update, current_user)


@router.patch("/{order_id}/status", response_model=OrderOut)
async def update_order_status(
    order_id: int,
    update: OrderStatusUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_staff),
):
    return await _update_status(db, order_id, update, current_user)


@router.patch("/{order_id}/payment", response_model=OrderOut)
async def update_payment_status(
    order_id: int,
    update: PaymentStatusUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_staff),
):
    order, _ = order_crud.set_payment_status(db, order_id, update.payment_status, update.payment_intent_id)
    if order.payment_status == PaymentStatus.PAID:
        await publish_order_event(db, PAYMENT_COMPLETED, order)
    return order


@router.get("/{order_id}/logs", response_model=List[OrderStatusLogOut])
def get_order_logs(order_id: int, db: Session = Depends(get_db), current_user: dict = Depends(require_staff)):
    return order_crud.status_logs(db, order_id)
