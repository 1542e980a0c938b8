"""Order event fan-out to kitchen screens and customers.

Called after the database commit. Push failures are logged and never raised.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from pizzeria.crud import notification_crud
from pizzeria.model.order import Order
from pizzeria.schemas.order_schema import OrderOut
from pizzeria.utils.ws_manager import ws_manager

logger = logging.getLogger(__name__)

NEW_ORDER = "newOrder"
ORDER_STATUS_UPDATE = "orderStatusUpdate"
PAYMENT_COMPLETED = "paymentCompleted"


def order_event(event_type: str, order: Order, previous_status: Optional[str] = None) -> dict:
    message = {
        "type": event_type,
        "order": OrderOut.model_validate(order).model_dump(mode="json", by_alias=True),
    }
    if previous_status is not None:
        message["previousStatus"] = previous_status
    return message


async def send_notification(db: Session, user_id: int, message: dict) -> bool:
    """Persist then push; undelivered rows are replayed when the customer reconnects."""
    row = notification_crud.create_notification(db, user_id, message["type"], message)
    delivered = await ws_manager.send_personal_message(user_id, row.message)
    if delivered:
        notification_crud.mark_delivered(db, [row.id])
    return delivered


async def publish_order_event(db: Session, event_type: str, order: Order,
                              previous_status: Optional[str] = None) -> None:
    message = order_event(event_type, order, previous_status)
    try:
        await ws_manager.broadcast_kitchen(message)
        if order.user_id is not None and event_type != NEW_ORDER:
            await send_notification(db, order.user_id, message)
    except Exception as e:
        logger.warning("Failed to publish %s for order %s: %s", event_type, order.id, e)
