import json
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from pizzeria.model.notification import EmailLog, Notification

logger = logging.getLogger(__name__)


def create_notification(db: Session, user_id: int, notification_type: str, payload: dict) -> Notification:
    row = Notification(
        user_id=user_id,
        notification_type=notification_type,
        message=json.dumps(payload, default=str),
        delivered=False,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_undelivered(db: Session, user_id: int) -> List[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.delivered.is_(False))
        .order_by(Notification.id)
        .all()
    )


def mark_delivered(db: Session, notification_ids: List[int]) -> None:
    if not notification_ids:
        return
    db.query(Notification).filter(Notification.id.in_(notification_ids)).update(
        {Notification.delivered: True}, synchronize_session=False
    )
    db.commit()


def log_email(db: Session, recipient: str, email_type: str, status: str,
              order_id: Optional[int] = None, resend_id: Optional[str] = None,
              error: Optional[str] = None) -> bool:
    """Write an email audit row. Failures are logged and swallowed."""
    try:
        db.add(EmailLog(
            order_id=order_id,
            recipient_email=recipient,
            email_type=email_type,
            status=status,
            resend_id=resend_id,
            error=error,
        ))
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.warning("Failed to write email log for %s: %s", recipient, e)
        return False
