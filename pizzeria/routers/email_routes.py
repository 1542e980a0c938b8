import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from pizzeria.crud import notification_crud
from pizzeria.crud.order_crud import order_crud
from pizzeria.crud.user_crud import user_crud
from pizzeria.database import get_db
from pizzeria.model.user import User
from pizzeria.schemas import EmailStatus, UserRole
from pizzeria.schemas.email_schema import CampaignRequest, CampaignResult, EmailSendResult, OrderConfirmationRequest
from pizzeria.utils.auth.jwt_bearer import JWTBearer, require_admin
from pizzeria.utils.email_servicer import EmailSendError, decode_unsubscribe_token, email_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Email"])

RESULT_SAMPLE = 10


@router.post("/email/send-order-confirmation", response_model=EmailSendResult)
async def send_order_confirmation(
    body: OrderConfirmationRequest,
    db: Session = Depends(get_db),
    current_user: dict = Depends(JWTBearer()),
):
    order = order_crud.get_for(db, body.order_id, current_user)
    customer_name = body.customer_name or order.customer_name or "Valued Customer"
    try:
        email_id = await email_service.send_order_confirmation_email(body.customer_email, customer_name, order)
    except EmailSendError as e:
        logger.error("Order confirmation for order %s failed: %s", order.id, e)
        notification_crud.log_email(db, body.customer_email, "order_confirmation", EmailStatus.FAILED.value,
                                    order_id=order.id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to send order confirmation email")

    notification_crud.log_email(db, body.customer_email, "order_confirmation", EmailStatus.SENT.value,
                                order_id=order.id, resend_id=email_id)
    return {"success": True, "message": "Order confirmation email sent", "email_id": email_id}


@router.post("/email/send-campaign", response_model=CampaignResult)
async def send_campaign(body: CampaignRequest, db: Session = Depends(get_db),
                        current_user: dict = Depends(require_admin)):
    if body.recipient_type != "all":
        raise HTTPException(status_code=400, detail="Only recipientType 'all' is supported")

    subscribers = (
        db.query(User)
        .filter(
            User.role == UserRole.CUSTOMER.value,
            User.is_active.is_(True),
            User.marketing_opt_in.is_(True),
        )
        .order_by(User.id)
        .all()
    )
    if not subscribers:
        raise HTTPException(status_code=400, detail="No subscribers found for this campaign")

    logger.info("Sending campaign %r to %s subscribers", body.campaign_name, len(subscribers))
    outcome = await email_service.send_campaign(
        subscribers,
        subject=body.subject,
        content=body.content,
        campaign_name=body.campaign_name,
        cta_text=body.cta_text,
        cta_url=body.cta_url,
        accent_color=body.accent_color,
    )
    successful, failed = outcome["successful"], outcome["failed"]
    return {
        "success": True,
        "campaign_name": body.campaign_name,
        "total_recipients": len(subscribers),
        "sent_successfully": len(successful),
        "failed": len(failed),
        "results": {"successful": successful[:RESULT_SAMPLE], "failed": failed[:RESULT_SAMPLE]},
    }


@router.get("/unsubscribe")
def unsubscribe(token: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    email = decode_unsubscribe_token(token)
    user = user_crud.get_by_email(db, email) if email else None
    if user is None:
        raise HTTPException(status_code=400, detail="Invalid unsubscribe link")
    user.marketing_opt_in = False
    db.commit()
    logger.info("User %s unsubscribed from marketing email", user.id)
    return {"message": "You have been unsubscribed from marketing emails"}
