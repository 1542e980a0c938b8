from __future__ import annotations

import asyncio
import base64
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape

from pizzeria.utils.config import settings

logger = logging.getLogger(__name__)

MAX_TAG_LENGTH = 256
_TAG_DISALLOWED = re.compile(r"[^a-zA-Z0-9_-]")


def sanitize_tag_value(value: str) -> str:
    """Resend tags accept only ASCII letters, digits, underscores and dashes."""
    return _TAG_DISALLOWED.sub("", str(value).replace(" ", "_"))[:MAX_TAG_LENGTH]


def unsubscribe_token(email: str) -> str:
    return base64.b64encode(email.encode("utf-8")).decode("ascii")


def decode_unsubscribe_token(token: str) -> Optional[str]:
    try:
        return base64.b64decode(token.encode("ascii"), validate=True).decode("utf-8")
    except (ValueError, UnicodeError):
        return None


class EmailSendError(Exception):
    pass


class EmailService:
    def __init__(self) -> None:
        # Uses pizzeria/templates by default
        template_dir = Path(__file__).resolve().parents[1] / "templates"
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            enable_async=False,
        )

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        tpl = self.jinja_env.get_template(template_name)
        return tpl.render(**context)

    async def send_email(self, to_email: str, subject: str, html_content: str,
                         tags: Optional[List[Dict[str, str]]] = None) -> str:
        """Send through the Resend API and return the Resend email id. Raises EmailSendError."""
        if not settings.RESEND_API_KEY:
            raise EmailSendError("RESEND_API_KEY is not configured")

        body: Dict[str, Any] = {
            "from": settings.EMAIL_FROM,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }
        if settings.EMAIL_REPLY_TO:
            body["reply_to"] = settings.EMAIL_REPLY_TO
        if tags:
            body["tags"] = tags

        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                resp = await client.post(
                    f"{settings.RESEND_API_URL}/emails",
                    json=body,
                    headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
                )
        except httpx.HTTPError as e:
            raise EmailSendError(f"Resend request failed: {e}") from e

        if resp.status_code >= 400:
            raise EmailSendError(f"Resend returned {resp.status_code}: {resp.text[:200]}")
        return resp.json().get("id", "")

    async def send_order_confirmation_email(self, to_email: str, customer_name: str, order) -> str:
        html = self.render(
            "order_confirmation.html",
            dict(
                customer_name=customer_name,
                order=order,
                restaurant_name=settings.RESTAURANT_NAME,
                restaurant_phone=settings.RESTAURANT_PHONE,
                restaurant_address=settings.RESTAURANT_ADDRESS,
                site_url=settings.SITE_URL,
            ),
        )
        return await self.send_email(
            to_email,
            f"Order Confirmation #{order.id} - {settings.RESTAURANT_NAME}",
            html,
            tags=[
                {"name": "type", "value": "order_confirmation"},
                {"name": "order_id", "value": str(order.id)},
            ],
        )

    async def send_campaign_email(self, subscriber, subject: str, content: str, campaign_name: str,
                                  cta_text: Optional[str] = None, cta_url: Optional[str] = None,
                                  accent_color: str = "#d73a31") -> str:
        unsubscribe_url = f"{settings.SITE_URL}/unsubscribe?token={unsubscribe_token(subscriber.email)}"
        html = self.render(
            "marketing_campaign.html",
            dict(
                customer_name=subscriber.first_name or "Valued Customer",
                subject=subject,
                content=content,
                cta_text=cta_text,
                cta_url=cta_url,
                accent_color=accent_color,
                unsubscribe_url=unsubscribe_url,
                restaurant_name=settings.RESTAURANT_NAME,
                restaurant_address=settings.RESTAURANT_ADDRESS,
            ),
        )
        return await self.send_email(
            subscriber.email,
            subject,
            html,
            tags=[
                {"name": "type", "value": "marketing"},
                {"name": "campaign", "value": sanitize_tag_value(campaign_name)},
                {"name": "user_id", "value": sanitize_tag_value(str(subscriber.id))},
            ],
        )

    async def send_campaign(self, subscribers: list, **campaign) -> Dict[str, List[Dict[str, Any]]]:
        """Send to every subscriber with at most EMAIL_MAX_CONCURRENCY requests in flight."""
        semaphore = asyncio.Semaphore(max(1, settings.EMAIL_MAX_CONCURRENCY))

        async def send_one(subscriber):
            async with semaphore:
                email_id = await self.send_campaign_email(subscriber, **campaign)
                return {"email": subscriber.email, "success": True, "emailId": email_id}

        outcomes = await asyncio.gather(*(send_one(s) for s in subscribers), return_exceptions=True)

        successful, failed = [], []
        for subscriber, outcome in zip(subscribers, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Campaign email to %s failed: %s", subscriber.email, outcome)
                failed.append({"email": subscriber.email, "success": False, "error": str(outcome)})
            else:
                successful.append(outcome)
        return {"successful": successful, "failed": failed}


email_service = EmailService()
