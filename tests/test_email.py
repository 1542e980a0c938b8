import logging

import httpx
import pytest
from sqlalchemy.exc import SQLAlchemyError

from pizzeria.crud import notification_crud
from pizzeria.model import EmailLog, User
from pizzeria.utils import email_servicer
from pizzeria.utils.config import settings
from pizzeria.utils.email_servicer import (
    EmailSendError,
    EmailService,
    decode_unsubscribe_token,
    email_service,
    sanitize_tag_value,
    unsubscribe_token,
)

from conftest import make_user, pickup_order


def test_sanitize_tag_value():
    assert sanitize_tag_value("Summer Sale 2026!") == "Summer_Sale_2026"
    assert sanitize_tag_value("a" * 300) == "a" * 256
    assert sanitize_tag_value("émoji-🍕_ok") == "moji-_ok"


def test_unsubscribe_token_round_trip():
    assert decode_unsubscribe_token(unsubscribe_token("pat@example.com")) == "pat@example.com"
    assert decode_unsubscribe_token("%%%") is None


# ─── Order confirmation ────────────────────────────────────────────────────────
def test_send_order_confirmation(client, db, menu, customer_headers, sent_emails):
    order_id = client.post("/api/orders/", json=pickup_order(menu), headers=customer_headers).json()["id"]
    body = {"orderId": order_id, "customerEmail": "alice@example.com", "customerName": "Alice"}
    r = client.post("/api/email/send-order-confirmation", json=body, headers=customer_headers)
    assert r.status_code == 200, r.text
    assert r.json()["emailId"] == "email_1"

    sent = sent_emails[0]
    assert sent["to"] == "alice@example.com"
    assert f"#{order_id}" in sent["subject"]
    assert "Cheese Pizza" in sent["html"]
    assert "21.65" in sent["html"]

    log = db.query(EmailLog).one()
    assert (log.order_id, log.status, log.resend_id) == (order_id, "sent", "email_1")


def test_order_confirmation_for_someone_elses_order(client, menu, customer_headers, other_headers, sent_emails):
    order_id = client.post("/api/orders/", json=pickup_order(menu), headers=customer_headers).json()["id"]
    body = {"orderId": order_id, "customerEmail": "bob@example.com"}
    assert client.post("/api/email/send-order-confirmation", json=body, headers=other_headers).status_code == 404
    assert sent_emails == []


def test_order_confirmation_send_failure_is_500(client, db, menu, customer_headers, monkeypatch):
    async def broken(*args, **kwargs):
        raise EmailSendError("Resend returned 422")

    monkeypatch.setattr(email_service, "send_email", broken)
    order_id = client.post("/api/orders/", json=pickup_order(menu), headers=customer_headers).json()["id"]
    body = {"orderId": order_id, "customerEmail": "alice@example.com"}
    r = client.post("/api/email/send-order-confirmation", json=body, headers=customer_headers)
    assert r.status_code == 500
    assert db.query(EmailLog).one().status == "failed"


def test_order_confirmation_survives_audit_log_failure(client, db, menu, customer_headers, sent_emails,
                                                       monkeypatch, caplog):
    def broken_log(**kwargs):
        raise SQLAlchemyError("email_logs is unavailable")

    monkeypatch.setattr(notification_crud, "EmailLog", broken_log)
    order_id = client.post("/api/orders/", json=pickup_order(menu), headers=customer_headers).json()["id"]
    body = {"orderId": order_id, "customerEmail": "alice@example.com"}
    with caplog.at_level(logging.WARNING, logger="pizzeria.crud.notification_crud"):
        r = client.post("/api/email/send-order-confirmation", json=body, headers=customer_headers)

    assert r.status_code == 200
    assert r.json()["success"] is True
    assert len(sent_emails) == 1
    assert db.query(EmailLog).count() == 0
    assert any("Failed to write email log for alice@example.com" in rec.getMessage() for rec in caplog.records)


# ─── Campaigns ─────────────────────────────────────────────────────────────────
def test_campaign_goes_to_opted_in_active_customers(client, db, admin_headers, sent_emails):
    make_user(db, "fan")
    make_user(db, "quiet", marketing_opt_in=False)
    make_user(db, "gone", is_active=False)
    body = {"campaignName": "Pizza Week", "subject": "Half off!", "content": "All week long.",
            "ctaText": "Order now", "ctaUrl": "https://favillas.com/menu"}

    r = client.post("/api/email/send-campaign", json=body, headers=admin_headers)
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["totalRecipients"] == 1
    assert data["sentSuccessfully"] == 1
    assert data["failed"] == 0

    sent = sent_emails[0]
    assert sent["to"] == "fan@example.com"
    assert f"unsubscribe?token={unsubscribe_token('fan@example.com')}" in sent["html"]
    tags = {t["name"]: t["value"] for t in sent["tags"]}
    assert tags["type"] == "marketing"
    assert tags["campaign"] == "Pizza_Week"


def test_campaign_collects_individual_failures(client, db, admin_headers, monkeypatch):
    make_user(db, "good")
    make_user(db, "bad")

    async def flaky(to_email, subject, html_content, tags=None):
        if to_email.startswith("bad"):
            raise EmailSendError("bounced")
        return "ok"

    monkeypatch.setattr(email_service, "send_email", flaky)
    body = {"campaignName": "Promo", "subject": "Hi", "content": "Body"}
    data = client.post("/api/email/send-campaign", json=body, headers=admin_headers).json()
    assert data["sentSuccessfully"] == 1
    assert data["failed"] == 1
    assert data["results"]["failed"][0]["email"] == "bad@example.com"


def test_campaign_validation(client, db, customer, admin_headers, customer_headers, sent_emails):
    body = {"campaignName": "Promo", "subject": "Hi", "content": "Body"}
    assert client.post("/api/email/send-campaign", json=body, headers=customer_headers).status_code == 403
    assert client.post("/api/email/send-campaign", json={**body, "content": ""},
                       headers=admin_headers).status_code == 400
    assert client.post("/api/email/send-campaign", json={**body, "recipientType": "vip"},
                       headers=admin_headers).status_code == 400

    customer.marketing_opt_in = False
    db.commit()
    r = client.post("/api/email/send-campaign", json=body, headers=admin_headers)
    assert r.status_code == 400
    assert r.json() == {"error": "No subscribers found for this campaign"}


def test_unsubscribe(client, db, customer):
    r = client.get("/api/unsubscribe", params={"token": unsubscribe_token("alice@example.com")})
    assert r.status_code == 200
    db.expire_all()
    assert db.get(User, customer.id).marketing_opt_in is False
    assert client.get("/api/unsubscribe", params={"token": "bm9ib2R5"}).status_code == 400


# ─── Transport ─────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_send_email_posts_to_resend(monkeypatch):
    captured = {}

    def handler(request: httpx.Request):
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["authorization"]
        captured["body"] = request.read()
        return httpx.Response(200, json={"id": "re_123"})

    real_client = httpx.AsyncClient
    monkeypatch.setattr(email_servicer.httpx, "AsyncClient",
                        lambda **kw: real_client(transport=httpx.MockTransport(handler), **kw))

    email_id = await EmailService().send_email("pat@example.com", "Hello", "<p>Hi</p>")
    assert email_id == "re_123"
    assert captured["url"] == f"{settings.RESEND_API_URL}/emails"
    assert captured["auth"] == "Bearer re_test_key"
    assert b'"to":["pat@example.com"]' in captured["body"].replace(b" ", b"")


@pytest.mark.asyncio
async def test_send_email_errors(monkeypatch):
    real_client = httpx.AsyncClient
    monkeypatch.setattr(email_servicer.httpx, "AsyncClient", lambda **kw: real_client(
        transport=httpx.MockTransport(lambda request: httpx.Response(422, text="invalid from")), **kw))
    with pytest.raises(EmailSendError):
        await EmailService().send_email("pat@example.com", "Hello", "<p>Hi</p>")

    monkeypatch.setattr(settings, "RESEND_API_KEY", None)
    with pytest.raises(EmailSendError):
        await EmailService().send_email("pat@example.com", "Hello", "<p>Hi</p>")
