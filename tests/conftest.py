"""Shared fixtures: in-memory SQLite, a TestClient, users of each role and a fake email transport."""
import os

# must be set before pizzeria.utils.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RESEND_API_KEY"] = "re_test_key"
os.environ.pop("SUPABASE_JWT_SECRET", None)

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from pizzeria.database import Base, SessionLocal, engine
from pizzeria.main import app
from pizzeria.model import ChoiceGroup, ChoiceItem, MenuItem, MenuItemChoiceGroup, Reward, SystemSetting, User
from pizzeria.utils.auth.jwt_handler import create_access_token, hash_password
from pizzeria.utils.email_servicer import email_service

PASSWORD = "secret123"


# ─── Database ──────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


# ─── Users ─────────────────────────────────────────────────────────────────────
def make_user(db, username, role="customer", email=None, marketing_opt_in=True, is_active=True):
    user = User(
        username=username,
        email=email or f"{username}@example.com",
        password=hash_password(PASSWORD),
        first_name=username.title(),
        last_name="Tester",
        role=role,
        is_active=is_active,
        marketing_opt_in=marketing_opt_in,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_header(user):
    token = create_access_token({"user_id": user.id, "username": user.username, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer(db):
    return make_user(db, "alice")


@pytest.fixture
def other_customer(db):
    return make_user(db, "bob")


@pytest.fixture
def kitchen_user(db):
    return make_user(db, "kitchen1", role="kitchen")


@pytest.fixture
def admin(db):
    return make_user(db, "boss", role="admin")


@pytest.fixture
def customer_headers(customer):
    return auth_header(customer)


@pytest.fixture
def other_headers(other_customer):
    return auth_header(other_customer)


@pytest.fixture
def kitchen_headers(kitchen_user):
    return auth_header(kitchen_user)


@pytest.fixture
def admin_headers(admin):
    return auth_header(admin)


# ─── Menu / rewards ────────────────────────────────────────────────────────────
@pytest.fixture
def menu(db):
    """A $10 pizza with a toppings group holding a $1.50 pepperoni, and a retired calzone."""
    pizza = MenuItem(name="Cheese Pizza", description="Classic", base_price=Decimal("10.00"), category="Pizza")
    calzone = MenuItem(name="Calzone", base_price=Decimal("9.00"), category="Calzones", is_available=False)
    toppings = ChoiceGroup(name="Toppings", max_selections=5)
    db.add_all([pizza, calzone, toppings])
    db.flush()
    pepperoni = ChoiceItem(choice_group_id=toppings.id, name="Pepperoni", price=Decimal("1.50"))
    hidden = ChoiceItem(choice_group_id=toppings.id, name="Truffle", price=Decimal("5.00"), is_active=False)
    db.add_all([pepperoni, hidden])
    db.add(MenuItemChoiceGroup(menu_item_id=pizza.id, choice_group_id=toppings.id))
    db.commit()
    return {"pizza": pizza.id, "calzone": calzone.id, "pepperoni": pepperoni.id, "truffle": hidden.id,
            "toppings": toppings.id}


@pytest.fixture
def reward(db):
    row = Reward(
        name="$5 Off",
        description="Five dollars off your order",
        points_required=100,
        discount_amount=Decimal("5.00"),
        discount_type="fixed",
        min_order_amount=Decimal("10.00"),
        voucher_validity_days=30,
        max_uses_per_user=1,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def advent_enabled(db):
    db.add(SystemSetting(setting_key="advent_calendar_enabled", setting_value="true", category="advent"))
    db.commit()


def pickup_order(menu, **overrides):
    body = {
        "orderType": "pickup",
        "phone": "555-0100",
        "customerName": "Alice",
        "items": [{"menuItemId": menu["pizza"], "quantity": 2, "price": 10.0}],
    }
    body.update(overrides)
    return body


# ─── Email ─────────────────────────────────────────────────────────────────────
@pytest.fixture
def sent_emails(monkeypatch):
    """Replace the Resend transport; every call is recorded and succeeds."""
    sent = []

    async def fake_send_email(to_email, subject, html_content, tags=None):
        sent.append({"to": to_email, "subject": subject, "html": html_content, "tags": tags or []})
        return f"email_{len(sent)}"

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return sent
