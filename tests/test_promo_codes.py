from datetime import timedelta
from decimal import Decimal

from pizzeria.model import Order, PromoCode, UserVoucher
from pizzeria.utils.helper import utcnow

from conftest import pickup_order


def _promo(db, code="PIZZA10", discount="10", discount_type="percentage", min_order="0", max_uses=0,
           current_uses=0, is_active=True, starts_in_days=-1, ends_in_days=7):
    promo = PromoCode(
        code=code,
        name=f"{code} promo",
        discount=Decimal(discount),
        discount_type=discount_type,
        min_order_amount=Decimal(min_order),
        max_uses=max_uses,
        current_uses=current_uses,
        is_active=is_active,
        start_date=utcnow() + timedelta(days=starts_in_days),
        end_date=utcnow() + timedelta(days=ends_in_days),
    )
    db.add(promo)
    db.commit()
    return promo


def _window(start_days=-1, end_days=30):
    return {
        "startDate": (utcnow() + timedelta(days=start_days)).isoformat(),
        "endDate": (utcnow() + timedelta(days=end_days)).isoformat(),
    }


# ─── Validation ────────────────────────────────────────────────────────────────
def test_validate_promo_code(client, db):
    _promo(db, code="PIZZA10")
    r = client.post("/api/promo-codes/validate", json={"code": " pizza10 ", "orderTotal": 30})
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["code"] == "PIZZA10"
    assert data["valid"] is True
    assert data["discountType"] == "percentage"
    assert data["estimatedDiscount"] == 3.0


def test_invalid_promo_codes(client, db):
    _promo(db, code="OLD", starts_in_days=-10, ends_in_days=-1)
    _promo(db, code="SOON", starts_in_days=2, ends_in_days=9)
    _promo(db, code="OFF", is_active=False)
    for code in ("OLD", "SOON", "OFF", "NOPE"):
        r = client.post("/api/promo-codes/validate", json={"code": code})
        assert r.status_code == 400
        assert r.json() == {"error": "This promo code is not valid or has expired"}

    _promo(db, code="USEDUP", max_uses=2, current_uses=2)
    r = client.post("/api/promo-codes/validate", json={"code": "USEDUP"})
    assert r.json() == {"error": "This promo code has reached its maximum number of uses"}


def test_validate_checks_minimum_when_total_given(client, db):
    _promo(db, code="BIG", discount="5", discount_type="fixed", min_order="25")
    assert client.post("/api/promo-codes/validate", json={"code": "BIG"}).status_code == 200
    r = client.post("/api/promo-codes/validate", json={"code": "BIG", "orderTotal": 20})
    assert r.status_code == 400
    assert r.json() == {"error": "Promo code requires a minimum order of $25.00"}


# ─── Orders ────────────────────────────────────────────────────────────────────
def test_promo_discount_applies_to_order(client, db, menu):
    _promo(db, code="PIZZA10", max_uses=1)
    r = client.post("/api/orders/", json=pickup_order(menu, promoCode="pizza10"))
    assert r.status_code == 201, r.text
    order = r.json()
    assert order["promoCode"] == "PIZZA10"
    assert order["discount"] == 2.0
    # (20 - 2) * 0.0825 = 1.485 -> 1.49
    assert order["tax"] == 1.49
    assert order["total"] == 19.49

    db.expire_all()
    assert db.query(PromoCode).one().current_uses == 1

    r = client.post("/api/orders/", json=pickup_order(menu, promoCode="PIZZA10"))
    assert r.status_code == 400
    assert "maximum number of uses" in r.json()["error"]


def test_promo_rules_on_orders(client, db, menu, customer, customer_headers):
    _promo(db, code="FIVE", discount="5", discount_type="fixed", min_order="30")
    r = client.post("/api/orders/", json=pickup_order(menu, promoCode="FIVE"))
    assert r.status_code == 400
    assert db.query(Order).count() == 0
    db.expire_all()
    assert db.query(PromoCode).one().current_uses == 0

    db.add(UserVoucher(user_id=customer.id, voucher_code="SAVE5", discount_amount=Decimal("5"),
                       expires_at=utcnow() + timedelta(days=1)))
    db.commit()
    _promo(db, code="TEN", discount="10")
    r = client.post("/api/orders/", json=pickup_order(menu, promoCode="TEN", voucherCode="SAVE5"),
                    headers=customer_headers)
    assert r.status_code == 400
    assert r.json() == {"error": "Promo codes cannot be combined with vouchers"}


# ─── Admin ─────────────────────────────────────────────────────────────────────
def test_admin_promo_code_crud(client, admin_headers, customer_headers):
    body = {"code": "summer", "name": "Summer", "discount": 15, "discountType": "percentage", **_window()}
    assert client.post("/api/admin/promo-codes", json=body, headers=customer_headers).status_code == 403

    r = client.post("/api/admin/promo-codes", json=body, headers=admin_headers)
    assert r.status_code == 201, r.text
    promo = r.json()
    assert promo["code"] == "SUMMER"
    assert promo["currentUses"] == 0
    assert client.post("/api/admin/promo-codes", json=body, headers=admin_headers).status_code == 400

    r = client.put(f"/api/admin/promo-codes/{promo['id']}", json={"maxUses": 100, "isActive": False},
                   headers=admin_headers)
    assert r.status_code == 200
    assert (r.json()["maxUses"], r.json()["isActive"]) == (100, False)

    listed = client.get("/api/admin/promo-codes", headers=admin_headers).json()
    assert [p["code"] for p in listed] == ["SUMMER"]

    assert client.delete(f"/api/admin/promo-codes/{promo['id']}", headers=admin_headers).json() == {
        "message": "Promo code deleted"
    }
    assert client.get("/api/admin/promo-codes", headers=admin_headers).json() == []


def test_admin_promo_code_validation(client, admin_headers):
    body = {"code": "BAD", "name": "Bad", "discount": 150, "discountType": "percentage", **_window()}
    assert client.post("/api/admin/promo-codes", json=body, headers=admin_headers).status_code == 400

    body = {"code": "BACKWARDS", "name": "Backwards", "discount": 5, "discountType": "fixed",
            **_window(start_days=5, end_days=1)}
    assert client.post("/api/admin/promo-codes", json=body, headers=admin_headers).status_code == 400
