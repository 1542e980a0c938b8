from datetime import datetime, timedelta, timezone
from decimal import Decimal

from pizzeria.model import (
    Category,
    ChoiceGroup,
    ChoiceItem,
    Order,
    OrderStatusLog,
    PointsTransaction,
    UserPoints,
    UserVoucher,
)
from pizzeria.utils.helper import utcnow

from conftest import pickup_order


def _voucher(db, user, code="SAVE5", amount="5.00", discount_type="fixed", min_order="0", expires_in_days=7):
    voucher = UserVoucher(
        user_id=user.id,
        voucher_code=code,
        discount_amount=Decimal(amount),
        discount_type=discount_type,
        min_order_amount=Decimal(min_order),
        status="active",
        expires_at=utcnow() + timedelta(days=expires_in_days),
    )
    db.add(voucher)
    db.commit()
    return voucher


# ─── Creation & pricing ────────────────────────────────────────────────────────
def test_guest_pickup_order_is_priced_server_side(client, menu):
    r = client.post("/api/orders/", json=pickup_order(menu))
    assert r.status_code == 201, r.text
    order = r.json()
    assert order["status"] == "pending"
    assert order["paymentStatus"] == "pending"
    assert order["userId"] is None
    assert order["subtotal"] == 20.0
    assert order["tax"] == 1.65
    assert order["deliveryFee"] == 0.0
    assert order["total"] == 21.65
    assert len(order["items"]) == 1
    assert order["items"][0]["name"] == "Cheese Pizza"


def test_choice_items_are_added_to_unit_price(client, menu):
    body = pickup_order(menu, items=[{
        "menuItemId": menu["pizza"],
        "quantity": 2,
        "price": 1.0,
        "options": [{"choiceItemId": menu["pepperoni"], "name": "Pepperoni"}],
    }])
    order = client.post("/api/orders/", json=body).json()
    assert order["items"][0]["price"] == 11.5
    assert order["subtotal"] == 23.0
    assert order["tax"] == 1.9
    assert order["total"] == 24.9


def test_legacy_options_accept_client_price_only_within_band(client, menu):
    inside = pickup_order(menu, items=[{"menuItemId": menu["pizza"], "quantity": 1, "price": 14.0,
                                        "options": {"size": "Large"}}])
    assert client.post("/api/orders/", json=inside).json()["subtotal"] == 14.0

    outside = pickup_order(menu, items=[{"menuItemId": menu["pizza"], "quantity": 1, "price": 0.01,
                                         "options": {"size": "Large"}}])
    assert client.post("/api/orders/", json=outside).json()["subtotal"] == 10.0


def test_delivery_adds_fee_and_requires_address(client, menu):
    r = client.post("/api/orders/", json=pickup_order(menu, orderType="delivery"))
    assert r.status_code == 400

    r = client.post("/api/orders/", json=pickup_order(menu, orderType="delivery", address="1 Elm St", tip=2))
    assert r.status_code == 201
    order = r.json()
    assert order["deliveryFee"] == 3.99
    assert order["tip"] == 2.0
    assert order["total"] == 27.64


def test_unavailable_items_are_rejected(client, menu):
    body = pickup_order(menu, items=[{"menuItemId": menu["calzone"], "quantity": 1}])
    assert client.post("/api/orders/", json=body).status_code == 400

    body = pickup_order(menu, items=[{"menuItemId": 9999, "quantity": 1}])
    assert client.post("/api/orders/", json=body).status_code == 400

    body = pickup_order(menu, items=[{"menuItemId": menu["pizza"], "quantity": 1,
                                      "options": [{"choiceItemId": menu["truffle"]}]}])
    assert client.post("/api/orders/", json=body).status_code == 400


def test_items_in_closed_categories_are_rejected(client, db, menu):
    pizza_category = Category(name="Pizza", is_temporarily_unavailable=True)
    db.add(pizza_category)
    db.commit()
    r = client.post("/api/orders/", json=pickup_order(menu))
    assert r.status_code == 400
    assert r.json() == {"error": f"Menu item {menu['pizza']} is not available"}

    pizza_category.is_temporarily_unavailable = False
    pizza_category.is_active = False
    db.commit()
    assert client.post("/api/orders/", json=pickup_order(menu)).status_code == 400

    pizza_category.is_active = True
    db.commit()
    assert client.post("/api/orders/", json=pickup_order(menu)).status_code == 201


def test_choice_items_must_come_from_a_linked_group(client, db, menu):
    sauces = ChoiceGroup(name="Dipping Sauces")
    db.add(sauces)
    db.flush()
    ranch = ChoiceItem(choice_group_id=sauces.id, name="Ranch", price=Decimal("0.75"))
    db.add(ranch)
    db.commit()

    body = pickup_order(menu, items=[{"menuItemId": menu["pizza"], "quantity": 1,
                                      "options": [{"choiceItemId": menu["pepperoni"]}, {"choiceItemId": ranch.id}]}])
    r = client.post("/api/orders/", json=body)
    assert r.status_code == 400
    assert r.json() == {"error": f"Choice items [{ranch.id}] are not offered for menu item {menu['pizza']}"}
    assert db.query(Order).count() == 0


def test_order_requires_items_and_phone(client, menu):
    assert client.post("/api/orders/", json=pickup_order(menu, items=[])).status_code == 400
    assert client.post("/api/orders/", json=pickup_order(menu, phone="  ")).status_code == 400


def test_scheduled_time_must_parse_and_be_in_future(client, menu):
    r = client.post("/api/orders/", json=pickup_order(menu, fulfillmentTime="scheduled", scheduledTime="soon"))
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid scheduled time"}

    past = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
    r = client.post("/api/orders/", json=pickup_order(menu, fulfillmentTime="scheduled", scheduledTime=past))
    assert r.status_code == 400

    future = (datetime.now(timezone.utc) + timedelta(hours=3)).strftime("%Y-%m-%dT%H:%M:%SZ")
    r = client.post("/api/orders/", json=pickup_order(menu, fulfillmentTime="scheduled", scheduledTime=future))
    assert r.status_code == 201
    assert r.json()["fulfillmentTime"] == "scheduled"


def test_order_creation_writes_initial_status_log(client, db, menu):
    order_id = client.post("/api/orders/", json=pickup_order(menu)).json()["id"]
    logs = db.query(OrderStatusLog).filter(OrderStatusLog.order_id == order_id).all()
    assert len(logs) == 1
    assert logs[0].from_status is None
    assert logs[0].to_status.value == "pending"


def test_customer_cannot_mark_own_order_paid(client, menu, customer_headers):
    r = client.post("/api/orders/", json=pickup_order(menu, paymentStatus="paid"), headers=customer_headers)
    assert r.status_code == 403


# ─── Vouchers ──────────────────────────────────────────────────────────────────
def test_fixed_voucher_is_consumed_with_the_order(client, db, menu, customer, customer_headers):
    _voucher(db, customer)
    r = client.post("/api/orders/", json=pickup_order(menu, voucherCode="SAVE5"), headers=customer_headers)
    assert r.status_code == 201, r.text
    order = r.json()
    assert order["discount"] == 5.0
    assert order["tax"] == 1.24
    assert order["total"] == 16.24
    assert order["voucherCode"] == "SAVE5"

    db.expire_all()
    voucher = db.query(UserVoucher).filter(UserVoucher.voucher_code == "SAVE5").one()
    assert voucher.status == "used"
    assert voucher.applied_to_order_id == order["id"]

    r = client.post("/api/orders/", json=pickup_order(menu, voucherCode="SAVE5"), headers=customer_headers)
    assert r.status_code == 400
    assert r.json() == {"error": "Voucher not found, expired, or already used"}


def test_percentage_and_delivery_fee_vouchers(client, db, menu, customer, customer_headers):
    _voucher(db, customer, code="TENPCT", amount="10", discount_type="percentage")
    _voucher(db, customer, code="FREEDEL", amount="10", discount_type="delivery_fee")

    order = client.post("/api/orders/", json=pickup_order(menu, voucherCode="TENPCT"),
                        headers=customer_headers).json()
    assert order["discount"] == 2.0
    assert order["total"] == 19.49

    body = pickup_order(menu, orderType="delivery", address="1 Elm St", voucherCode="FREEDEL")
    order = client.post("/api/orders/", json=body, headers=customer_headers).json()
    assert order["deliveryFee"] == 0.0
    assert order["discount"] == 3.99
    assert order["total"] == 21.65


def test_voucher_rules(client, db, menu, customer, other_customer, customer_headers):
    _voucher(db, customer, code="BIGSPEND", min_order="50")
    _voucher(db, customer, code="OLD", expires_in_days=-1)
    _voucher(db, other_customer, code="BOBS")

    assert client.post("/api/orders/", json=pickup_order(menu, voucherCode="SAVE5")).status_code == 401
    for code in ("BIGSPEND", "OLD", "BOBS"):
        r = client.post("/api/orders/", json=pickup_order(menu, voucherCode=code), headers=customer_headers)
        assert r.status_code == 400, code


def test_failed_order_leaves_voucher_active(client, db, menu, customer, customer_headers):
    _voucher(db, customer)
    body = pickup_order(menu, voucherCode="SAVE5", items=[{"menuItemId": menu["calzone"], "quantity": 1}])
    assert client.post("/api/orders/", json=body, headers=customer_headers).status_code == 400
    db.expire_all()
    assert db.query(UserVoucher).filter(UserVoucher.voucher_code == "SAVE5").one().status == "active"


# ─── Reading ───────────────────────────────────────────────────────────────────
def test_customers_see_only_their_orders(client, menu, customer_headers, other_headers, kitchen_headers):
    mine = client.post("/api/orders/", json=pickup_order(menu), headers=customer_headers).json()
    client.post("/api/orders/", json=pickup_order(menu), headers=other_headers)
    client.post("/api/orders/", json=pickup_order(menu))

    assert client.get("/api/orders/").status_code == 401
    listed = client.get("/api/orders/", headers=customer_headers).json()
    assert [o["id"] for o in listed] == [mine["id"]]
    assert len(client.get("/api/orders/", headers=kitchen_headers).json()) == 3

    assert client.get(f"/api/orders/{mine['id']}", headers=customer_headers).status_code == 200
    assert client.get(f"/api/orders/{mine['id']}", headers=other_headers).status_code == 404


# ─── Status workflow ───────────────────────────────────────────────────────────
def test_status_walks_the_transition_table(client, db, menu, kitchen_headers, kitchen_user):
    order_id = client.post("/api/orders/", json=pickup_order(menu)).json()["id"]

    for target in ("cooking", "completed", "picked_up"):
        r = client.patch(f"/api/orders/{order_id}/status", json={"status": target}, headers=kitchen_headers)
        assert r.status_code == 200, r.text
        assert r.json()["status"] == target

    logs = client.get(f"/api/orders/{order_id}/logs", headers=kitchen_headers).json()
    assert [(l["fromStatus"], l["toStatus"]) for l in logs] == [
        (None, "pending"),
        ("pending", "cooking"),
        ("cooking", "completed"),
        ("completed", "picked_up"),
    ]
    assert logs[-1]["changedBy"] == kitchen_user.id
    assert db.get(Order, order_id).completed_at is not None


def test_illegal_transition_is_409(client, menu, kitchen_headers):
    order_id = client.post("/api/orders/", json=pickup_order(menu)).json()["id"]
    r = client.patch(f"/api/orders/{order_id}", json={"status": "picked_up"}, headers=kitchen_headers)
    assert r.status_code == 409
    assert "cooking" in r.json()["error"]

    client.patch(f"/api/orders/{order_id}", json={"status": "cancelled"}, headers=kitchen_headers)
    r = client.patch(f"/api/orders/{order_id}", json={"status": "cooking"}, headers=kitchen_headers)
    assert r.status_code == 409


def test_reopening_a_completed_order_is_admin_only(client, menu, kitchen_headers, admin_headers):
    order_id = client.post("/api/orders/", json=pickup_order(menu)).json()["id"]
    client.patch(f"/api/orders/{order_id}", json={"status": "cooking"}, headers=kitchen_headers)
    client.patch(f"/api/orders/{order_id}", json={"status": "completed"}, headers=kitchen_headers)

    r = client.patch(f"/api/orders/{order_id}", json={"status": "cooking"}, headers=kitchen_headers)
    assert r.status_code == 403
    r = client.patch(f"/api/orders/{order_id}", json={"status": "cooking", "reason": "remake"},
                     headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["completedAt"] is None


def test_customers_cannot_change_status(client, menu, customer_headers):
    order_id = client.post("/api/orders/", json=pickup_order(menu), headers=customer_headers).json()["id"]
    r = client.patch(f"/api/orders/{order_id}/status", json={"status": "cancelled"}, headers=customer_headers)
    assert r.status_code == 403


# ─── Payment & points ──────────────────────────────────────────────────────────
def test_paid_order_awards_points_exactly_once(client, db, menu, customer, customer_headers, kitchen_headers):
    order_id = client.post("/api/orders/", json=pickup_order(menu), headers=customer_headers).json()["id"]

    for _ in range(2):
        r = client.patch(f"/api/orders/{order_id}/payment", json={"paymentStatus": "paid"}, headers=kitchen_headers)
        assert r.status_code == 200
        assert r.json()["paymentStatus"] == "paid"

    earned = db.query(PointsTransaction).filter(PointsTransaction.order_id == order_id).all()
    assert len(earned) == 1
    # floor(21.65) plus the first order bonus
    assert earned[0].points == 21 + 50
    balance = db.query(UserPoints).filter(UserPoints.user_id == customer.id).one()
    assert balance.points == 71
    assert balance.total_earned == 71


def test_second_paid_order_has_no_first_order_bonus(client, db, menu, customer, customer_headers, kitchen_headers):
    for _ in range(2):
        order_id = client.post("/api/orders/", json=pickup_order(menu), headers=customer_headers).json()["id"]
        client.patch(f"/api/orders/{order_id}/payment", json={"paymentStatus": "paid"}, headers=kitchen_headers)

    points = [tx.points for tx in db.query(PointsTransaction).order_by(PointsTransaction.id)]
    assert points == [71, 21]


def test_counter_order_paid_at_creation(client, db, menu, kitchen_user, kitchen_headers):
    r = client.post("/api/orders/", json=pickup_order(menu, paymentStatus="paid"), headers=kitchen_headers)
    assert r.status_code == 201
    order = r.json()
    assert order["paymentStatus"] == "paid"
    # counter orders do not belong to the staff member who rang them up
    assert order["userId"] is None
    assert db.query(PointsTransaction).count() == 0
    assert db.query(UserPoints).count() == 0
    log = db.query(OrderStatusLog).filter(OrderStatusLog.order_id == order["id"]).one()
    assert log.changed_by == kitchen_user.id


def test_counter_order_for_a_customer_earns_their_points(client, db, menu, customer, customer_headers,
                                                         kitchen_user, kitchen_headers):
    body = pickup_order(menu, paymentStatus="paid", customerId=customer.id)
    r = client.post("/api/orders/", json=body, headers=kitchen_headers)
    assert r.status_code == 201, r.text
    assert r.json()["userId"] == customer.id

    balance = db.query(UserPoints).filter(UserPoints.user_id == customer.id).one()
    assert balance.points == 71
    assert db.query(UserPoints).filter(UserPoints.user_id == kitchen_user.id).count() == 0
    assert [o["id"] for o in client.get("/api/orders/", headers=customer_headers).json()] == [r.json()["id"]]

    body = pickup_order(menu, customerId=9999)
    assert client.post("/api/orders/", json=body, headers=kitchen_headers).status_code == 404


def test_customers_cannot_order_for_someone_else(client, menu, customer, customer_headers, other_customer):
    body = pickup_order(menu, customerId=other_customer.id)
    assert client.post("/api/orders/", json=body, headers=customer_headers).status_code == 403
    body = pickup_order(menu, customerId=customer.id)
    assert client.post("/api/orders/", json=body, headers=customer_headers).status_code == 201


def test_refunded_orders_are_final(client, menu, kitchen_headers):
    order_id = client.post("/api/orders/", json=pickup_order(menu)).json()["id"]
    client.patch(f"/api/orders/{order_id}/payment", json={"paymentStatus": "refunded"}, headers=kitchen_headers)
    r = client.patch(f"/api/orders/{order_id}/payment", json={"paymentStatus": "paid"}, headers=kitchen_headers)
    assert r.status_code == 409
