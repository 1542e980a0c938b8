import json

from pizzeria.model import Notification
from pizzeria.utils.auth.jwt_handler import create_access_token

from conftest import pickup_order


def _token(user):
    return create_access_token({"user_id": user.id, "username": user.username, "role": user.role})


def test_ping_pong(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}


def test_registration_requires_valid_token(client, customer):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "register", "client": "customer"})
        assert ws.receive_json()["type"] == "error"
        ws.send_json({"type": "register", "client": "customer", "token": "garbage"})
        assert ws.receive_json()["type"] == "error"
        ws.send_text("not json")
        assert ws.receive_json() == {"type": "error", "message": "Invalid JSON"}


def test_kitchen_registration_requires_staff(client, customer):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "register", "client": "kitchen", "token": _token(customer)})
        assert ws.receive_json() == {"type": "error", "message": "Kitchen registration requires a staff account"}


def test_kitchen_receives_new_orders_and_updates(client, menu, kitchen_user, kitchen_headers):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "register", "client": "kitchen", "token": _token(kitchen_user)})
        assert ws.receive_json() == {"type": "registered", "client": "kitchen"}

        order_id = client.post("/api/orders/", json=pickup_order(menu)).json()["id"]
        event = ws.receive_json()
        assert event["type"] == "newOrder"
        assert event["order"]["id"] == order_id
        assert event["order"]["items"][0]["name"] == "Cheese Pizza"

        client.patch(f"/api/orders/{order_id}/status", json={"status": "cooking"}, headers=kitchen_headers)
        event = ws.receive_json()
        assert event["type"] == "orderStatusUpdate"
        assert event["order"]["status"] == "cooking"
        assert event["previousStatus"] == "pending"

        client.patch(f"/api/orders/{order_id}/payment", json={"paymentStatus": "paid"}, headers=kitchen_headers)
        assert ws.receive_json()["type"] == "paymentCompleted"


def test_customer_receives_own_order_updates(client, db, menu, customer, customer_headers, kitchen_headers):
    order_id = client.post("/api/orders/", json=pickup_order(menu), headers=customer_headers).json()["id"]
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "register", "client": "customer", "token": _token(customer)})
        assert ws.receive_json() == {"type": "registered", "client": "customer", "userId": customer.id}

        client.patch(f"/api/orders/{order_id}/status", json={"status": "cooking"}, headers=kitchen_headers)
        event = ws.receive_json()
        assert event["type"] == "orderStatusUpdate"
        assert event["order"]["id"] == order_id

    row = db.query(Notification).filter(Notification.user_id == customer.id).one()
    assert row.delivered is True


def test_missed_updates_are_replayed_on_register(client, db, menu, customer, customer_headers, kitchen_headers):
    order_id = client.post("/api/orders/", json=pickup_order(menu), headers=customer_headers).json()["id"]
    client.patch(f"/api/orders/{order_id}/status", json={"status": "cooking"}, headers=kitchen_headers)
    client.patch(f"/api/orders/{order_id}/status", json={"status": "completed"}, headers=kitchen_headers)

    pending = db.query(Notification).filter(Notification.delivered.is_(False)).count()
    assert pending == 2

    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "register", "client": "customer", "token": _token(customer)})
        assert ws.receive_json()["type"] == "registered"
        replayed = [ws.receive_json(), ws.receive_json()]
        assert [e["order"]["status"] for e in replayed] == ["cooking", "completed"]
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}

    db.expire_all()
    assert db.query(Notification).filter(Notification.delivered.is_(False)).count() == 0
    assert json.loads(db.query(Notification).first().message)["type"] == "orderStatusUpdate"
