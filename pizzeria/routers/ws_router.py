import json
import logging

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from pizzeria.crud import notification_crud
# Use SessionLocal directly for WS endpoints
from pizzeria.database import SessionLocal
from pizzeria.utils.auth.jwt_bearer import is_staff, resolve_token
from pizzeria.utils.ws_manager import ws_manager

logger = logging.getLogger(__name__)

router = APIRouter()


async def _send(websocket: WebSocket, message: dict):
    await websocket.send_text(json.dumps(message))


async def _register(websocket: WebSocket, db: Session, data: dict):
    client = data.get("client")
    if client not in ("kitchen", "customer"):
        await _send(websocket, {"type": "error", "message": "client must be 'kitchen' or 'customer'"})
        return
    token = data.get("token")
    if not token:
        await _send(websocket, {"type": "error", "message": "token is required"})
        return
    try:
        payload = resolve_token(db, token)
    except HTTPException as e:
        await _send(websocket, {"type": "error", "message": e.detail})
        return

    if client == "kitchen":
        if not is_staff(payload):
            await _send(websocket, {"type": "error", "message": "Kitchen registration requires a staff account"})
            return
        await ws_manager.register_kitchen(websocket)
        await _send(websocket, {"type": "registered", "client": "kitchen"})
        logger.info("Kitchen screen registered by user %s", payload["user_id"])
        return

    user_id = payload["user_id"]
    await ws_manager.register_customer(websocket, user_id)
    await _send(websocket, {"type": "registered", "client": "customer", "userId": user_id})

    # replay order updates missed while offline
    undelivered = notification_crud.get_undelivered(db, user_id)
    for notif in undelivered:
        await websocket.send_text(notif.message)
    notification_crud.mark_delivered(db, [n.id for n in undelivered])


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await ws_manager.connect(websocket)
    db: Session = SessionLocal()
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except ValueError:
                await _send(websocket, {"type": "error", "message": "Invalid JSON"})
                continue
            if not isinstance(data, dict):
                await _send(websocket, {"type": "error", "message": "Invalid message"})
                continue

            message_type = data.get("type")
            if message_type == "ping":
                await _send(websocket, {"type": "pong"})
            elif message_type == "register":
                await _register(websocket, db, data)
            else:
                await _send(websocket, {"type": "error", "message": "Unsupported message type"})
    except WebSocketDisconnect:
        pass
    finally:
        await ws_manager.disconnect(websocket)
        db.close()
