from typing import Dict, Set
from fastapi import WebSocket
import asyncio
import json
import logging

logger = logging.getLogger(__name__)


class WebSocketManager:
    def __init__(self):
        # user_id -> set(WebSocket) for registered customers
        self.active_connections: Dict[str, Set[WebSocket]] = {}
        # staff screens subscribed to kitchen events
        self.kitchen_connections: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket):
        await websocket.accept()

    async def register_customer(self, websocket: WebSocket, user_id: str | int):
        async with self._lock:
            self.active_connections.setdefault(str(user_id), set()).add(websocket)

    async def register_kitchen(self, websocket: WebSocket):
        async with self._lock:
            self.kitchen_connections.add(websocket)

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            for uid, sockets in list(self.active_connections.items()):
                if websocket in sockets:
                    sockets.remove(websocket)
                    if not sockets:
                        del self.active_connections[uid]
                    break
            self.kitchen_connections.discard(websocket)

    async def send_personal_message(self, user_id: str | int, message_obj) -> bool:
        payload = message_obj if isinstance(message_obj, str) else json.dumps(message_obj, default=str)
        sockets = list(self.active_connections.get(str(user_id), set()))
        delivered = False
        for ws in sockets:
            try:
                await ws.send_text(payload)
                delivered = True
            except Exception:
                await self.disconnect(ws)
        return delivered

    async def broadcast_kitchen(self, message_obj) -> int:
        payload = message_obj if isinstance(message_obj, str) else json.dumps(message_obj, default=str)
        sent = 0
        for ws in list(self.kitchen_connections):
            try:
                await ws.send_text(payload)
                sent += 1
            except Exception:
                await self.disconnect(ws)
        if sent:
            logger.debug("Broadcast %s to %s kitchen sockets", payload[:40], sent)
        return sent


ws_manager = WebSocketManager()
