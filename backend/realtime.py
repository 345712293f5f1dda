"""
Live push channel: tracks each user's open dashboard sockets.

WhatsApp events go to every socket since the bridge is shared by the whole
deployment; per-user events such as settings changes only reach the sockets
opened with that user's session.
"""
import asyncio
import json
import logging
from typing import Any, Dict, List

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def encode_event(event: str, data: Any) -> str:
    return json.dumps({"event": event, "data": data}, default=str)


class ConnectionManager:
    def __init__(self):
        self.sockets_by_user: Dict[str, List[WebSocket]] = {}

    @property
    def connection_count(self) -> int:
        return sum(len(sockets) for sockets in self.sockets_by_user.values())

    def sockets_for(self, user_id: str) -> List[WebSocket]:
        return list(self.sockets_by_user.get(user_id, ()))

    async def connect(self, websocket: WebSocket, user_id: str):
        await websocket.accept()
        self.sockets_by_user.setdefault(user_id, []).append(websocket)
        logger.info(f"WebSocket opened for user {user_id}. Total: {self.connection_count}")

    def disconnect(self, websocket: WebSocket, user_id: str):
        sockets = self.sockets_by_user.get(user_id)
        if sockets is None:
            return
        if websocket in sockets:
            sockets.remove(websocket)
        if not sockets:
            del self.sockets_by_user[user_id]
        logger.info(f"WebSocket closed for user {user_id}. Total: {self.connection_count}")

    async def send_to_all(self, event: str, data: Any):
        """Push an event to every open socket"""
        targets = [(user_id, socket) for user_id, sockets in self.sockets_by_user.items() for socket in sockets]
        await self._deliver(targets, encode_event(event, data))

    async def send_to_user(self, user_id: str, event: str, data: Any):
        """Push an event to the sockets opened by one user"""
        targets = [(user_id, socket) for socket in self.sockets_for(user_id)]
        await self._deliver(targets, encode_event(event, data))

    async def send_to_client(self, websocket: WebSocket, event: str, data: Any):
        await websocket.send_text(encode_event(event, data))

    async def _deliver(self, targets, message: str):
        if not targets:
            return
        results = await asyncio.gather(
            *(socket.send_text(message) for _, socket in targets),
            return_exceptions=True,
        )
        # Sockets that fail a send are gone; forget them
        for (user_id, socket), result in zip(targets, results):
            if isinstance(result, Exception):
                logger.error(f"Dropping WebSocket for user {user_id}: {result}")
                self.disconnect(socket, user_id)
