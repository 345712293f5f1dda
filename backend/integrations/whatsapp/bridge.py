"""
Event socket backed by the WhatsApp bridge process.

The bridge runs the messaging-socket library and relays its events as JSON
frames `{"event": ..., "data": ...}` over a websocket. We send it
`{"type": "start", "creds": ...}` to begin a session and `{"type": "end"}`
to stop it.
"""
import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import websockets

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], Awaitable[None]]


class BridgeSocket:
    def __init__(self, url: str, credentials: Optional[Dict[str, Any]] = None):
        self.url = url
        self.credentials = credentials
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._connection = None
        self._reader: Optional[asyncio.Task] = None
        self._ended = False

    def on(self, event: str, handler: EventHandler):
        self._handlers.setdefault(event, []).append(handler)

    async def emit(self, event: str, data: Any):
        for handler in list(self._handlers.get(event, [])):
            await handler(data)

    async def start(self):
        self._connection = await websockets.connect(self.url)
        await self._connection.send(json.dumps({"type": "start", "creds": self.credentials}))
        self._reader = asyncio.create_task(self._read_loop())
        logger.info(f"WhatsApp bridge connected at {self.url}")

    async def _read_loop(self):
        try:
            async for raw in self._connection:
                try:
                    frame = json.loads(raw)
                except json.JSONDecodeError:
                    logger.error(f"Invalid JSON from WhatsApp bridge: {raw!r}")
                    continue
                event = frame.get("event")
                data = frame.get("data")
                if event == "connection.update" and (data or {}).get("connection") == "close":
                    self._ended = True
                if event:
                    await self.emit(event, data)
        except websockets.ConnectionClosed as e:
            logger.warning(f"WhatsApp bridge connection closed: {e}")

        if not self._ended:
            # Bridge went away without reporting a close of its own
            await self.emit("connection.update", {"connection": "close", "lastDisconnect": {"statusCode": None}})

    async def end(self):
        self._ended = True
        if self._connection is not None:
            try:
                await self._connection.send(json.dumps({"type": "end"}))
            except websockets.ConnectionClosed:
                pass
            await self._connection.close()
        if self._reader is not None and self._reader is not asyncio.current_task():
            self._reader.cancel()
        logger.info("WhatsApp bridge socket ended")
