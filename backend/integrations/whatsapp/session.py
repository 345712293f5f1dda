"""
WhatsApp session manager.

One instance per application. It owns the socket to the linked device, the
pairing QR challenge, the connection status and the inbox buffer, and tells
registered listeners about status changes and new messages.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import Request

from config import WHATSAPP_AUTH_DIR, WHATSAPP_BRIDGE_URL
from integrations.whatsapp.bridge import BridgeSocket
from integrations.whatsapp.store import FileCredentialStore, MessageBuffer
from schemas.message_schema import create_message_from_whatsapp, message_to_dict

logger = logging.getLogger(__name__)

# Disconnect code the device reports after the user unlinks it
LOGGED_OUT = 401
RECONNECT_DELAY_SECONDS = 3.0

Listener = Callable[[str, Dict[str, Any]], Awaitable[None]]
SocketFactory = Callable[[Optional[Dict[str, Any]]], Any]


def bridge_socket_factory(credentials: Optional[Dict[str, Any]]) -> BridgeSocket:
    return BridgeSocket(WHATSAPP_BRIDGE_URL, credentials)


def log_task_failure(task: asyncio.Task):
    if not task.cancelled() and task.exception() is not None:
        logger.error(f"WhatsApp background task failed: {task.exception()}")


class WhatsAppSessionManager:
    def __init__(self, socket_factory: SocketFactory = None,
                 credential_store: FileCredentialStore = None,
                 message_buffer: MessageBuffer = None,
                 reconnect_delay: float = RECONNECT_DELAY_SECONDS):
        self.socket_factory = socket_factory or bridge_socket_factory
        self.credential_store = credential_store or FileCredentialStore(WHATSAPP_AUTH_DIR)
        self.message_buffer = message_buffer or MessageBuffer()
        self.reconnect_delay = reconnect_delay

        self.status = "close"  # close, connecting, open
        self.qr: Optional[str] = None
        self.socket = None
        self.reconnect_task: Optional[asyncio.Task] = None
        self.restore_task: Optional[asyncio.Task] = None

        self._lock = asyncio.Lock()
        self._closing = False
        self._listeners: List[Listener] = []

    # ===== Observers =====

    def add_listener(self, listener: Listener):
        self._listeners.append(listener)

    async def _emit(self, event: str, data: Dict[str, Any]):
        for listener in list(self._listeners):
            try:
                await listener(event, data)
            except Exception as e:
                logger.error(f"WhatsApp listener failed on {event}: {e}")

    def state(self) -> Dict[str, Any]:
        return {"status": self.status, "qrCode": self.qr}

    def messages(self) -> List[Dict[str, Any]]:
        return [message_to_dict(message) for message in self.message_buffer.list()]

    def has_credentials(self) -> bool:
        return self.credential_store.exists()

    async def _set_status(self, status: str, qr: Optional[str] = None):
        changed = status != self.status or qr != self.qr
        self.status = status
        self.qr = qr
        if changed:
            logger.info(f"WhatsApp status: {status}{' (QR pending)' if qr else ''}")
            await self._emit("whatsapp:status", self.state())

    # ===== Lifecycle =====

    async def connect(self):
        """Open a socket to the linked device; no-op while one is already live"""
        async with self._lock:
            if self.socket is not None and self.status in ("connecting", "open"):
                logger.info("WhatsApp already connecting or connected")
                return

            self._closing = False
            await self._set_status("connecting")

            socket = self.socket_factory(self.credential_store.load())
            socket.on("connection.update", self._on_connection_update)
            socket.on("messages.upsert", self._on_messages_upsert)
            socket.on("creds.update", self._on_creds_update)
            self.socket = socket

            try:
                await socket.start()
            except Exception as e:
                logger.error(f"Failed to start WhatsApp socket: {e}")
                self.socket = None
                await self._set_status("close")

    def restore(self) -> asyncio.Task:
        """Reconnect in the background with the stored device credentials"""
        self.restore_task = asyncio.create_task(self.connect())
        self.restore_task.add_done_callback(log_task_failure)
        return self.restore_task

    async def disconnect(self):
        """Log out: end the socket, reset state and forget the linked device"""
        await self._shutdown()
        self.credential_store.clear()
        logger.info("WhatsApp disconnected")

    async def close(self):
        """End the socket but keep credentials for the next start"""
        await self._shutdown()

    async def _shutdown(self):
        async with self._lock:
            self._closing = True
            if self.reconnect_task is not None and not self.reconnect_task.done():
                self.reconnect_task.cancel()
            self.reconnect_task = None
            if self.restore_task is not None and not self.restore_task.done():
                self.restore_task.cancel()
            self.restore_task = None

            socket, self.socket = self.socket, None
            if socket is not None:
                await socket.end()
            await self._set_status("close")

    async def _reconnect(self):
        await asyncio.sleep(self.reconnect_delay)
        if not self._closing:
            logger.info("Reconnecting WhatsApp...")
            await self.connect()

    # ===== Socket events =====

    async def _on_connection_update(self, update: Dict[str, Any]):
        update = update or {}
        connection = update.get("connection")

        if update.get("qr"):
            await self._set_status("connecting", qr=update["qr"])

        if connection == "open":
            await self._set_status("open")
        elif connection == "close":
            status_code = (update.get("lastDisconnect") or {}).get("statusCode")
            self.socket = None
            await self._set_status("close")

            if self._closing:
                return
            if status_code == LOGGED_OUT:
                logger.info("WhatsApp device logged out, clearing credentials")
                self.credential_store.clear()
                return

            logger.info(f"WhatsApp connection closed (status {status_code}), scheduling reconnect")
            self.reconnect_task = asyncio.create_task(self._reconnect())

    async def _on_messages_upsert(self, upsert: Dict[str, Any]):
        upsert = upsert or {}
        if upsert.get("type") != "notify":
            return

        for raw in upsert.get("messages") or []:
            message = create_message_from_whatsapp(raw)
            if message is None:
                continue
            if self.message_buffer.add(message):
                await self._emit("whatsapp:message", message_to_dict(message))

    async def _on_creds_update(self, creds: Dict[str, Any]):
        self.credential_store.save(creds)


def get_whatsapp_manager(request: Request) -> WhatsAppSessionManager:
    """Dependency returning the application's session manager"""
    return request.app.state.whatsapp
