import os
import tempfile
import uuid

# Point the app at throwaway storage before anything imports config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["WHATSAPP_AUTH_DIR"] = tempfile.mkdtemp(prefix="exeai-wa-")
os.environ["WHATSAPP_AUTO_CONNECT"] = "false"

import pytest
from fastapi.testclient import TestClient

from app import app
from database import SessionLocal, engine
from integrations.whatsapp.session import WhatsAppSessionManager
from integrations.whatsapp.store import FileCredentialStore, MessageBuffer
from models import Base

PASSWORD = "supersecret"


class FakeSocket:
    """Stands in for the bridge socket; tests push events with emit()"""

    def __init__(self, credentials=None):
        self.credentials = credentials
        self.handlers = {}
        self.started = False
        self.ended = False

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    async def emit(self, event, data):
        for handler in list(self.handlers.get(event, [])):
            await handler(data)

    async def start(self):
        self.started = True

    async def end(self):
        self.ended = True
        await self.emit("connection.update", {"connection": "close", "lastDisconnect": {"statusCode": 428}})


class FakeSocketFactory:
    def __init__(self):
        self.sockets = []

    def __call__(self, credentials):
        socket = FakeSocket(credentials)
        self.sockets.append(socket)
        return socket

    @property
    def latest(self) -> FakeSocket:
        return self.sockets[-1]


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


def register(client: TestClient, email: str = None, name: str = "Test User") -> dict:
    """Sign up and sign in; returns auth headers and the public user"""
    email = email or f"user-{uuid.uuid4().hex}@example.com"
    response = client.post("/api/auth/signup", json={"email": email, "password": PASSWORD, "name": name})
    assert response.status_code == 200, response.text
    response = client.post("/api/auth/signin", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    # Authenticate with the header only
    client.cookies.clear()
    body = response.json()
    return {"headers": {"Authorization": f"Bearer {body['token']}"}, "user": body["user"]}


@pytest.fixture()
def auth_context(client: TestClient) -> dict:
    return register(client)


@pytest.fixture()
def other_auth_context(client: TestClient) -> dict:
    return register(client, name="Someone Else")


@pytest.fixture()
def socket_factory() -> FakeSocketFactory:
    return FakeSocketFactory()


@pytest.fixture()
def whatsapp_manager(tmp_path, socket_factory):
    manager = WhatsAppSessionManager(
        socket_factory=socket_factory,
        credential_store=FileCredentialStore(str(tmp_path / "whatsapp_auth")),
        message_buffer=MessageBuffer(),
        reconnect_delay=0,
    )
    previous = app.state.whatsapp
    app.state.whatsapp = manager
    yield manager
    app.state.whatsapp = previous
