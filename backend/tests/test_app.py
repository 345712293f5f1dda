import asyncio
import json

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app import app
from crud import pages as pages_crud
from realtime import ConnectionManager


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["timestamp"]


def test_validation_errors_use_error_shape(client: TestClient, auth_context: dict) -> None:
    response = client.post("/api/tasks", json={"title": "x", "priority": "urgent"}, headers=auth_context["headers"])
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"].startswith("priority")


def test_unexpected_failure_is_generic_500(client: TestClient, auth_context: dict, monkeypatch) -> None:
    def boom(db, user_id):
        raise RuntimeError("database went away")

    monkeypatch.setattr(pages_crud, "get_all_tags", boom)
    response = client.get("/api/pages/tags", headers=auth_context["headers"])
    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Failed to fetch tags"
    assert body["detail"] == "database went away"


def test_unknown_route_uses_error_shape(client: TestClient) -> None:
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Not Found"}


def test_websocket_sends_status_and_answers_ping(client: TestClient, auth_context: dict) -> None:
    token = auth_context["headers"]["Authorization"].split(" ", 1)[1]
    with client.websocket_connect(f"/ws?token={token}") as websocket:
        first = websocket.receive_json()
        assert first["event"] == "whatsapp:status"
        assert first["data"]["status"] in ("close", "connecting", "open")

        websocket.send_text(json.dumps({"event": "ping"}))
        assert websocket.receive_json()["event"] == "pong"

        websocket.send_text(json.dumps({"event": "status:request"}))
        assert websocket.receive_json()["event"] == "whatsapp:status"


def test_websocket_rejects_missing_session(client: TestClient) -> None:
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws?token=garbage") as websocket:
            websocket.receive_json()


class RecordingSocket:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def accept(self):
        pass

    async def send_text(self, text):
        if self.fail:
            raise RuntimeError("connection reset")
        self.sent.append(json.loads(text))


def test_broadcast_drops_dead_connections() -> None:
    manager = ConnectionManager()
    alive, dead = RecordingSocket(), RecordingSocket(fail=True)

    async def scenario():
        await manager.connect(alive, "user-1")
        await manager.connect(dead, "user-2")
        await manager.send_to_all("whatsapp:message", {"id": "m1"})

    asyncio.run(scenario())
    assert alive.sent == [{"event": "whatsapp:message", "data": {"id": "m1"}}]
    assert manager.sockets_by_user == {"user-1": [alive]}
    assert manager.connection_count == 1


def test_user_events_reach_only_that_users_sockets() -> None:
    manager = ConnectionManager()
    laptop, phone, stranger = RecordingSocket(), RecordingSocket(), RecordingSocket()

    async def scenario():
        await manager.connect(laptop, "user-1")
        await manager.connect(phone, "user-1")
        await manager.connect(stranger, "user-2")
        await manager.send_to_user("user-1", "settings:updated", {"workspaceTheme": "dark"})

    asyncio.run(scenario())
    assert laptop.sent == [{"event": "settings:updated", "data": {"workspaceTheme": "dark"}}]
    assert phone.sent == laptop.sent
    assert stranger.sent == []

    manager.disconnect(laptop, "user-1")
    manager.disconnect(phone, "user-1")
    assert manager.sockets_for("user-1") == []
    assert list(manager.sockets_by_user) == ["user-2"]


def test_settings_change_is_pushed_to_owner(client: TestClient, auth_context: dict,
                                            other_auth_context: dict, monkeypatch) -> None:
    manager = ConnectionManager()
    mine, theirs = RecordingSocket(), RecordingSocket()

    async def scenario():
        await manager.connect(mine, auth_context["user"]["id"])
        await manager.connect(theirs, other_auth_context["user"]["id"])

    asyncio.run(scenario())
    monkeypatch.setattr(app.state, "realtime", manager)

    response = client.patch("/api/settings", json={"workspaceTheme": "dark"}, headers=auth_context["headers"])
    assert response.status_code == 200
    assert [message["event"] for message in mine.sent] == ["settings:updated"]
    assert mine.sent[0]["data"]["workspaceTheme"] == "dark"
    assert theirs.sent == []
