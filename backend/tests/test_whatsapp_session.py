import asyncio

from integrations.whatsapp.session import WhatsAppSessionManager
from integrations.whatsapp.store import FileCredentialStore, MessageBuffer
from schemas.message_schema import create_message_from_whatsapp


def raw_message(message_id: str, text: str = "hello", from_me: bool = False, push_name: str = "Asha") -> dict:
    return {
        "key": {"id": message_id, "remoteJid": "15551234567@s.whatsapp.net", "fromMe": from_me},
        "pushName": push_name,
        "message": {"conversation": text},
    }


def record_events(manager: WhatsAppSessionManager) -> list:
    events = []

    async def listener(event, data):
        events.append((event, data))

    manager.add_listener(listener)
    return events


def test_buffer_keeps_newest_fifty() -> None:
    buffer = MessageBuffer()
    for i in range(60):
        buffer.add(create_message_from_whatsapp(raw_message(f"m{i}")))

    ids = [m.id for m in buffer.list()]
    assert len(ids) == 50
    assert ids[0] == "m59"
    assert ids[-1] == "m10"


def test_buffer_ignores_duplicate_ids() -> None:
    buffer = MessageBuffer()
    assert buffer.add(create_message_from_whatsapp(raw_message("dup", "first"))) is True
    assert buffer.add(create_message_from_whatsapp(raw_message("dup", "second"))) is False
    assert len(buffer) == 1
    assert buffer.get("dup").content == "first"


def test_message_conversion() -> None:
    assert create_message_from_whatsapp(raw_message("own", from_me=True)) is None
    assert create_message_from_whatsapp({"key": {"id": "empty"}}) is None

    long_text = "x" * 80
    message = create_message_from_whatsapp(raw_message("long", long_text))
    assert message.preview == "x" * 50 + "..."
    assert message.content == long_text
    assert message.sender == "Asha"

    media = create_message_from_whatsapp({"key": {"id": "img", "remoteJid": "4477@s.whatsapp.net"},
                                          "message": {"imageMessage": {}}})
    assert media.content == "Media message"
    assert media.sender == "4477"


def test_qr_then_open_updates_status(whatsapp_manager, socket_factory) -> None:
    events = record_events(whatsapp_manager)

    async def scenario():
        await whatsapp_manager.connect()
        socket = socket_factory.latest
        assert socket.started
        await socket.emit("connection.update", {"qr": "2@challenge"})
        assert whatsapp_manager.state() == {"status": "connecting", "qrCode": "2@challenge"}
        await socket.emit("connection.update", {"connection": "open"})

    asyncio.run(scenario())
    assert whatsapp_manager.state() == {"status": "open", "qrCode": None}
    statuses = [data["status"] for event, data in events if event == "whatsapp:status"]
    assert statuses == ["connecting", "connecting", "open"]


def test_connect_is_noop_while_live(whatsapp_manager, socket_factory) -> None:
    async def scenario():
        await whatsapp_manager.connect()
        await whatsapp_manager.connect()

    asyncio.run(scenario())
    assert len(socket_factory.sockets) == 1


def test_unexpected_close_reconnects(whatsapp_manager, socket_factory) -> None:
    async def scenario():
        await whatsapp_manager.connect()
        await socket_factory.latest.emit("connection.update",
                                         {"connection": "close", "lastDisconnect": {"statusCode": 428}})
        assert whatsapp_manager.status == "close"
        await whatsapp_manager.reconnect_task

    asyncio.run(scenario())
    assert len(socket_factory.sockets) == 2
    assert socket_factory.latest.started
    assert whatsapp_manager.status == "connecting"


def test_logged_out_close_clears_credentials(whatsapp_manager, socket_factory) -> None:
    whatsapp_manager.credential_store.save({"me": {"id": "1555"}})

    async def scenario():
        await whatsapp_manager.connect()
        assert socket_factory.latest.credentials == {"me": {"id": "1555"}}
        await socket_factory.latest.emit("connection.update",
                                         {"connection": "close", "lastDisconnect": {"statusCode": 401}})

    asyncio.run(scenario())
    assert whatsapp_manager.reconnect_task is None
    assert not whatsapp_manager.has_credentials()
    assert len(socket_factory.sockets) == 1


def test_disconnect_forgets_device_without_reconnecting(whatsapp_manager, socket_factory) -> None:
    async def scenario():
        await whatsapp_manager.connect()
        await socket_factory.latest.emit("creds.update", {"me": {"id": "1555"}})
        assert whatsapp_manager.has_credentials()
        await whatsapp_manager.disconnect()

    asyncio.run(scenario())
    assert socket_factory.latest.ended
    assert whatsapp_manager.state() == {"status": "close", "qrCode": None}
    assert whatsapp_manager.reconnect_task is None
    assert not whatsapp_manager.has_credentials()
    assert len(socket_factory.sockets) == 1


def test_creds_updates_are_merged(tmp_path) -> None:
    store = FileCredentialStore(str(tmp_path / "auth"))
    store.save({"me": {"id": "1"}})
    store.save({"registered": True})
    assert store.load() == {"me": {"id": "1"}, "registered": True}
    store.clear()
    assert store.load() is None


def test_incoming_messages_are_buffered_and_announced(whatsapp_manager, socket_factory) -> None:
    events = record_events(whatsapp_manager)

    async def scenario():
        await whatsapp_manager.connect()
        socket = socket_factory.latest
        await socket.emit("messages.upsert", {"type": "notify", "messages": [
            raw_message("a"),
            raw_message("own", from_me=True),
            raw_message("a"),
        ]})
        await socket.emit("messages.upsert", {"type": "append", "messages": [raw_message("history")]})

    asyncio.run(scenario())
    assert [m["id"] for m in whatsapp_manager.messages()] == ["a"]
    announced = [data for event, data in events if event == "whatsapp:message"]
    assert len(announced) == 1
    assert announced[0]["from"] == "Asha"
    assert announced[0]["platform"] == "whatsapp"


def test_failing_listener_does_not_stop_others(whatsapp_manager) -> None:
    async def broken(event, data):
        raise RuntimeError("socket gone")

    whatsapp_manager.add_listener(broken)
    events = record_events(whatsapp_manager)

    asyncio.run(whatsapp_manager.connect())
    assert events[0][0] == "whatsapp:status"


def test_restore_runs_in_tracked_task(whatsapp_manager, socket_factory) -> None:
    whatsapp_manager.credential_store.save({"me": {"id": "1555"}})

    async def scenario():
        task = whatsapp_manager.restore()
        assert whatsapp_manager.restore_task is task
        await task
        assert socket_factory.latest.started
        assert socket_factory.latest.credentials == {"me": {"id": "1555"}}
        await whatsapp_manager.close()

    asyncio.run(scenario())
    assert whatsapp_manager.restore_task is None
    assert whatsapp_manager.status == "close"


def test_close_cancels_pending_restore(whatsapp_manager, socket_factory) -> None:
    async def scenario():
        task = whatsapp_manager.restore()
        await whatsapp_manager.close()
        await asyncio.sleep(0)
        return task

    task = asyncio.run(scenario())
    assert task.cancelled()
    assert whatsapp_manager.restore_task is None
    assert socket_factory.sockets == []
