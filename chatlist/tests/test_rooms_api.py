from __future__ import annotations

import asyncio
import importlib
import json
from datetime import datetime, timedelta, timezone
from urllib.parse import quote

import pytest
from fastapi.testclient import TestClient

rooms_api = importlib.import_module("chatlist.features.rooms.api")
from chatlist.features.engine import InMemoryChatEngine, room_id
from chatlist.features.rooms import (
    ROOM_REMOVAL_FAILED,
    AttachmentCleaner,
    PlatformArtifacts,
    RoomListViewModel,
)
from chatlist.main import app

_BASE = datetime(2026, 1, 1, tzinfo=timezone.utc)


class _NoopCleaner(AttachmentCleaner):
    def delete_files_attached_to(self, event):
        return 0


class _NoopArtifacts(PlatformArtifacts):
    def dismiss_notification(self, room):
        pass

    def remove_shortcut(self, room):
        pass


def _room_list(*, auto_complete_deletions: bool = True):
    engine = InMemoryChatEngine(auto_complete_deletions=auto_complete_deletions)
    a = engine.create_room("sip:a@x", subject="Alpha", created_at=_BASE + timedelta(minutes=3))
    b = engine.create_room("sip:b@x", is_group=True, created_at=_BASE + timedelta(minutes=2))
    c = engine.create_room("sip:c@x", created_at=_BASE + timedelta(minutes=1))
    engine.receive_messages(c, ["  hello   there  "], at=_BASE + timedelta(minutes=1))
    room_list = RoomListViewModel(
        engine,
        attachment_cleaner=_NoopCleaner(),
        platform_artifacts=_NoopArtifacts(),
    )
    room_list.activate()
    return engine, room_list, (a, b, c)


def _client(room_list: RoomListViewModel) -> TestClient:
    app.dependency_overrides[rooms_api.get_room_list] = lambda: room_list
    return TestClient(app)


@pytest.fixture(autouse=True)
def _clear_overrides():
    yield
    app.dependency_overrides.clear()


def test_list_rooms_and_capabilities():
    _, room_list, (a, b, c) = _room_list()
    client = _client(room_list)

    response = client.get("/api/rooms")
    assert response.status_code == 200
    body = response.json()
    assert [item["id"] for item in body] == [room_id(a), room_id(b), room_id(c)]
    assert body[0]["subject"] == "Alpha"
    assert body[1]["is_group"] is True
    assert body[2]["unread_count"] == 1
    assert body[2]["last_message_preview"] == "hello there"

    capabilities = client.get("/api/rooms/capabilities")
    assert capabilities.status_code == 200
    assert capabilities.json() == {"group_chat_available": True}


def test_refresh_rebuilds_room_list():
    engine, room_list, _ = _room_list()
    client = _client(room_list)

    response = client.post("/api/rooms/refresh")

    assert response.status_code == 204
    assert engine.list_calls == 2


def test_delete_room_is_accepted_and_removed_on_completion():
    engine, room_list, (a, b, c) = _room_list()
    client = _client(room_list)

    response = client.delete(f"/api/rooms/{quote(room_id(b), safe='')}")

    assert response.status_code == 202
    assert response.json() == {"room_ids": [room_id(b)], "pending_count": 0}
    assert engine.delete_requests == [room_id(b)]
    listed = client.get("/api/rooms").json()
    assert [item["id"] for item in listed] == [room_id(a), room_id(c)]


def test_delete_unknown_room_returns_404():
    engine, room_list, _ = _room_list()
    client = _client(room_list)

    response = client.delete(f"/api/rooms/{quote('sip:me@x~sip:nobody@x', safe='')}")

    assert response.status_code == 404
    assert engine.delete_requests == []


def test_batch_delete_reports_pending_count_until_engine_confirms():
    engine, room_list, (a, b, c) = _room_list(auto_complete_deletions=False)
    client = _client(room_list)

    response = client.post(
        "/api/rooms/delete",
        json={"room_ids": [room_id(a), room_id(c), room_id(a)]},
    )

    assert response.status_code == 202
    assert response.json() == {"room_ids": [room_id(a), room_id(c)], "pending_count": 2}
    assert len(client.get("/api/rooms").json()) == 3

    engine.complete_deletion(c)
    engine.complete_deletion(a)

    assert [item["id"] for item in client.get("/api/rooms").json()] == [room_id(b)]


def test_batch_delete_with_unknown_id_deletes_nothing():
    engine, room_list, (a, _, _) = _room_list()
    client = _client(room_list)

    response = client.post(
        "/api/rooms/delete",
        json={"room_ids": [room_id(a), "sip:me@x~sip:nobody@x"]},
    )

    assert response.status_code == 404
    assert engine.delete_requests == []
    assert len(client.get("/api/rooms").json()) == 3


def test_batch_delete_rejects_empty_and_unknown_fields():
    _, room_list, _ = _room_list()
    client = _client(room_list)

    assert client.post("/api/rooms/delete", json={"room_ids": []}).status_code == 422
    assert (
        client.post("/api/rooms/delete", json={"room_ids": ["x"], "force": True}).status_code
        == 422
    )


def test_event_schema_lists_every_event_type():
    client = TestClient(app)

    response = client.get("/api/rooms/events/schema")

    assert response.status_code == 200
    definitions = response.json()["$defs"]
    assert {"RoomsChangedEvent", "RoomIndexUpdatedEvent", "NoticeEvent"} <= set(definitions)


def _decode(frame: str) -> tuple[str, dict]:
    event_line, data_line = frame.strip().split("\n")
    return event_line.removeprefix("event: "), json.loads(data_line.removeprefix("data: "))


@pytest.mark.asyncio
async def test_event_stream_sends_snapshot_then_live_events():
    engine, room_list, (a, b, _) = _room_list(auto_complete_deletions=False)
    stream = rooms_api.stream_room_events(room_list, queue_size=10)

    name, payload = _decode(await stream.__anext__())
    assert name == "rooms_changed"
    assert len(payload["rooms"]) == 3

    engine.mark_read(a)
    room_list.delete_one(b)
    engine.fail_deletion(b)

    name, payload = _decode(await stream.__anext__())
    assert name == "room_index_updated"
    assert payload["index"] == 0
    assert payload["room"]["id"] == room_id(a)

    name, payload = _decode(await stream.__anext__())
    assert name == "notice"
    assert payload["notice"] == ROOM_REMOVAL_FAILED

    await stream.aclose()
    assert room_list.rooms.observer_count == 0
    assert room_list.room_index_updated.observer_count == 0
    assert room_list.notices.observer_count == 0


@pytest.mark.asyncio
async def test_event_stream_coalesces_snapshots_and_drops_overflowing_index_events():
    engine, room_list, (a, b, c) = _room_list()
    stream = rooms_api.stream_room_events(room_list, queue_size=1)
    await stream.__anext__()

    engine.mark_read(a)
    engine.change_subject(a, "Renamed")
    room_list.delete_one(b)
    room_list.delete_one(c)

    name, payload = _decode(await stream.__anext__())
    assert name == "rooms_changed"
    assert [item["id"] for item in payload["rooms"]] == [room_id(a)]

    name, payload = _decode(await stream.__anext__())
    assert name == "room_index_updated"
    assert payload["room"]["subject"] == "Alpha"

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(stream.__anext__(), timeout=0.05)
    assert room_list.rooms.observer_count == 0
    assert room_list.room_index_updated.observer_count == 0
