from __future__ import annotations

from datetime import datetime, timezone

import pytest

from chatlist.features.engine import InMemoryChatEngine
from chatlist.features.rooms import (
    EventStream,
    LiveValue,
    RoomHandle,
    RoomReleasedError,
    RoomSummary,
)


def test_room_handle_releases_reference_exactly_once():
    engine = InMemoryChatEngine()
    room = engine.create_room("sip:a@x")

    handle = RoomHandle(engine, room)
    assert engine.reference_count(room) == 1
    assert handle.room is room

    assert handle.release() is True
    assert handle.release() is False
    assert handle.released
    assert engine.reference_count(room) == 0
    with pytest.raises(RoomReleasedError):
        _ = handle.room


def test_summary_exposes_room_fields_until_destroyed():
    engine = InMemoryChatEngine()
    room = engine.create_room("sip:a@x", subject="Team", is_group=True)
    engine.receive_messages(room, ["first", "second"])

    summary = RoomSummary(engine, room)

    assert summary.peer_address == "sip:a@x"
    assert summary.subject == "Team"
    assert summary.is_group is True
    assert summary.unread_count == 2
    assert summary.last_message_preview == "second"
    assert "live" in repr(summary)

    summary.destroy()
    summary.destroy()

    assert summary.destroyed
    assert summary.id.endswith("~sip:a@x")
    assert engine.reference_count(room) == 0
    with pytest.raises(RoomReleasedError):
        _ = summary.unread_count


def test_summary_preview_falls_back_to_attachment_name_and_truncates():
    engine = InMemoryChatEngine()
    room = engine.create_room("sip:a@x")
    summary = RoomSummary(engine, room)
    assert summary.last_message_preview is None

    engine.send_message(room, "", file_paths=["photos/beach.jpg"])
    assert summary.last_message_preview == "beach.jpg"

    engine.send_message(room, "word " * 40)
    preview = summary.last_message_preview
    assert len(preview) <= 80
    assert preview.endswith("...")


def test_event_stream_only_reaches_current_subscribers():
    stream: EventStream[int] = EventStream()
    early: list[int] = []
    late: list[int] = []
    unsubscribe = stream.subscribe(early.append)

    stream.emit(1)
    stream.subscribe(late.append)
    stream.emit(2)
    unsubscribe()
    unsubscribe()
    stream.emit(3)

    assert early == [1, 2]
    assert late == [2, 3]
    assert stream.observer_count == 1


def test_live_value_notifies_on_every_set():
    value: LiveValue[tuple[int, ...]] = LiveValue(())
    seen: list[tuple[int, ...]] = []
    unsubscribe = value.observe(seen.append)

    value.set((1,))
    value.set((1,))
    unsubscribe()
    value.set((2,))

    assert seen == [(1,), (1,)]
    assert value.value == (2,)
    assert value.observer_count == 0


def test_summary_reads_live_room_state():
    engine = InMemoryChatEngine()
    room = engine.create_room("sip:a@x")
    summary = RoomSummary(engine, room)
    later = datetime(2030, 1, 1, tzinfo=timezone.utc)

    engine.receive_messages(room, ["hi"], at=later)

    assert summary.last_update_time == later
    assert summary.unread_count == 1
