from __future__ import annotations

from datetime import datetime
from pathlib import PurePosixPath

from chatlist.features.engine import ChatEngine, ChatRoom, room_id

from .errors import RoomReleasedError

NOT_FOUND = -1
ROOM_REMOVAL_FAILED = "chat_room_removal_failed"

_PREVIEW_LENGTH = 80


class RoomHandle:
    """Owned reference to an engine room.

    The reference is retained on construction and released exactly once by
    `release`; the room is unreachable through the handle afterwards.
    """

    def __init__(self, engine: ChatEngine, room: ChatRoom):
        self._engine = engine
        self._room: ChatRoom | None = room
        engine.retain_room(room)

    @property
    def released(self) -> bool:
        return self._room is None

    @property
    def room(self) -> ChatRoom:
        if self._room is None:
            raise RoomReleasedError("Room reference was already released.")
        return self._room

    def release(self) -> bool:
        if self._room is None:
            return False
        room, self._room = self._room, None
        self._engine.release_room(room)
        return True


def _preview(room: ChatRoom) -> str | None:
    message = room.last_message()
    if message is None:
        return None
    text = " ".join(message.text.split())
    if not text and message.file_paths:
        text = PurePosixPath(message.file_paths[-1]).name
    if len(text) <= _PREVIEW_LENGTH:
        return text
    return f"{text[: _PREVIEW_LENGTH - 3].rstrip()}..."


class RoomSummary:
    """Display-ready view of one engine room held by the room list."""

    def __init__(self, engine: ChatEngine, room: ChatRoom):
        self.id = room_id(room)
        self._handle = RoomHandle(engine, room)

    @property
    def room(self) -> ChatRoom:
        return self._handle.room

    @property
    def destroyed(self) -> bool:
        return self._handle.released

    @property
    def last_update_time(self) -> datetime:
        return self.room.last_update_time

    @property
    def peer_address(self) -> str:
        return self.room.peer_address

    @property
    def subject(self) -> str | None:
        return self.room.subject

    @property
    def unread_count(self) -> int:
        return self.room.unread_count

    @property
    def is_group(self) -> bool:
        return self.room.is_group

    @property
    def is_read_only(self) -> bool:
        return self.room.is_read_only

    @property
    def last_message_preview(self) -> str | None:
        return _preview(self.room)

    def destroy(self) -> None:
        self._handle.release()

    def __repr__(self) -> str:
        state = "destroyed" if self.destroyed else "live"
        return f"RoomSummary(id={self.id!r}, {state})"
