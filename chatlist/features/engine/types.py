from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Union


class RoomState(str, Enum):
    INSTANTIATED = "instantiated"
    CREATION_PENDING = "creation_pending"
    CREATED = "created"
    CREATION_FAILED = "creation_failed"
    TERMINATION_PENDING = "termination_pending"
    TERMINATED = "terminated"
    TERMINATION_FAILED = "termination_failed"
    DELETED = "deleted"


TERMINAL_DELETION_STATES = frozenset({RoomState.DELETED, RoomState.TERMINATION_FAILED})


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChatMessage:
    message_id: str
    text: str
    outgoing: bool
    created_at: datetime = field(default_factory=_utc_now)
    file_paths: tuple[str, ...] = ()
    ephemeral: bool = False


@dataclass(frozen=True)
class EventLog:
    event_id: str
    created_at: datetime
    message: ChatMessage | None = None


@dataclass(eq=False)
class ChatRoom:
    """Engine-side room record.

    Rooms are compared by identity: the engine hands out one object per room
    and mutates it as activity arrives.
    """

    local_address: str
    peer_address: str
    subject: str | None = None
    is_group: bool = False
    is_read_only: bool = False
    state: RoomState = RoomState.INSTANTIATED
    unread_count: int = 0
    last_update_time: datetime = field(default_factory=_utc_now)
    history: list[EventLog] = field(default_factory=list)

    def history_message_events(self, begin: int) -> list[EventLog]:
        events = [event for event in self.history if event.message is not None]
        return events[max(0, begin) :]

    def last_message(self) -> ChatMessage | None:
        for event in reversed(self.history):
            if event.message is not None:
                return event.message
        return None


def room_id(room: ChatRoom) -> str:
    return f"{room.local_address}~{room.peer_address}"


@dataclass(frozen=True)
class RoomStateChanged:
    room: ChatRoom
    state: RoomState


@dataclass(frozen=True)
class MessageSent:
    room: ChatRoom
    message: ChatMessage


@dataclass(frozen=True)
class MessagesReceived:
    room: ChatRoom
    messages: tuple[ChatMessage, ...]


@dataclass(frozen=True)
class RoomRead:
    room: ChatRoom


@dataclass(frozen=True)
class EphemeralMessageDeleted:
    room: ChatRoom


@dataclass(frozen=True)
class SubjectChanged:
    room: ChatRoom


EngineNotification = Union[
    RoomStateChanged,
    MessageSent,
    MessagesReceived,
    RoomRead,
    EphemeralMessageDeleted,
    SubjectChanged,
]

EngineListener = Callable[[EngineNotification], None]
RoomStateListener = Callable[[ChatRoom, RoomState], None]
