from __future__ import annotations

from .base import ChatEngine
from .errors import (
    ChatEngineError,
    DeletionNotPendingError,
    MessageNotFoundError,
    UnknownRoomError,
)
from .memory import InMemoryChatEngine
from .types import (
    TERMINAL_DELETION_STATES,
    ChatMessage,
    ChatRoom,
    EngineListener,
    EngineNotification,
    EphemeralMessageDeleted,
    EventLog,
    MessageSent,
    MessagesReceived,
    RoomRead,
    RoomState,
    RoomStateChanged,
    RoomStateListener,
    SubjectChanged,
    room_id,
)

__all__ = [
    "ChatEngine",
    "ChatEngineError",
    "ChatMessage",
    "ChatRoom",
    "DeletionNotPendingError",
    "EngineListener",
    "EngineNotification",
    "EphemeralMessageDeleted",
    "EventLog",
    "InMemoryChatEngine",
    "MessageNotFoundError",
    "MessageSent",
    "MessagesReceived",
    "RoomRead",
    "RoomState",
    "RoomStateChanged",
    "RoomStateListener",
    "SubjectChanged",
    "TERMINAL_DELETION_STATES",
    "UnknownRoomError",
    "room_id",
]
