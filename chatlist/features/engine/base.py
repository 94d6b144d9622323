from __future__ import annotations

from abc import ABC, abstractmethod

from .types import ChatRoom, EngineListener, RoomStateListener


class ChatEngine(ABC):
    """Interface of the conversation engine the room list is synchronized with.

    The engine is the source of truth for rooms. It reports every change
    through listeners and completes deletions asynchronously: `delete_room`
    returns immediately and the outcome arrives later as a `DELETED` or
    `TERMINATION_FAILED` state on the room's listeners.
    """

    @abstractmethod
    def list_rooms(self) -> list[ChatRoom]:
        """Return every room the engine currently knows, in engine order."""

    @abstractmethod
    def add_listener(self, listener: EngineListener) -> None:
        """Subscribe to engine-wide notifications."""

    @abstractmethod
    def remove_listener(self, listener: EngineListener) -> None:
        """Unsubscribe an engine-wide listener."""

    @abstractmethod
    def add_room_listener(self, room: ChatRoom, listener: RoomStateListener) -> None:
        """Subscribe to state changes of a single room."""

    @abstractmethod
    def remove_room_listener(self, room: ChatRoom, listener: RoomStateListener) -> None:
        """Unsubscribe a single-room state listener."""

    @abstractmethod
    def delete_room(self, room: ChatRoom) -> None:
        """Request deletion; the outcome is delivered as a room state change."""

    @abstractmethod
    def group_chat_available(self) -> bool:
        """Whether group rooms can be created with this engine."""

    @abstractmethod
    def retain_room(self, room: ChatRoom) -> None:
        """Take a reference on a room held outside the engine."""

    @abstractmethod
    def release_room(self, room: ChatRoom) -> None:
        """Drop a reference taken with `retain_room`."""
