from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence
from uuid import uuid4

from .base import ChatEngine
from .errors import DeletionNotPendingError, MessageNotFoundError, UnknownRoomError
from .types import (
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

DEFAULT_LOCAL_ADDRESS = "sip:me@chatlist.local"
logger = logging.getLogger(__name__)


class InMemoryChatEngine(ChatEngine):
    """In-process chat engine used for local runs and tests.

    Rooms are kept in a dict keyed by room id. Driver methods (`create_room`,
    `send_message`, ...) mutate a room and deliver the matching notification
    synchronously to every listener.
    """

    def __init__(
        self,
        *,
        group_chat_enabled: bool = True,
        auto_complete_deletions: bool = True,
        local_address: str = DEFAULT_LOCAL_ADDRESS,
    ):
        self.group_chat_enabled = group_chat_enabled
        self.auto_complete_deletions = auto_complete_deletions
        self.local_address = local_address
        self._rooms: dict[str, ChatRoom] = {}
        self._listeners: list[EngineListener] = []
        self._room_listeners: dict[str, list[RoomStateListener]] = {}
        self._references: dict[str, int] = {}
        self._pending_deletions: set[str] = set()
        self.list_calls = 0
        self.delete_requests: list[str] = []

    def list_rooms(self) -> list[ChatRoom]:
        self.list_calls += 1
        # Most recent activity first, like a real engine's room list.
        return sorted(self._rooms.values(), key=lambda room: room.last_update_time, reverse=True)

    def add_listener(self, listener: EngineListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: EngineListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def add_room_listener(self, room: ChatRoom, listener: RoomStateListener) -> None:
        listeners = self._room_listeners.setdefault(room_id(room), [])
        if listener not in listeners:
            listeners.append(listener)

    def remove_room_listener(self, room: ChatRoom, listener: RoomStateListener) -> None:
        listeners = self._room_listeners.get(room_id(room))
        if not listeners or listener not in listeners:
            return
        listeners.remove(listener)
        if not listeners:
            self._room_listeners.pop(room_id(room), None)

    def delete_room(self, room: ChatRoom) -> None:
        key = room_id(room)
        if key not in self._rooms:
            raise UnknownRoomError(f"Room '{key}' was not found.")
        self.delete_requests.append(key)
        self._pending_deletions.add(key)
        if self.auto_complete_deletions:
            self.complete_deletion(room)

    def group_chat_available(self) -> bool:
        return self.group_chat_enabled

    def retain_room(self, room: ChatRoom) -> None:
        key = room_id(room)
        self._references[key] = self._references.get(key, 0) + 1

    def release_room(self, room: ChatRoom) -> None:
        key = room_id(room)
        count = self._references.get(key, 0)
        if count <= 0:
            raise ValueError(f"Room '{key}' has no outstanding reference.")
        if count == 1:
            self._references.pop(key)
        else:
            self._references[key] = count - 1

    def reference_count(self, room: ChatRoom | str) -> int:
        key = room if isinstance(room, str) else room_id(room)
        return self._references.get(key, 0)

    def total_references(self) -> int:
        return sum(self._references.values())

    def room_listener_count(self, room: ChatRoom) -> int:
        return len(self._room_listeners.get(room_id(room), []))

    def get_room(self, key: str) -> ChatRoom:
        room = self._rooms.get(key)
        if room is None:
            raise UnknownRoomError(f"Room '{key}' was not found.")
        return room

    def is_deletion_pending(self, room: ChatRoom) -> bool:
        return room_id(room) in self._pending_deletions

    def create_room(
        self,
        peer_address: str,
        *,
        subject: str | None = None,
        is_group: bool = False,
        created_at: datetime | None = None,
    ) -> ChatRoom:
        room = ChatRoom(
            local_address=self.local_address,
            peer_address=peer_address,
            subject=subject,
            is_group=is_group,
            last_update_time=created_at or datetime.now(timezone.utc),
        )
        self._rooms[room_id(room)] = room
        self._set_state(room, RoomState.CREATED)
        return room

    def send_message(
        self,
        room: ChatRoom,
        text: str,
        *,
        file_paths: Sequence[str] = (),
        ephemeral: bool = False,
        at: datetime | None = None,
    ) -> ChatMessage:
        message = self._append_message(
            room,
            text,
            outgoing=True,
            file_paths=file_paths,
            ephemeral=ephemeral,
            at=at,
        )
        self._notify(MessageSent(room=room, message=message))
        return message

    def receive_messages(
        self,
        room: ChatRoom,
        texts: Sequence[str],
        *,
        file_paths: Sequence[str] = (),
        at: datetime | None = None,
    ) -> tuple[ChatMessage, ...]:
        messages = tuple(
            self._append_message(room, text, outgoing=False, file_paths=file_paths, at=at)
            for text in texts
        )
        room.unread_count += len(messages)
        self._notify(MessagesReceived(room=room, messages=messages))
        return messages

    def mark_read(self, room: ChatRoom) -> None:
        room.unread_count = 0
        self._notify(RoomRead(room=room))

    def change_subject(self, room: ChatRoom, subject: str) -> None:
        room.subject = subject
        self._notify(SubjectChanged(room=room))

    def expire_ephemeral_message(self, room: ChatRoom, message_id: str) -> None:
        kept = [
            event
            for event in room.history
            if event.message is None or event.message.message_id != message_id
        ]
        if len(kept) == len(room.history):
            raise MessageNotFoundError(
                f"Message '{message_id}' was not found in room '{room_id(room)}'."
            )
        room.history = kept
        self._notify(EphemeralMessageDeleted(room=room))

    def complete_deletion(self, room: ChatRoom) -> None:
        key = self._take_pending_deletion(room)
        self._rooms.pop(key, None)
        self._set_state(room, RoomState.DELETED)

    def fail_deletion(self, room: ChatRoom) -> None:
        self._take_pending_deletion(room)
        self._set_state(room, RoomState.TERMINATION_FAILED)

    def _take_pending_deletion(self, room: ChatRoom) -> str:
        key = room_id(room)
        if key not in self._pending_deletions:
            raise DeletionNotPendingError(f"Room '{key}' has no pending deletion.")
        self._pending_deletions.discard(key)
        return key

    def _append_message(
        self,
        room: ChatRoom,
        text: str,
        *,
        outgoing: bool,
        file_paths: Sequence[str] = (),
        ephemeral: bool = False,
        at: datetime | None = None,
    ) -> ChatMessage:
        created_at = at or datetime.now(timezone.utc)
        message = ChatMessage(
            message_id=str(uuid4()),
            text=text,
            outgoing=outgoing,
            created_at=created_at,
            file_paths=tuple(file_paths),
            ephemeral=ephemeral,
        )
        room.history.append(EventLog(event_id=str(uuid4()), created_at=created_at, message=message))
        room.last_update_time = created_at
        return message

    def _set_state(self, room: ChatRoom, state: RoomState) -> None:
        room.state = state
        logger.debug("Room %s entered state %s.", room_id(room), state.value)
        # Snapshot the listeners: one-shot listeners detach while being called.
        for listener in list(self._room_listeners.get(room_id(room), [])):
            listener(room, state)
        self._notify(RoomStateChanged(room=room, state=state))

    def _notify(self, notification: EngineNotification) -> None:
        for listener in list(self._listeners):
            listener(notification)
