from __future__ import annotations

import logging
from typing import Sequence

from chatlist.features.engine import (
    TERMINAL_DELETION_STATES,
    ChatEngine,
    ChatRoom,
    RoomState,
    RoomStateListener,
    room_id,
)

from .cleanup import AttachmentCleaner, PlatformArtifacts

logger = logging.getLogger(__name__)


class DeletionTracker:
    """Issues room deletions and follows each one to its terminal state.

    Every submitted room gets a one-shot state listener keyed by room id. The
    listener detaches on the first terminal state (`DELETED` or
    `TERMINATION_FAILED`) and hands the outcome to `on_terminal_state`.
    Completions are independent; nothing waits for a whole batch.

    `pending_count` is set to the batch size when a delete operation starts
    and decremented as outcomes arrive. Nothing depends on it reaching zero.
    """

    def __init__(
        self,
        engine: ChatEngine,
        *,
        on_terminal_state: RoomStateListener,
        attachment_cleaner: AttachmentCleaner,
        platform_artifacts: PlatformArtifacts,
    ):
        self._engine = engine
        self._on_terminal_state = on_terminal_state
        self._attachment_cleaner = attachment_cleaner
        self._platform_artifacts = platform_artifacts
        self._listeners: dict[str, tuple[ChatRoom, RoomStateListener]] = {}
        self.pending_count = 0

    @property
    def tracked_room_ids(self) -> frozenset[str]:
        return frozenset(self._listeners)

    def delete_one(self, room: ChatRoom | None) -> None:
        self.pending_count = 1
        if room is None:
            return
        self._delete_attachments(room)
        self._submit(room)

    def delete_many(self, rooms: Sequence[ChatRoom]) -> None:
        self.pending_count = len(rooms)
        for room in rooms:
            self._delete_attachments(room)
            self._submit(room)

    def close(self) -> None:
        for room, listener in self._listeners.values():
            self._engine.remove_room_listener(room, listener)
        self._listeners.clear()

    def _delete_attachments(self, room: ChatRoom) -> None:
        removed = 0
        for event in room.history_message_events(0):
            removed += self._attachment_cleaner.delete_files_attached_to(event)
        if removed:
            logger.debug("Deleted %d attachment files of room %s.", removed, room_id(room))

    def _submit(self, room: ChatRoom) -> None:
        self._platform_artifacts.dismiss_notification(room)
        self._platform_artifacts.remove_shortcut(room)
        self._attach(room)
        try:
            self._engine.delete_room(room)
        except Exception:
            self._detach(room_id(room))
            raise

    def _attach(self, room: ChatRoom) -> None:
        key = room_id(room)
        self._detach(key)

        def _listener(changed_room: ChatRoom, state: RoomState) -> None:
            self._on_room_state_changed(key, changed_room, state)

        self._listeners[key] = (room, _listener)
        self._engine.add_room_listener(room, _listener)

    def _detach(self, key: str) -> bool:
        entry = self._listeners.pop(key, None)
        if entry is None:
            return False
        room, listener = entry
        self._engine.remove_room_listener(room, listener)
        return True

    def _on_room_state_changed(self, key: str, room: ChatRoom, state: RoomState) -> None:
        if state not in TERMINAL_DELETION_STATES:
            return
        if not self._detach(key):
            return
        self.pending_count = max(0, self.pending_count - 1)
        self._on_terminal_state(room, state)
