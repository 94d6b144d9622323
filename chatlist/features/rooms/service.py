from __future__ import annotations

import logging
from typing import Sequence

from chatlist.features.engine import ChatEngine, ChatRoom

from .cleanup import (
    AttachmentCleaner,
    FileAttachmentCleaner,
    LoggingPlatformArtifacts,
    PlatformArtifacts,
)
from .deletion import DeletionTracker
from .errors import RoomNotFoundError
from .observable import EventStream, LiveValue
from .router import RoomEventRouter
from .store import RoomListStore, RoomSnapshot
from .types import RoomSummary

logger = logging.getLogger(__name__)


class RoomListViewModel:
    """Room list kept in sync with a chat engine.

    `activate` subscribes to the engine and loads the list; `deactivate`
    unsubscribes and releases every room reference. Consumers observe
    `rooms`, `room_index_updated`, `group_chat_available` and `notices`.
    """

    def __init__(
        self,
        engine: ChatEngine,
        *,
        attachment_cleaner: AttachmentCleaner | None = None,
        platform_artifacts: PlatformArtifacts | None = None,
    ):
        self._engine = engine
        self._active = False
        self.store = RoomListStore(engine)
        self.room_index_updated: EventStream[int] = EventStream()
        self.notices: EventStream[str] = EventStream()
        self.group_chat_available: LiveValue[bool] = LiveValue(engine.group_chat_available())
        self.router = RoomEventRouter(
            self.store,
            room_index_updated=self.room_index_updated,
            notices=self.notices,
        )
        self.deletions = DeletionTracker(
            engine,
            on_terminal_state=self.router.on_deletion_state_changed,
            attachment_cleaner=attachment_cleaner or FileAttachmentCleaner(),
            platform_artifacts=platform_artifacts or LoggingPlatformArtifacts(),
        )

    @property
    def rooms(self) -> LiveValue[RoomSnapshot]:
        return self.store.rooms

    @property
    def active(self) -> bool:
        return self._active

    @property
    def pending_deletions(self) -> int:
        return self.deletions.pending_count

    def activate(self) -> None:
        if self._active:
            return
        self._engine.add_listener(self.router.handle)
        self._active = True
        self.store.rebuild()
        logger.info("Room list activated with %d rooms.", len(self.store.snapshot))

    def deactivate(self) -> None:
        if not self._active:
            return
        self._engine.remove_listener(self.router.handle)
        self.deletions.close()
        self.store.close()
        self._active = False
        logger.info("Room list deactivated.")

    def refresh(self) -> None:
        self.store.rebuild()

    def find_room(self, room_id: str) -> RoomSummary:
        summary = self.store.find(room_id)
        if summary is None:
            raise RoomNotFoundError(f"Room '{room_id}' was not found.")
        return summary

    def delete_one(self, room: ChatRoom | None) -> None:
        self.deletions.delete_one(room)

    def delete_many(self, rooms: Sequence[ChatRoom]) -> None:
        self.deletions.delete_many(rooms)
