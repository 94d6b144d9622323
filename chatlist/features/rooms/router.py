from __future__ import annotations

import logging

from chatlist.features.engine import (
    ChatRoom,
    EngineNotification,
    EphemeralMessageDeleted,
    MessageSent,
    MessagesReceived,
    RoomRead,
    RoomState,
    RoomStateChanged,
    SubjectChanged,
    room_id,
)

from .observable import EventStream
from .store import RoomListStore
from .types import NOT_FOUND, ROOM_REMOVAL_FAILED

logger = logging.getLogger(__name__)


class RoomEventRouter:
    """Turns engine notifications into room list operations.

    Message activity can change a room's rank, so it goes through
    `on_room_changed` which may reorder. Read receipts, subject changes and
    ephemeral expiry leave the order alone and only flag the row through
    `notify_changed`. A room missing from the list means the list is stale
    and is recovered with a full rebuild.
    """

    def __init__(
        self,
        store: RoomListStore,
        *,
        room_index_updated: EventStream[int],
        notices: EventStream[str],
    ):
        self._store = store
        self._room_index_updated = room_index_updated
        self._notices = notices

    def handle(self, notification: EngineNotification) -> None:
        if isinstance(notification, RoomStateChanged):
            self._on_state_changed(notification.room, notification.state)
        elif isinstance(notification, (MessageSent, MessagesReceived)):
            self.on_room_changed(notification.room)
        elif isinstance(notification, (RoomRead, SubjectChanged, EphemeralMessageDeleted)):
            self.notify_changed(notification.room)

    def on_room_changed(self, room: ChatRoom) -> None:
        index = self._store.index_of(room_id(room))
        if index == NOT_FOUND:
            logger.debug("Room %s not in list, rebuilding.", room_id(room))
            self._store.rebuild()
        elif index == 0:
            self._room_index_updated.emit(0)
        else:
            self._store.reorder_by_recency()

    def notify_changed(self, room: ChatRoom) -> None:
        index = self._store.index_of(room_id(room))
        if index == NOT_FOUND:
            logger.debug("Room %s not in list, rebuilding.", room_id(room))
            self._store.rebuild()
        else:
            self._room_index_updated.emit(index)

    def on_deletion_state_changed(self, room: ChatRoom, state: RoomState) -> None:
        if state == RoomState.DELETED:
            logger.info("Room %s is in Deleted state, removing it from list.", room_id(room))
            self._store.remove_by_id(room_id(room))

    def _on_state_changed(self, room: ChatRoom, state: RoomState) -> None:
        if state == RoomState.CREATED:
            self._store.insert_at_front(room)
        elif state == RoomState.TERMINATION_FAILED:
            logger.error("Removal of room %s has failed.", room.peer_address)
            self._notices.emit(ROOM_REMOVAL_FAILED)
