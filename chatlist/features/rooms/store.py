from __future__ import annotations

import logging
from typing import Iterable

from chatlist.features.engine import ChatEngine, ChatRoom, room_id

from .observable import LiveValue
from .types import NOT_FOUND, RoomSummary

logger = logging.getLogger(__name__)

RoomSnapshot = tuple[RoomSummary, ...]


def _destroy_all(summaries: Iterable[RoomSummary]) -> None:
    for summary in summaries:
        summary.destroy()


class RoomListStore:
    """Owns the ordered room list and publishes it as immutable snapshots.

    Every mutation builds a new tuple and swaps it into `rooms`; published
    tuples are never modified. Summaries dropped from the list are destroyed
    after the new snapshot is published, also when an observer raises.
    """

    def __init__(self, engine: ChatEngine):
        self._engine = engine
        self.rooms: LiveValue[RoomSnapshot] = LiveValue(())

    @property
    def snapshot(self) -> RoomSnapshot:
        return self.rooms.value

    def rebuild(self) -> None:
        previous = self.snapshot
        fresh: list[RoomSummary] = []
        seen: set[str] = set()
        for room in self._engine.list_rooms():
            key = room_id(room)
            if key in seen:
                continue
            seen.add(key)
            fresh.append(RoomSummary(self._engine, room))
        logger.debug("Rebuilt room list with %d rooms.", len(fresh))
        try:
            self._publish(tuple(fresh))
        finally:
            _destroy_all(previous)

    def insert_at_front(self, room: ChatRoom) -> RoomSummary:
        summary = RoomSummary(self._engine, room)
        previous = self.snapshot
        duplicates = [item for item in previous if item.id == summary.id]
        remaining = tuple(item for item in previous if item.id != summary.id)
        logger.info("Room %s is in Created state, adding it to list.", summary.id)
        try:
            self._publish((summary, *remaining))
        finally:
            _destroy_all(duplicates)
        return summary

    def remove_by_id(self, key: str) -> None:
        previous = self.snapshot
        removed = [item for item in previous if item.id == key]
        if removed:
            logger.info("Room %s removed from list.", key)
        try:
            self._publish(tuple(item for item in previous if item.id != key))
        finally:
            _destroy_all(removed)

    def reorder_by_recency(self) -> None:
        # sorted() stays stable with reverse=True, so equal timestamps keep their order.
        ordered = sorted(self.snapshot, key=lambda item: item.last_update_time, reverse=True)
        logger.debug("Reordered %d rooms by recency.", len(ordered))
        self._publish(tuple(ordered))

    def index_of(self, key: str) -> int:
        for index, item in enumerate(self.snapshot):
            if item.id == key:
                return index
        return NOT_FOUND

    def find(self, key: str) -> RoomSummary | None:
        index = self.index_of(key)
        if index == NOT_FOUND:
            return None
        return self.snapshot[index]

    def close(self) -> None:
        previous = self.snapshot
        try:
            self._publish(())
        finally:
            _destroy_all(previous)

    def _publish(self, snapshot: RoomSnapshot) -> None:
        self.rooms.set(snapshot)
