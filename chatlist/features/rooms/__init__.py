from __future__ import annotations

from .cleanup import (
    AttachmentCleaner,
    FileAttachmentCleaner,
    LoggingPlatformArtifacts,
    PlatformArtifacts,
    resolve_storage_root,
)
from .deletion import DeletionTracker
from .errors import RoomListError, RoomNotFoundError, RoomReleasedError
from .observable import EventStream, LiveValue
from .router import RoomEventRouter
from .service import RoomListViewModel
from .store import RoomListStore, RoomSnapshot
from .types import NOT_FOUND, ROOM_REMOVAL_FAILED, RoomHandle, RoomSummary

__all__ = [
    "AttachmentCleaner",
    "DeletionTracker",
    "EventStream",
    "FileAttachmentCleaner",
    "LiveValue",
    "LoggingPlatformArtifacts",
    "NOT_FOUND",
    "PlatformArtifacts",
    "ROOM_REMOVAL_FAILED",
    "RoomEventRouter",
    "RoomHandle",
    "RoomListError",
    "RoomListStore",
    "RoomListViewModel",
    "RoomNotFoundError",
    "RoomReleasedError",
    "RoomSnapshot",
    "RoomSummary",
    "resolve_storage_root",
]
