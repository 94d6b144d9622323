from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from chatlist.core.config import get_settings
from chatlist.features.engine import ChatRoom, EventLog, room_id

logger = logging.getLogger(__name__)


class AttachmentCleaner(ABC):
    @abstractmethod
    def delete_files_attached_to(self, event: EventLog) -> int:
        """Delete files attached to the event's message; return how many were removed."""


class PlatformArtifacts(ABC):
    @abstractmethod
    def dismiss_notification(self, room: ChatRoom) -> None:
        """Dismiss any pending notification for the room."""

    @abstractmethod
    def remove_shortcut(self, room: ChatRoom) -> None:
        """Remove the launcher shortcut pointing at the room."""


def resolve_storage_root(storage_dir: str | None = None) -> Path:
    root = Path(storage_dir or get_settings().attachment_storage_dir)
    if not root.is_absolute():
        project_root = Path(__file__).resolve().parents[3]
        root = project_root / root
    return root


class FileAttachmentCleaner(AttachmentCleaner):
    """Removes attachment files kept under the attachment storage root.

    Relative paths resolve against the root. Files outside the root are
    never touched.
    """

    def __init__(self, storage_root: Path | None = None):
        self.storage_root = (storage_root or resolve_storage_root()).resolve()

    def _resolve(self, file_path: str) -> Path | None:
        path = Path(file_path)
        if not path.is_absolute():
            path = self.storage_root / path
        path = path.resolve()
        if not path.is_relative_to(self.storage_root):
            return None
        return path

    def delete_files_attached_to(self, event: EventLog) -> int:
        if event.message is None:
            return 0
        removed = 0
        for file_path in event.message.file_paths:
            path = self._resolve(file_path)
            if path is None:
                logger.debug("Skipping attachment outside storage root: %s", file_path)
                continue
            try:
                if path.is_file():
                    path.unlink()
                    removed += 1
            except OSError:
                logger.warning("Failed to delete attachment %s.", path, exc_info=True)
        return removed


class LoggingPlatformArtifacts(PlatformArtifacts):
    """Platform hooks for hosts without notifications or shortcuts."""

    def dismiss_notification(self, room: ChatRoom) -> None:
        logger.debug("No platform notification to dismiss for room %s.", room_id(room))

    def remove_shortcut(self, room: ChatRoom) -> None:
        logger.debug("No platform shortcut to remove for room %s.", room_id(room))
