from __future__ import annotations


class RoomListError(Exception):
    """Base exception for room list operations."""


class RoomReleasedError(RoomListError):
    pass


class RoomNotFoundError(RoomListError):
    pass
