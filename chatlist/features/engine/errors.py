from __future__ import annotations


class ChatEngineError(Exception):
    """Base exception for chat engine operations."""


class UnknownRoomError(ChatEngineError):
    pass


class DeletionNotPendingError(ChatEngineError):
    pass


class MessageNotFoundError(ChatEngineError):
    pass
