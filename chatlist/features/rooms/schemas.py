from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .types import RoomSummary


class RoomSummaryResponse(BaseModel):
    id: str
    peer_address: str
    subject: str | None
    is_group: bool
    is_read_only: bool
    unread_count: int
    last_update_time: datetime
    last_message_preview: str | None


class CapabilitiesResponse(BaseModel):
    group_chat_available: bool


class DeleteRoomsInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    room_ids: list[str] = Field(min_length=1)


class DeletionAcceptedResponse(BaseModel):
    room_ids: list[str]
    pending_count: int


class RoomsChangedEvent(BaseModel):
    type: Literal["rooms_changed"] = "rooms_changed"
    rooms: list[RoomSummaryResponse]


class RoomIndexUpdatedEvent(BaseModel):
    type: Literal["room_index_updated"] = "room_index_updated"
    index: int
    room: RoomSummaryResponse | None = None


class NoticeEvent(BaseModel):
    type: Literal["notice"] = "notice"
    notice: str


RoomListEvent = Union[
    RoomsChangedEvent,
    RoomIndexUpdatedEvent,
    NoticeEvent,
]


_ROOM_LIST_EVENT_ADAPTER = TypeAdapter(RoomListEvent)


def room_list_event_schema() -> dict[str, Any]:
    return _ROOM_LIST_EVENT_ADAPTER.json_schema()


def to_room_response(summary: RoomSummary) -> RoomSummaryResponse:
    return RoomSummaryResponse(
        id=summary.id,
        peer_address=summary.peer_address,
        subject=summary.subject,
        is_group=summary.is_group,
        is_read_only=summary.is_read_only,
        unread_count=summary.unread_count,
        last_update_time=summary.last_update_time,
        last_message_preview=summary.last_message_preview,
    )


def encode_sse(event: RoomListEvent) -> str:
    payload = event.model_dump(mode="json")
    event_name = payload["type"]
    return f"event: {event_name}\ndata: {json.dumps(payload, ensure_ascii=True)}\n\n"
