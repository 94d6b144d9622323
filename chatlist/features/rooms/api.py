from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import StreamingResponse

from chatlist.core.config import get_settings
from chatlist.features.engine import UnknownRoomError

from .errors import RoomNotFoundError
from .schemas import (
    CapabilitiesResponse,
    DeleteRoomsInput,
    DeletionAcceptedResponse,
    NoticeEvent,
    RoomIndexUpdatedEvent,
    RoomListEvent,
    RoomsChangedEvent,
    RoomSummaryResponse,
    encode_sse,
    room_list_event_schema,
    to_room_response,
)
from .service import RoomListViewModel
from .store import RoomSnapshot

router = APIRouter(prefix="/api/rooms", tags=["rooms"])
logger = logging.getLogger(__name__)


def get_room_list(request: Request) -> RoomListViewModel:
    return request.app.state.room_list


def _raise_http_error(exc: Exception) -> None:
    if isinstance(exc, (RoomNotFoundError, UnknownRoomError)):
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    raise exc


def _rooms_changed(snapshot: RoomSnapshot) -> RoomsChangedEvent:
    return RoomsChangedEvent(rooms=[to_room_response(summary) for summary in snapshot])


def _index_updated(room_list: RoomListViewModel, index: int) -> RoomIndexUpdatedEvent:
    snapshot = room_list.rooms.value
    room = to_room_response(snapshot[index]) if 0 <= index < len(snapshot) else None
    return RoomIndexUpdatedEvent(index=index, room=room)


async def stream_room_events(
    room_list: RoomListViewModel,
    *,
    queue_size: int,
) -> AsyncIterator[str]:
    """Yield the current room list, then live room list events as SSE frames.

    Snapshots are coalesced: only the newest one waits for delivery and it is
    never dropped. Index and notice events share a bounded queue and are
    dropped when it is full.
    """
    queue: asyncio.Queue[RoomListEvent] = asyncio.Queue(maxsize=queue_size)
    wakeup = asyncio.Event()
    pending_snapshot: RoomSnapshot | None = None

    def _put(event: RoomListEvent) -> None:
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.debug("Room event queue is full; dropping %s event.", event.type)
        wakeup.set()

    def _snapshot_changed(snapshot: RoomSnapshot) -> None:
        nonlocal pending_snapshot
        pending_snapshot = snapshot
        wakeup.set()

    unsubscribes = [
        room_list.rooms.observe(_snapshot_changed),
        room_list.room_index_updated.subscribe(
            lambda index: _put(_index_updated(room_list, index))
        ),
        room_list.notices.subscribe(lambda notice: _put(NoticeEvent(notice=notice))),
    ]
    try:
        yield encode_sse(_rooms_changed(room_list.rooms.value))
        while True:
            await wakeup.wait()
            wakeup.clear()
            while pending_snapshot is not None or not queue.empty():
                if pending_snapshot is not None:
                    snapshot, pending_snapshot = pending_snapshot, None
                    yield encode_sse(_rooms_changed(snapshot))
                else:
                    yield encode_sse(queue.get_nowait())
    finally:
        for unsubscribe in unsubscribes:
            unsubscribe()


@router.get("", response_model=list[RoomSummaryResponse])
async def get_rooms(
    room_list: RoomListViewModel = Depends(get_room_list),
) -> list[RoomSummaryResponse]:
    return [to_room_response(summary) for summary in room_list.rooms.value]


@router.get("/capabilities", response_model=CapabilitiesResponse)
async def get_capabilities(
    room_list: RoomListViewModel = Depends(get_room_list),
) -> CapabilitiesResponse:
    return CapabilitiesResponse(group_chat_available=room_list.group_chat_available.value)


@router.post("/refresh", status_code=status.HTTP_204_NO_CONTENT)
async def refresh_rooms(
    room_list: RoomListViewModel = Depends(get_room_list),
) -> Response:
    room_list.refresh()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/events")
async def get_room_events(
    room_list: RoomListViewModel = Depends(get_room_list),
) -> StreamingResponse:
    return StreamingResponse(
        stream_room_events(room_list, queue_size=get_settings().event_queue_size),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@router.get("/events/schema")
async def get_room_events_schema() -> dict[str, Any]:
    return room_list_event_schema()


@router.post(
    "/delete",
    response_model=DeletionAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def delete_rooms(
    payload: DeleteRoomsInput,
    room_list: RoomListViewModel = Depends(get_room_list),
) -> DeletionAcceptedResponse:
    try:
        rooms = [room_list.find_room(room_id).room for room_id in dict.fromkeys(payload.room_ids)]
        room_list.delete_many(rooms)
    except Exception as exc:
        _raise_http_error(exc)
    return DeletionAcceptedResponse(
        room_ids=list(dict.fromkeys(payload.room_ids)),
        pending_count=room_list.pending_deletions,
    )


@router.delete(
    "/{room_id}",
    response_model=DeletionAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def delete_room(
    room_id: str,
    room_list: RoomListViewModel = Depends(get_room_list),
) -> DeletionAcceptedResponse:
    try:
        room_list.delete_one(room_list.find_room(room_id).room)
    except Exception as exc:
        _raise_http_error(exc)
    return DeletionAcceptedResponse(room_ids=[room_id], pending_count=room_list.pending_deletions)
