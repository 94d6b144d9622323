import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.router import api_router
from .core.config import get_settings
from .features.engine import InMemoryChatEngine
from .features.rooms import FileAttachmentCleaner, RoomListViewModel, resolve_storage_root

settings = get_settings()


def _seed_rooms(engine: InMemoryChatEngine, count: int) -> None:
    base = datetime.now(timezone.utc) - timedelta(minutes=count)
    for index in range(count):
        room = engine.create_room(
            f"sip:contact-{index + 1}@chatlist.local",
            subject=f"Seed room {index + 1}",
            created_at=base + timedelta(minutes=index),
        )
        engine.receive_messages(
            room,
            [f"Hello from contact {index + 1}"],
            at=base + timedelta(minutes=index),
        )


def build_room_list() -> RoomListViewModel:
    engine = InMemoryChatEngine(
        group_chat_enabled=settings.group_chat_enabled,
        auto_complete_deletions=settings.auto_complete_deletions,
    )
    if settings.seed_room_count:
        _seed_rooms(engine, settings.seed_room_count)
    return RoomListViewModel(
        engine,
        attachment_cleaner=FileAttachmentCleaner(
            resolve_storage_root(settings.attachment_storage_dir)
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.log_level.upper())
    room_list = build_room_list()
    app.state.room_list = room_list
    room_list.activate()
    try:
        yield
    finally:
        room_list.deactivate()


app = FastAPI(title="chatlist API", docs_url="/api/docs", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.frontend_origin_list,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Content-Type", "Last-Event-ID"],
)
app.include_router(api_router)


@app.get("/")
async def read_root() -> dict:
    return {"service": "chatlist", "environment": settings.environment, "docs": app.docs_url}


@app.get("/health")
async def health_check() -> dict:
    room_list = getattr(app.state, "room_list", None)
    return {"healthy": True, "room_list_active": bool(room_list and room_list.active)}
