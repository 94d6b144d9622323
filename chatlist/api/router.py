from fastapi import APIRouter

from chatlist.features.rooms.api import router as rooms_router

api_router = APIRouter()
api_router.include_router(rooms_router)
