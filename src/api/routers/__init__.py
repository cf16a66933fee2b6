"""API sub-routers assembled into a single api_router."""

from fastapi import APIRouter

from src.api.routers.chat import router as chat_router
from src.api.routers.datasets import router as datasets_router
from src.api.routers.health import router as health_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(datasets_router, prefix="/datasets", tags=["datasets"])
api_router.include_router(chat_router, tags=["chat"])
