from fastapi import FastAPI

from .chat import router as chat_router
from .deliveries import router as deliveries_router
from .notifications import router as notifications_router
from .preferences import router as preferences_router
from .push import router as push_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    app.include_router(push_router)
    app.include_router(chat_router)
    app.include_router(preferences_router)
    app.include_router(deliveries_router)
    app.include_router(notifications_router)
