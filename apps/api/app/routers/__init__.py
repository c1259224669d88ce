"""API routers."""

from app.routers.attachments import router as attachments_router
from app.routers.stream import router as stream_router

__all__ = [
    "attachments_router",
    "stream_router",
]
