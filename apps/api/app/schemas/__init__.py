"""Pydantic schemas for API request/response models."""

from app.schemas.auth import AclTable, TokenPayload, Viewer
from app.schemas.stream import (
    AttachmentRead,
    NoteCreate,
    NoteRead,
    SearchParams,
    StreamCollection,
)

__all__ = [
    # Auth
    "TokenPayload",
    "AclTable",
    "Viewer",
    # Stream
    "SearchParams",
    "AttachmentRead",
    "NoteRead",
    "NoteCreate",
    "StreamCollection",
]
