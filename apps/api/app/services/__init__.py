"""Service layer modules."""

# Import service modules (not individual functions) for cleaner access
from app.services import record_service
from app.services import acl_service
from app.services import note_service
from app.services import attachment_service
from app.services import stream_service

__all__ = [
    "record_service",
    "acl_service",
    "note_service",
    "attachment_service",
    "stream_service",
]
