"""Stream service - visibility-filtered activity feeds of records.

find: all entries of a record's stream the viewer may see.
find_updates: field update / status change entries only (audit view).

Authorization gates run before any stream query; failures raise
ForbiddenError / NotFoundError which routers map to 403 / 404.
"""

import logging
from typing import Any
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core import note_access
from app.core.structured_logging import build_log_context
from app.db.enums import AclAction, AclLevel, AclPermission, EntityType, NoteType, StreamPrimaryFilter
from app.db.models import Account, Note, User
from app.schemas.auth import Viewer
from app.schemas.stream import AttachmentRead, NoteCreate, NoteRead, SearchParams, StreamCollection
from app.services import acl_service, note_service, record_service
from app.services.stream_query_builder import (
    assemble_feed_query,
    build_base_query,
    build_context,
)

logger = logging.getLogger(__name__)


class StreamServiceError(Exception):
    """Base exception for stream service errors."""

    pass


class ForbiddenError(StreamServiceError):
    """Viewer may not access the requested stream."""

    pass


class NotFoundError(StreamServiceError):
    """Target record not found."""

    pass


class BadRequestError(StreamServiceError):
    """Malformed search parameters."""

    pass


def parse_search_params(**raw: Any) -> SearchParams:
    """Build SearchParams from request values, dropping unset ones."""
    values = {k: v for k, v in raw.items() if v is not None}
    try:
        return SearchParams(**values)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise BadRequestError(errors) from exc


def _deny(viewer: Viewer, scope: str, record_id: UUID | None, reason: str) -> ForbiddenError:
    logger.info(
        "Stream access denied: %s",
        reason,
        extra=build_log_context(
            user_id=str(viewer.user_id),
            scope=scope,
            record_id=str(record_id) if record_id else None,
            reason=reason,
        ),
    )
    return ForbiddenError(reason)


def _get_target(db: Session, scope: str, record_id: UUID):
    record = record_service.get_entity(db, scope, record_id)
    if record is None:
        raise NotFoundError(f"{scope} not found")
    return record


# =============================================================================
# Queries
# =============================================================================

def find(
    db: Session,
    viewer: Viewer,
    scope: str,
    record_id: UUID,
    params: SearchParams,
) -> StreamCollection:
    """Stream of a record, filtered to what the viewer may see."""
    if scope == EntityType.USER.value:
        raise _deny(viewer, scope, record_id, "User streams are not available here")

    record = _get_target(db, scope, record_id)

    if not acl_service.check_entity(db, viewer, record, AclAction.STREAM):
        raise _deny(viewer, scope, record_id, "No stream access to record")

    return _find_internal(db, viewer, scope, record_id, params)


def find_updates(
    db: Session,
    viewer: Viewer,
    scope: str,
    record_id: UUID,
    params: SearchParams,
) -> StreamCollection:
    """Field update and status change entries of a record (requires audit permission)."""
    if viewer.is_portal:
        raise _deny(viewer, scope, record_id, "Portal users cannot view record updates")

    if acl_service.get_permission_level(viewer, AclPermission.AUDIT) != AclLevel.YES.value:
        raise _deny(viewer, scope, record_id, "Audit permission required")

    record = _get_target(db, scope, record_id)

    if not acl_service.check_entity(db, viewer, record, AclAction.READ):
        raise _deny(viewer, scope, record_id, "No read access to record")

    if isinstance(record, User) and not viewer.is_admin:
        raise _deny(viewer, scope, record_id, "Only admins can view user updates")

    params = params.with_primary_filter(StreamPrimaryFilter.UPDATES)
    return _find_internal(db, viewer, scope, record_id, params)


def _find_internal(
    db: Session,
    viewer: Viewer,
    scope: str,
    record_id: UUID,
    params: SearchParams,
) -> StreamCollection:
    ctx = build_context(viewer, scope, record_id)
    base = build_base_query(ctx, primary_filter=params.primary_filter, after=params.after)
    query = assemble_feed_query(base, ctx)

    notes = note_service.find_notes(db, query, offset=params.offset, limit=params.max_size)
    total = note_service.count_notes(db, query)

    items = [to_note_read(db, viewer, note, scope, record_id) for note in notes]
    return StreamCollection(items=items, total=total)


# =============================================================================
# Hydration
# =============================================================================

def to_note_read(
    db: Session,
    viewer: Viewer,
    note: Note,
    scope: str,
    record_id: UUID,
) -> NoteRead:
    """Convert a Note to its response shape: names, attachments, redacted data."""
    attachments = []
    if note_service.has_attachments(note):
        attachments = [
            AttachmentRead.model_validate(a)
            for a in note_service.list_note_attachments(db, note.id)
        ]

    parent_name = None
    if note.parent_type and note.parent_id and (
        note.parent_type != scope or note.parent_id != record_id
    ):
        parent_name = record_service.get_record_name(db, note.parent_type, note.parent_id)

    related_name = None
    if note.related_type and note.related_id:
        related_name = record_service.get_record_name(db, note.related_type, note.related_id)

    return NoteRead(
        id=note.id,
        number=note.number,
        type=note.type,
        target_type=note.target_type,
        post=note.post,
        data=note_access.apply_note_access_control(viewer, note),
        is_internal=note.is_internal,
        parent_type=note.parent_type,
        parent_id=note.parent_id,
        parent_name=parent_name,
        related_type=note.related_type,
        related_id=note.related_id,
        related_name=related_name,
        super_parent_type=note.super_parent_type,
        super_parent_id=note.super_parent_id,
        created_by_id=note.created_by_id,
        created_by_name=note.created_by.display_name if note.created_by else None,
        created_at=note.created_at,
        attachments=attachments,
    )


# =============================================================================
# Posting
# =============================================================================

def create_post(
    db: Session,
    viewer: Viewer,
    scope: str,
    record_id: UUID,
    data: NoteCreate,
) -> NoteRead:
    """Post to a record's stream. Flushes only; the caller commits."""
    if scope == EntityType.USER.value:
        raise _deny(viewer, scope, record_id, "User streams are not available here")

    record = _get_target(db, scope, record_id)

    if not acl_service.check_entity(db, viewer, record, AclAction.STREAM):
        raise _deny(viewer, scope, record_id, "No stream access to record")

    super_parent_type = None
    super_parent_id = getattr(record, "account_id", None)
    if super_parent_id is not None:
        super_parent_type = Account.entity_type

    note = note_service.create_note(
        db,
        note_type=NoteType.POST,
        parent_type=scope,
        parent_id=record_id,
        super_parent_type=super_parent_type,
        super_parent_id=super_parent_id,
        created_by_id=viewer.user_id,
        post=data.post,
        # Portal users cannot post internal entries
        is_internal=data.is_internal and not viewer.is_portal,
    )
    logger.info(
        "Stream post created",
        extra=build_log_context(user_id=str(viewer.user_id), scope=scope, record_id=str(record_id)),
    )
    return to_note_read(db, viewer, note, scope, record_id)
