"""Note service - stream entries of any record type."""

from uuid import UUID

import nh3
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.predicates import FeedQuery
from app.db import predicate_compiler
from app.db.enums import NOTE_TYPES_WITH_ATTACHMENTS, EntityType, NoteType
from app.db.models import Attachment, Note, NoteTeam, NoteUser

# Allowed HTML tags for stream post rich text
ALLOWED_TAGS = {"p", "br", "strong", "em", "ul", "ol", "li", "a", "blockquote", "h1", "h2", "h3", "code", "pre"}
ALLOWED_ATTRIBUTES = {"a": {"href", "target"}}


def sanitize_html(html: str) -> str:
    """Sanitize HTML to prevent XSS, allowing only safe rich text tags."""
    return nh3.clean(html, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES)


def next_note_number(db: Session) -> int:
    """Next value of the stream sequence."""
    current = db.query(func.max(Note.number)).scalar()
    return (current or 0) + 1


def create_note(
    db: Session,
    *,
    note_type: NoteType | str,
    parent_type: str | None = None,
    parent_id: UUID | None = None,
    created_by_id: UUID | None = None,
    post: str | None = None,
    data: dict | None = None,
    target_type: str | None = None,
    related_type: str | None = None,
    related_id: UUID | None = None,
    super_parent_type: str | None = None,
    super_parent_id: UUID | None = None,
    is_internal: bool = False,
    team_ids: list[UUID] | None = None,
    user_ids: list[UUID] | None = None,
) -> Note:
    """Create a stream entry. Flushes only; the caller commits."""
    type_str = note_type.value if isinstance(note_type, NoteType) else note_type

    note = Note(
        number=next_note_number(db),
        type=type_str,
        target_type=target_type,
        post=sanitize_html(post) if post else post,
        data=data,
        is_internal=is_internal,
        parent_type=parent_type,
        parent_id=parent_id,
        related_type=related_type,
        related_id=related_id,
        super_parent_type=super_parent_type,
        super_parent_id=super_parent_id,
        created_by_id=created_by_id,
    )
    db.add(note)
    db.flush()

    for team_id in team_ids or []:
        db.add(NoteTeam(note_id=note.id, team_id=team_id))
    for user_id in user_ids or []:
        db.add(NoteUser(note_id=note.id, user_id=user_id))
    if team_ids or user_ids:
        db.flush()

    return note


def find_notes(
    db: Session,
    query: FeedQuery,
    offset: int = 0,
    limit: int | None = None,
) -> list[Note]:
    """Notes matching a stream query, newest first."""
    stmt = predicate_compiler.build_select(query, offset=offset, limit=limit)
    return list(db.execute(stmt).scalars().all())


def count_notes(db: Session, query: FeedQuery) -> int:
    """Number of notes matching a stream query (pagination ignored)."""
    return db.execute(predicate_compiler.build_count(query)).scalar_one()


def has_attachments(note: Note) -> bool:
    return note.type in NOTE_TYPES_WITH_ATTACHMENTS


def list_note_attachments(db: Session, note_id: UUID) -> list[Attachment]:
    """Attachments posted with a note, oldest first."""
    return db.query(Attachment).filter(
        Attachment.parent_type == EntityType.NOTE.value,
        Attachment.parent_id == note_id,
    ).order_by(Attachment.created_at.asc(), Attachment.name.asc()).all()
