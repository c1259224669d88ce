"""Note (stream entry) access control.

Audience rules by target_type:
- "all": everyone who is not a portal user
- "teams": members of at least one linked team
- "users": linked users
- None: access follows the parent record's stream (or the related record)

The creator can always read their own entries.
"""

import copy
import logging
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.enums import AclAction, AclVerdict, NoteTargetType, NoteType
from app.db.models import Note, NoteTeam, NoteUser
from app.schemas.auth import Viewer
from app.services import acl_service, record_service

logger = logging.getLogger(__name__)


def get_note_team_ids(db: Session, note_id: UUID) -> set[UUID]:
    rows = db.query(NoteTeam.team_id).filter(NoteTeam.note_id == note_id).all()
    return {row.team_id for row in rows}


def is_note_user(db: Session, note_id: UUID, user_id: UUID) -> bool:
    """Whether the user is linked to the note (targeted user or email recipient)."""
    return db.query(NoteUser).filter(
        NoteUser.note_id == note_id,
        NoteUser.user_id == user_id,
    ).first() is not None


def resolve_note_parent_verdict(db: Session, viewer: Viewer, note: Note) -> AclVerdict:
    """
    Decide read access to something attached to a note.

    Only ever PERMIT or ABSTAIN: a note that does not grant access leaves the
    decision to the remaining checks.
    """
    if note.target_type == NoteTargetType.TEAMS.value:
        if get_note_team_ids(db, note.id) & viewer.team_ids:
            return AclVerdict.PERMIT
        return AclVerdict.ABSTAIN

    if note.target_type == NoteTargetType.USERS.value:
        if is_note_user(db, note.id, viewer.user_id):
            return AclVerdict.PERMIT
        return AclVerdict.ABSTAIN

    if not note.parent_type or not note.parent_id:
        return AclVerdict.ABSTAIN

    parent = record_service.get_entity(db, note.parent_type, note.parent_id)
    if parent is not None and acl_service.check_entity(db, viewer, parent):
        return AclVerdict.PERMIT
    return AclVerdict.ABSTAIN


def can_read_note(db: Session, viewer: Viewer, note: Note) -> bool:
    """Read check for a single stream entry."""
    if viewer.is_admin or note.created_by_id == viewer.user_id:
        return True

    if viewer.is_portal and note.is_internal:
        return False

    if note.target_type == NoteTargetType.ALL.value:
        return not viewer.is_portal
    if note.target_type == NoteTargetType.TEAMS.value:
        return bool(get_note_team_ids(db, note.id) & viewer.team_ids)
    if note.target_type == NoteTargetType.USERS.value:
        return is_note_user(db, note.id, viewer.user_id)

    parent = record_service.get_entity(db, note.parent_type, note.parent_id)
    if parent is not None:
        return acl_service.check_entity(db, viewer, parent, AclAction.STREAM)

    related = record_service.get_entity(db, note.related_type, note.related_id)
    if related is not None:
        return acl_service.check_entity(db, viewer, related, AclAction.READ)

    return False


def apply_note_access_control(viewer: Viewer, note: Note) -> dict | None:
    """
    Entry data as the viewer may see it.

    Update entries list the changed fields of the parent record; fields the
    viewer cannot read are dropped from the list and from the was/became
    values. Returns a redacted copy, the stored data is left untouched.
    """
    data = note.data
    if not data or viewer.is_admin:
        return data
    if note.type != NoteType.UPDATE.value or not note.parent_type:
        return data

    forbidden = set(acl_service.get_forbidden_fields(viewer, note.parent_type))
    if not forbidden:
        return data

    data = copy.deepcopy(data)
    if isinstance(data.get("fields"), list):
        data["fields"] = [f for f in data["fields"] if f not in forbidden]

    attributes = data.get("attributes") or {}
    for key in ("was", "became"):
        values = attributes.get(key)
        if isinstance(values, dict):
            attributes[key] = {k: v for k, v in values.items() if k not in forbidden}

    logger.debug("Redacted %d field(s) from note %s", len(forbidden), note.id)
    return data
