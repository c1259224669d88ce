"""Record lookup by (entity type, id) for polymorphic links."""

from uuid import UUID

from sqlalchemy.orm import Session

from app.db.enums import EntityType
from app.db.models import (
    Account,
    Attachment,
    Case,
    Contact,
    Email,
    EntityTeam,
    Lead,
    Note,
    Opportunity,
    Team,
    User,
)


ENTITY_MODELS: dict[str, type] = {
    EntityType.ACCOUNT.value: Account,
    EntityType.CONTACT.value: Contact,
    EntityType.LEAD.value: Lead,
    EntityType.CASE.value: Case,
    EntityType.OPPORTUNITY.value: Opportunity,
    EntityType.EMAIL.value: Email,
    EntityType.USER.value: User,
    EntityType.TEAM.value: Team,
    EntityType.NOTE.value: Note,
    EntityType.ATTACHMENT.value: Attachment,
}


def get_entity_type(record) -> str:
    """Entity type name of a loaded record."""
    for name, model in ENTITY_MODELS.items():
        if type(record) is model:
            return name
    raise ValueError(f"Unknown record class: {type(record).__name__}")


def get_entity(db: Session, entity_type: str | None, entity_id: UUID | None):
    """Load a record by type and id. Unknown types and missing ids return None."""
    if not entity_type or not entity_id:
        return None
    model = ENTITY_MODELS.get(entity_type)
    if model is None:
        return None
    return db.get(model, entity_id)


def get_record_name(db: Session, entity_type: str | None, entity_id: UUID | None) -> str | None:
    """Display name of a linked record (None when it no longer exists)."""
    record = get_entity(db, entity_type, entity_id)
    if record is None:
        return None
    if isinstance(record, User):
        return record.display_name
    if isinstance(record, Note):
        return None
    return getattr(record, "name", None)


def get_team_ids(db: Session, entity_type: str, entity_id: UUID) -> set[UUID]:
    """Teams a record is shared with."""
    rows = db.query(EntityTeam.team_id).filter(
        EntityTeam.entity_type == entity_type,
        EntityTeam.entity_id == entity_id,
    ).all()
    return {row.team_id for row in rows}


def is_owner(record, user_id: UUID) -> bool:
    """Owner = assigned user, or creator when the record has no assignee."""
    if isinstance(record, User):
        return record.id == user_id
    assigned_user_id = getattr(record, "assigned_user_id", None)
    if assigned_user_id is not None:
        return assigned_user_id == user_id
    return getattr(record, "created_by_id", None) == user_id
