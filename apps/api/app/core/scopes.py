"""Scope (entity type) metadata registry.

Each scope declares:
- entity: backed by a table
- object: a business object (participates in stream visibility rules)
- stream: has an activity stream
- acl: access governed by ACL role levels
- status_field: field whose changes produce Status stream entries
- default_level: fixed level for scopes not governed by roles (acl=False)
"""

from dataclasses import dataclass

from app.db.enums import SETTINGS_SCOPE, EntityType


@dataclass(frozen=True)
class ScopeDef:
    """Scope definition with metadata."""
    name: str
    entity: bool = True
    object: bool = True
    stream: bool = False
    acl: bool = True
    status_field: str | None = None
    default_level: str | None = None  # Fixed level for scopes not governed by roles


SCOPES: dict[str, ScopeDef] = {
    EntityType.ACCOUNT.value: ScopeDef(EntityType.ACCOUNT.value, stream=True),
    EntityType.CONTACT.value: ScopeDef(EntityType.CONTACT.value, stream=True),
    EntityType.LEAD.value: ScopeDef(EntityType.LEAD.value, stream=True, status_field="status"),
    EntityType.CASE.value: ScopeDef(EntityType.CASE.value, stream=True, status_field="status"),
    EntityType.OPPORTUNITY.value: ScopeDef(
        EntityType.OPPORTUNITY.value, stream=True, status_field="stage"
    ),
    EntityType.EMAIL.value: ScopeDef(EntityType.EMAIL.value),
    EntityType.USER.value: ScopeDef(EntityType.USER.value, object=False, stream=True),
    EntityType.TEAM.value: ScopeDef(EntityType.TEAM.value, object=False),
    EntityType.NOTE.value: ScopeDef(
        EntityType.NOTE.value, object=False, acl=False, default_level="own"
    ),
    EntityType.ATTACHMENT.value: ScopeDef(
        EntityType.ATTACHMENT.value, object=False, acl=False, default_level="own"
    ),
    SETTINGS_SCOPE: ScopeDef(SETTINGS_SCOPE, entity=False, object=False, acl=False),
}


def get_scope(name: str) -> ScopeDef | None:
    """Get scope definition by name."""
    return SCOPES.get(name)


def get_status_field(name: str) -> str | None:
    """Status field configured for a scope, if any."""
    scope = SCOPES.get(name)
    return scope.status_field if scope else None


def get_object_scopes() -> list[ScopeDef]:
    """Business-object entity scopes, in registry order."""
    return [s for s in SCOPES.values() if s.entity and s.object]
