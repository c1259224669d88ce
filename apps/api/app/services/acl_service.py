"""ACL service: role merging, scope/field/permission checks and the baseline record rule.

Resolution:
- Admin: everything allowed (no role lookup)
- Several roles: the most permissive level wins (no < own < team < all)
- Scope not mentioned by any role: settings default (regular) or "no" (portal)
- Field hidden only when every role hides it

Tables are rebuilt for each request and never cached, so role edits apply
on the next call.
"""

from typing import Callable

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.scopes import get_scope
from app.db.enums import LEVEL_RANK, AclAction, AclLevel, AclPermission, EntityType, UserType
from app.db.models import AclRole, TeamUser, User, UserRole
from app.schemas.auth import AclTable, Viewer
from app.services import record_service

# =============================================================================
# Table Building
# =============================================================================

def _max_level(current: str | None, candidate: str) -> str:
    if current is None:
        return candidate
    return candidate if LEVEL_RANK.get(candidate, 0) > LEVEL_RANK.get(current, 0) else current


def _role_scope_actions(value) -> dict[str, str]:
    """Normalize one role's scope entry to action -> level."""
    if value is True:
        return {action.value: AclLevel.ALL.value for action in AclAction}
    if not value:
        return {action.value: AclLevel.NO.value for action in AclAction}
    actions = {k: v for k, v in dict(value).items() if AclLevel.has_value(v)}
    # Stream access follows read access unless the role says otherwise
    actions.setdefault(AclAction.STREAM.value, actions.get(AclAction.READ.value, AclLevel.NO.value))
    return actions


def _role_field_read(role: AclRole, scope: str, field: str) -> str:
    value = (role.field_data or {}).get(scope, {}).get(field)
    if isinstance(value, dict):
        return value.get("read", AclLevel.YES.value)
    return value or AclLevel.YES.value


def get_user_roles(db: Session, user: User) -> list[AclRole]:
    """Roles applying to the user (portal users only get portal roles)."""
    return db.query(AclRole).join(
        UserRole, UserRole.role_id == AclRole.id
    ).filter(
        UserRole.user_id == user.id,
        AclRole.is_portal.is_(user.is_portal),
    ).all()


def build_acl_table(db: Session, user: User) -> AclTable:
    """Merge the user's roles into an effective ACL table."""
    if user.is_admin:
        return AclTable(
            default_level=AclLevel.ALL.value,
            permissions={p.value: AclLevel.YES.value for p in AclPermission},
        )

    roles = get_user_roles(db, user)

    levels: dict[str, dict[str, str]] = {}
    permissions: dict[str, str] = {}
    field_names: dict[str, set[str]] = {}

    for role in roles:
        for scope, value in (role.data or {}).items():
            merged = levels.setdefault(scope, {})
            for action, level in _role_scope_actions(value).items():
                merged[action] = _max_level(merged.get(action), level)
        for scope, field_defs in (role.field_data or {}).items():
            field_names.setdefault(scope, set()).update(field_defs or {})
        for name, level in (role.permissions or {}).items():
            permissions[name] = _max_level(permissions.get(name), level)

    fields: dict[str, dict[str, str]] = {}
    for scope, names in field_names.items():
        for field in names:
            hidden = all(
                _role_field_read(role, scope, field) == AclLevel.NO.value for role in roles
            )
            fields.setdefault(scope, {})[field] = (
                AclLevel.NO.value if hidden else AclLevel.YES.value
            )

    default_level = AclLevel.NO.value if user.is_portal else settings.default_acl_level
    return AclTable(
        levels=levels,
        fields=fields,
        permissions=permissions,
        default_level=default_level,
    )


def build_viewer(db: Session, user: User) -> Viewer:
    """Snapshot the user, their teams and effective ACL for one request."""
    team_rows = db.query(TeamUser.team_id).filter(TeamUser.user_id == user.id).all()
    return Viewer(
        user_id=user.id,
        user_name=user.user_name,
        display_name=user.display_name,
        user_type=UserType(user.user_type),
        team_ids=frozenset(row.team_id for row in team_rows),
        acl=build_acl_table(db, user),
    )


# =============================================================================
# Scope / Field / Permission Checks
# =============================================================================

def get_level(viewer: Viewer, scope: str, action: AclAction | str) -> str:
    """Effective level of an action on a scope."""
    action = action.value if isinstance(action, AclAction) else action
    if viewer.is_admin:
        return AclLevel.ALL.value

    scope_def = get_scope(scope)
    if scope_def is None or not scope_def.entity:
        return AclLevel.NO.value
    if action == AclAction.STREAM.value and not scope_def.stream:
        return AclLevel.NO.value
    if not scope_def.acl:
        return scope_def.default_level or AclLevel.ALL.value

    actions = viewer.acl.levels.get(scope)
    if actions is None:
        return viewer.acl.default_level
    return actions.get(action, AclLevel.NO.value)


def check_scope(viewer: Viewer, scope: str, action: AclAction | str = AclAction.READ) -> bool:
    """Entity-type check: does the viewer have any access for this action?"""
    return get_level(viewer, scope, action) != AclLevel.NO.value


def check_field(viewer: Viewer, scope: str, field: str) -> bool:
    """Field-level read visibility."""
    if viewer.is_admin:
        return True
    return viewer.acl.fields.get(scope, {}).get(field) != AclLevel.NO.value


def get_forbidden_fields(viewer: Viewer, scope: str) -> list[str]:
    """Fields of a scope the viewer may not read."""
    if viewer.is_admin:
        return []
    return sorted(
        field
        for field, level in viewer.acl.fields.get(scope, {}).items()
        if level == AclLevel.NO.value
    )


def get_permission_level(viewer: Viewer, name: AclPermission | str) -> str:
    """Level of a named permission (audit, export...)."""
    name = name.value if isinstance(name, AclPermission) else name
    if viewer.is_admin:
        return AclLevel.YES.value
    return viewer.acl.permissions.get(name, AclLevel.NO.value)


# =============================================================================
# Record Checks
# =============================================================================

def check_entity_default(
    db: Session,
    viewer: Viewer,
    record,
    action: AclAction | str = AclAction.READ,
) -> bool:
    """
    Baseline rule for a record, ignoring any type-specific checker.

    - all: allowed
    - team: owner, or the record shares a team with the viewer
    - own: owner (assigned user, or creator when unassigned)
    - no: denied
    """
    if viewer.is_admin:
        return True

    entity_type = record_service.get_entity_type(record)
    level = get_level(viewer, entity_type, action)

    if level == AclLevel.ALL.value:
        return True
    if level == AclLevel.NO.value:
        return False
    if record_service.is_owner(record, viewer.user_id):
        return True
    if level == AclLevel.TEAM.value:
        record_teams = record_service.get_team_ids(db, entity_type, record.id)
        return bool(record_teams & viewer.team_ids)
    return False


def _get_read_checker(entity_type: str) -> Callable | None:
    # Imported here to avoid circular imports (checkers call back into this module)
    if entity_type == EntityType.ATTACHMENT.value:
        from app.core.attachment_access import can_read_attachment
        return can_read_attachment
    if entity_type == EntityType.NOTE.value:
        from app.core.note_access import can_read_note
        return can_read_note
    return None


def check_entity(
    db: Session,
    viewer: Viewer,
    record,
    action: AclAction | str = AclAction.READ,
) -> bool:
    """Check an action on a record, routing reads through type-specific checkers."""
    if viewer.is_admin:
        return True

    action = action.value if isinstance(action, AclAction) else action
    if action == AclAction.READ.value:
        checker = _get_read_checker(record_service.get_entity_type(record))
        if checker is not None:
            return checker(db, viewer, record)

    return check_entity_default(db, viewer, record, action)
