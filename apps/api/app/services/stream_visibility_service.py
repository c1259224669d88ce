"""Per-viewer visibility rules for stream queries.

Rules are derived from the viewer's ACL table on every call and never
cached, so role changes apply to the next query.
"""

from dataclasses import dataclass

from app.core.scopes import get_object_scopes
from app.db.enums import AclAction, AclLevel
from app.schemas.auth import Viewer
from app.services import acl_service


@dataclass(frozen=True)
class VisibilityScopeRules:
    """
    Entity types that narrow what a viewer sees in a stream.

    only_team:      read level "team" (entry visible to team members / linked users)
    only_own:       read level "own" (entry visible to linked users)
    ignore_related: no read access (entries related to such records are hidden)
    ignore_parent:  no read or no stream access (entries on such records are hidden)
    not_all:        portal only, read level below "all"
    """
    only_team: tuple[str, ...] = ()
    only_own: tuple[str, ...] = ()
    ignore_related: tuple[str, ...] = ()
    ignore_parent: tuple[str, ...] = ()
    not_all: tuple[str, ...] = ()

    @property
    def restricted(self) -> tuple[str, ...]:
        return self.only_team + self.only_own


def get_only_team_scopes(viewer: Viewer) -> list[str]:
    if viewer.is_portal:
        return []
    return [
        scope.name
        for scope in get_object_scopes()
        if acl_service.get_level(viewer, scope.name, AclAction.READ) == AclLevel.TEAM.value
    ]


def get_only_own_scopes(viewer: Viewer) -> list[str]:
    if viewer.is_portal:
        return []
    return [
        scope.name
        for scope in get_object_scopes()
        if acl_service.get_level(viewer, scope.name, AclAction.READ) == AclLevel.OWN.value
    ]


def get_ignore_scopes(viewer: Viewer, for_parent: bool = False) -> list[str]:
    """Object scopes hidden from the viewer (for_parent also hides scopes without stream access)."""
    result = []
    for scope in get_object_scopes():
        if not acl_service.check_scope(viewer, scope.name, AclAction.READ):
            result.append(scope.name)
        elif for_parent and not acl_service.check_scope(viewer, scope.name, AclAction.STREAM):
            result.append(scope.name)
    return result


def get_not_all_scopes(viewer: Viewer) -> list[str]:
    if not viewer.is_portal:
        return []
    return [
        scope.name
        for scope in get_object_scopes()
        if acl_service.get_level(viewer, scope.name, AclAction.READ) != AclLevel.ALL.value
    ]


def get_visibility_rules(viewer: Viewer) -> VisibilityScopeRules:
    """Compute the viewer's visibility rules. Admins have none."""
    if viewer.is_admin:
        return VisibilityScopeRules()
    return VisibilityScopeRules(
        only_team=tuple(get_only_team_scopes(viewer)),
        only_own=tuple(get_only_own_scopes(viewer)),
        ignore_related=tuple(get_ignore_scopes(viewer)),
        ignore_parent=tuple(get_ignore_scopes(viewer, for_parent=True)),
        not_all=tuple(get_not_all_scopes(viewer)),
    )
