"""ACL enums: actions, levels and named permissions."""

from enum import Enum


class AclAction(str, Enum):
    """Record-level actions an ACL role grants a level for."""

    READ = "read"
    STREAM = "stream"
    EDIT = "edit"
    DELETE = "delete"


class AclLevel(str, Enum):
    """
    Access levels, ordered from least to most permissive.

    YES is used for boolean permissions (e.g. audit) and field visibility.
    """

    NO = "no"
    OWN = "own"
    TEAM = "team"
    ALL = "all"
    YES = "yes"

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_


# Rank used when merging several roles (most permissive wins)
LEVEL_RANK: dict[str, int] = {
    AclLevel.NO.value: 0,
    AclLevel.OWN.value: 1,
    AclLevel.TEAM.value: 2,
    AclLevel.ALL.value: 3,
    AclLevel.YES.value: 3,
}


class AclPermission(str, Enum):
    """Named permission categories (not bound to a scope)."""

    AUDIT = "audit"
    EXPORT = "export"
    ASSIGNMENT = "assignment"


class AclVerdict(str, Enum):
    """Outcome of a single access check in a check chain."""

    PERMIT = "permit"
    DENY = "deny"
    ABSTAIN = "abstain"
