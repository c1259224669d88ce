"""Auth-related enums."""

from enum import Enum


class UserType(str, Enum):
    """
    User account types.

    - REGULAR: Internal user, access governed by ACL roles
    - ADMIN: Internal administrator, bypasses ACL checks
    - PORTAL: External portal user with narrower visibility
    - API: Integration account, treated as a regular user for ACL
    """

    REGULAR = "regular"
    ADMIN = "admin"
    PORTAL = "portal"
    API = "api"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid user type."""
        return value in cls._value2member_map_
