"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.db.enums import UserType


class TokenPayload(BaseModel):
    """Decoded JWT payload structure."""
    sub: UUID  # user_id
    user_type: str
    token_version: int


class AclTable(BaseModel):
    """
    Effective ACL of a user, merged from all assigned roles.

    levels:      scope -> action -> level (no/own/team/all)
    fields:      scope -> field -> read visibility (yes/no)
    permissions: permission name -> level
    default_level applies to role-governed scopes no role mentions.
    """
    model_config = ConfigDict(frozen=True)

    levels: dict[str, dict[str, str]] = Field(default_factory=dict)
    fields: dict[str, dict[str, str]] = Field(default_factory=dict)
    permissions: dict[str, str] = Field(default_factory=dict)
    default_level: str = "no"


class Viewer(BaseModel):
    """
    The acting user of a request.

    Built fresh for every request by the get_viewer dependency; carries
    everything authorization decisions need so services never re-read
    role or team tables mid-request.
    """
    model_config = ConfigDict(frozen=True)

    user_id: UUID
    user_name: str
    display_name: str
    user_type: UserType
    team_ids: frozenset[UUID] = frozenset()
    acl: AclTable = Field(default_factory=AclTable)

    @property
    def is_admin(self) -> bool:
        return self.user_type == UserType.ADMIN

    @property
    def is_portal(self) -> bool:
        return self.user_type == UserType.PORTAL
