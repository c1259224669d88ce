"""SQLAlchemy ORM models for users, teams and ACL roles."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Uuid, false, func, text, true
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.enums import UserType


class Team(Base):
    """A group of users; records and posts can be shared with teams."""

    __tablename__ = "teams"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)


class User(Base):
    """
    Application user.

    user_type decides the ACL regime: admins bypass checks, portal users
    get the restricted portal rules, everyone else is governed by roles.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_type: Mapped[str] = mapped_column(
        String(20), server_default=text("'regular'"), default=UserType.REGULAR.value, nullable=False
    )
    token_version: Mapped[int] = mapped_column(
        Integer, server_default=text("1"), default=1, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, server_default=true(), default=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.user_type == UserType.ADMIN.value

    @property
    def is_portal(self) -> bool:
        return self.user_type == UserType.PORTAL.value


class TeamUser(Base):
    """Team membership."""

    __tablename__ = "team_users"
    __table_args__ = (Index("idx_team_users_user", "user_id"),)

    team_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )


class AclRole(Base):
    """
    ACL role assigned to users.

    data:        {"Account": {"read": "team", "stream": "team", "edit": "own"}, "Lead": false}
    field_data:  {"Case": {"status": {"read": "no"}}}
    permissions: {"audit": "yes"}

    A scope mapped to false disables it entirely for holders of this role.
    """

    __tablename__ = "acl_roles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    is_portal: Mapped[bool] = mapped_column(
        Boolean, server_default=false(), default=False, nullable=False
    )
    data: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    field_data: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    permissions: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)


class UserRole(Base):
    """Role assignment."""

    __tablename__ = "user_roles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    role_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("acl_roles.id", ondelete="CASCADE"), primary_key=True
    )
