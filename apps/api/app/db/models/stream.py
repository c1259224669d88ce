"""SQLAlchemy ORM models for stream notes (activity feed entries)."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    false,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import EntityType

if TYPE_CHECKING:
    from app.db.models.auth import User


class Note(Base):
    """
    One entry of a record's stream.

    Linkage:
    - parent_type/parent_id: the record whose stream the entry belongs to
    - related_type/related_id: the record the entry is about (Email, Case...)
    - super_parent_type/super_parent_id: set when the parent is a sub-record
      of another record (e.g. a Contact of an Account)

    Audience (posts only): target_type "teams"/"users" restricts visibility
    to the linked teams/users; otherwise the parent's access applies.
    """

    __tablename__ = "notes"
    __table_args__ = (
        Index("idx_notes_parent", "parent_type", "parent_id"),
        Index("idx_notes_super_parent", "super_parent_type", "super_parent_id"),
        Index("idx_notes_related", "related_type", "related_id"),
        Index("idx_notes_number", "number", unique=True),
    )

    entity_type = EntityType.NOTE.value

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(24), nullable=False)
    target_type: Mapped[str | None] = mapped_column(String(7), nullable=True)
    post: Mapped[str | None] = mapped_column(Text, nullable=True)
    data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    is_internal: Mapped[bool] = mapped_column(
        Boolean, server_default=false(), default=False, nullable=False
    )

    parent_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    related_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    related_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    super_parent_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    super_parent_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    created_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    # Relationships
    created_by: Mapped["User | None"] = relationship(foreign_keys=[created_by_id])


class NoteTeam(Base):
    """Teams a post targets (target_type="teams")."""

    __tablename__ = "note_teams"
    __table_args__ = (Index("idx_note_teams_team", "team_id"),)

    note_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("notes.id", ondelete="CASCADE"), primary_key=True
    )
    team_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True
    )


class NoteUser(Base):
    """
    Users linked to an entry.

    Holds the targeted users of a post (target_type="users") and the
    recipients of an email entry.
    """

    __tablename__ = "note_users"
    __table_args__ = (Index("idx_note_users_user", "user_id"),)

    note_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("notes.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
