"""SQLAlchemy ORM models for business records (accounts, contacts, leads, cases, opportunities)."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import ForeignKey, Index, Numeric, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.enums import EntityType


class OwnedRecordMixin:
    """Ownership columns shared by records governed by own/team ACL levels."""

    entity_type: ClassVar[str]

    assigned_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)


class EntityTeam(Base):
    """
    Polymorphic record-to-team link.

    Used by the team ACL level: a record is visible to a team-level viewer
    when one of its teams is one of the viewer's teams.
    """

    __tablename__ = "entity_teams"
    __table_args__ = (
        UniqueConstraint("entity_type", "entity_id", "team_id", name="uq_entity_team"),
        Index("idx_entity_teams_entity", "entity_type", "entity_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    team_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )


class Account(OwnedRecordMixin, Base):
    __tablename__ = "accounts"

    entity_type = EntityType.ACCOUNT.value

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    industry: Mapped[str | None] = mapped_column(String(100), nullable=True)


class Contact(OwnedRecordMixin, Base):
    __tablename__ = "contacts"

    entity_type = EntityType.CONTACT.value

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    account_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )

    @property
    def name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class Lead(OwnedRecordMixin, Base):
    __tablename__ = "leads"

    entity_type = EntityType.LEAD.value

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="New", nullable=False)
    source: Mapped[str | None] = mapped_column(String(50), nullable=True)


class Case(OwnedRecordMixin, Base):
    """Customer support case."""

    __tablename__ = "cases"

    entity_type = EntityType.CASE.value

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="New", nullable=False)
    priority: Mapped[str] = mapped_column(String(20), default="Normal", nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    account_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )


class Opportunity(OwnedRecordMixin, Base):
    __tablename__ = "opportunities"

    entity_type = EntityType.OPPORTUNITY.value

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    stage: Mapped[str] = mapped_column(String(50), default="Prospecting", nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    account_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
