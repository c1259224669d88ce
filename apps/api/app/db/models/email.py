"""SQLAlchemy ORM models for emails."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.enums import EntityType
from app.db.models.records import OwnedRecordMixin


class Email(OwnedRecordMixin, Base):
    """
    Archived or sent email.

    Stream entries of type EmailReceived/EmailSent point at an Email
    through their related_type/related_id linkage.
    """

    __tablename__ = "emails"
    __table_args__ = (Index("idx_emails_parent", "parent_type", "parent_id"),)

    entity_type = EntityType.EMAIL.value

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)  # subject
    status: Mapped[str] = mapped_column(String(20), default="Archived", nullable=False)
    from_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    date_sent: Mapped[datetime | None] = mapped_column(nullable=True)

    parent_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
