"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.enums import EntityType


class Attachment(Base):
    """
    File attachment metadata.

    Read access is derived from what the attachment hangs off:
    - parent_type/parent_id: the record (or Note) the file was attached to
    - related_type/related_id: secondary link used when there is no parent
    - parent_type="Settings": global assets (logos etc.), readable by all
    """

    __tablename__ = "attachments"
    __table_args__ = (
        Index("idx_attachments_parent", "parent_type", "parent_id"),
        Index("idx_attachments_related", "related_type", "related_id"),
    )

    entity_type = EntityType.ATTACHMENT.value

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str | None] = mapped_column(String(100), nullable=True)  # MIME type
    size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    role: Mapped[str] = mapped_column(String(36), default="Attachment", nullable=False)

    parent_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    related_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    related_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    created_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
