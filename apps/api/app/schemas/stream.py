"""Pydantic schemas for record streams."""

from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.core.config import settings
from app.db.enums import StreamPrimaryFilter


class SearchParams(BaseModel):
    """Stream search parameters (offset/limit paging plus optional narrowing)."""

    offset: int = Field(0, ge=0)
    max_size: int = Field(default_factory=lambda: settings.STREAM_DEFAULT_MAX_SIZE, ge=1)
    primary_filter: str | None = None
    after: datetime | None = None

    model_config = {"frozen": True}

    @field_validator("max_size")
    @classmethod
    def validate_max_size(cls, v: int) -> int:
        if v > settings.STREAM_MAX_SIZE_LIMIT:
            raise ValueError(f"max_size cannot exceed {settings.STREAM_MAX_SIZE_LIMIT}")
        return v

    @field_validator("primary_filter")
    @classmethod
    def validate_primary_filter(cls, v: str | None) -> str | None:
        if v is not None and v not in {f.value for f in StreamPrimaryFilter}:
            raise ValueError(f"Unknown primary filter: {v}")
        return v

    @field_validator("after")
    @classmethod
    def normalize_after(cls, v: datetime | None) -> datetime | None:
        # Stored timestamps are naive UTC; naive input is taken as UTC
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    def with_primary_filter(self, primary_filter: StreamPrimaryFilter | str) -> "SearchParams":
        value = (
            primary_filter.value
            if isinstance(primary_filter, StreamPrimaryFilter)
            else primary_filter
        )
        return self.model_copy(update={"primary_filter": value})


class AttachmentRead(BaseModel):
    """Attachment metadata."""

    id: UUID
    name: str
    type: str | None = None
    size: int | None = None
    role: str
    parent_type: str | None = None
    parent_id: UUID | None = None
    related_type: str | None = None
    related_id: UUID | None = None
    created_by_id: UUID | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class NoteRead(BaseModel):
    """Stream entry as returned to the viewer."""

    id: UUID
    number: int
    type: str
    target_type: str | None = None
    post: str | None = None
    data: dict | None = None
    is_internal: bool = False
    parent_type: str | None = None
    parent_id: UUID | None = None
    parent_name: str | None = None
    related_type: str | None = None
    related_id: UUID | None = None
    related_name: str | None = None
    super_parent_type: str | None = None
    super_parent_id: UUID | None = None
    created_by_id: UUID | None = None
    created_by_name: str | None = None
    created_at: datetime
    attachments: list[AttachmentRead] = Field(default_factory=list)


class StreamCollection(BaseModel):
    """One page of a stream plus the total number of matching entries."""

    items: list[NoteRead]
    total: int


class NoteCreate(BaseModel):
    """Request to post to a record's stream."""

    post: str = Field(..., min_length=1, max_length=20000)
    is_internal: bool = False
