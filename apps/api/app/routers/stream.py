"""Record stream API endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_viewer, require_csrf_header
from app.schemas.auth import Viewer
from app.schemas.stream import NoteCreate, NoteRead, SearchParams, StreamCollection
from app.services import stream_service
from app.services.stream_service import (
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    StreamServiceError,
)

router = APIRouter(prefix="/stream", tags=["stream"])


def _to_http_error(exc: StreamServiceError) -> HTTPException:
    if isinstance(exc, ForbiddenError):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, BadRequestError):
        return HTTPException(status_code=400, detail=str(exc))
    return HTTPException(status_code=500, detail="Stream error")


def get_search_params(
    offset: int | None = Query(None),
    max_size: int | None = Query(None, alias="maxSize"),
    primary_filter: str | None = Query(None, alias="primaryFilter"),
    after: datetime | None = Query(None),
) -> SearchParams:
    """Parse stream search parameters; invalid values become 400s."""
    try:
        return stream_service.parse_search_params(
            offset=offset,
            max_size=max_size,
            primary_filter=primary_filter,
            after=after,
        )
    except BadRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/{scope}/{record_id}", response_model=StreamCollection)
def find(
    scope: str,
    record_id: UUID,
    params: SearchParams = Depends(get_search_params),
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
):
    """List a record's stream, filtered to what the viewer may see."""
    try:
        return stream_service.find(db, viewer, scope, record_id, params)
    except StreamServiceError as e:
        raise _to_http_error(e)


@router.get("/{scope}/{record_id}/updates", response_model=StreamCollection)
def find_updates(
    scope: str,
    record_id: UUID,
    params: SearchParams = Depends(get_search_params),
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
):
    """List field updates and status changes of a record (audit permission)."""
    try:
        return stream_service.find_updates(db, viewer, scope, record_id, params)
    except StreamServiceError as e:
        raise _to_http_error(e)


@router.post(
    "/{scope}/{record_id}",
    response_model=NoteRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_csrf_header)],
)
def create_post(
    scope: str,
    record_id: UUID,
    data: NoteCreate,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
):
    """Post to a record's stream."""
    try:
        note = stream_service.create_post(db, viewer, scope, record_id, data)
        db.commit()
        return note
    except StreamServiceError as e:
        db.rollback()
        raise _to_http_error(e)
