"""Attachment endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_viewer
from app.schemas.auth import Viewer
from app.schemas.stream import AttachmentRead
from app.services import attachment_service
from app.services.attachment_service import (
    AttachmentAccessDeniedError,
    AttachmentNotFoundError,
)


router = APIRouter(prefix="/attachments", tags=["attachments"])


@router.get("/{attachment_id}", response_model=AttachmentRead)
def get_attachment(
    attachment_id: UUID,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
):
    """
    Get attachment metadata.

    Readable when the record (or stream post) it hangs off is readable,
    or when the viewer uploaded it.
    """
    try:
        return attachment_service.get_attachment_for_viewer(db, viewer, attachment_id)
    except AttachmentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AttachmentAccessDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
