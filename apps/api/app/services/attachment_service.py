"""Attachment service - metadata lookup with read checks."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.structured_logging import build_log_context
from app.db.enums import AclAction, EntityType
from app.db.models import Attachment
from app.schemas.auth import Viewer
from app.services import acl_service

logger = logging.getLogger(__name__)


class AttachmentServiceError(Exception):
    """Base exception for attachment service errors."""

    pass


class AttachmentNotFoundError(AttachmentServiceError):
    """Attachment not found."""

    pass


class AttachmentAccessDeniedError(AttachmentServiceError):
    """Viewer may not read the attachment."""

    pass


def get_attachment(db: Session, attachment_id: UUID) -> Attachment | None:
    return db.get(Attachment, attachment_id)


def get_attachment_for_viewer(db: Session, viewer: Viewer, attachment_id: UUID) -> Attachment:
    """Load an attachment the viewer may read."""
    attachment = get_attachment(db, attachment_id)
    if attachment is None:
        raise AttachmentNotFoundError("Attachment not found")

    if not acl_service.check_entity(db, viewer, attachment, AclAction.READ):
        logger.info(
            "Attachment access denied",
            extra=build_log_context(
                user_id=str(viewer.user_id),
                scope=EntityType.ATTACHMENT.value,
                record_id=str(attachment_id),
                reason="read denied",
            ),
        )
        raise AttachmentAccessDeniedError("Not authorized to view this attachment")

    return attachment
