"""Attachment access control - read checks delegated to the owning record.

An attachment is readable when any of these holds, checked in order:
- it hangs off the "Settings" pseudo-scope (global assets)
- its delegation target is a Note whose audience includes the viewer
- the viewer may read the delegation target (parent first, then related)
- the baseline rule grants read on the attachment itself (creator)

Each check is a strategy returning an AclVerdict. PERMIT and DENY end the
evaluation, ABSTAIN hands over to the next strategy.
"""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from app.core.note_access import resolve_note_parent_verdict
from app.db.enums import SETTINGS_SCOPE, AclAction, AclVerdict
from app.db.models import Attachment, Note
from app.schemas.auth import Viewer
from app.services import acl_service, record_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessRequest:
    """A read check in progress: who, on what, delegating to which record."""
    viewer: Viewer
    record: Attachment
    target: Any = None


def resolve_delegation_target(db: Session, record: Attachment):
    """
    Record the attachment delegates to: parent when linked, else related.

    A link pointing at a record that no longer exists yields None.
    """
    if record.parent_type and record.parent_id:
        return record_service.get_entity(db, record.parent_type, record.parent_id)
    if record.related_type and record.related_id:
        return record_service.get_entity(db, record.related_type, record.related_id)
    return None


# =============================================================================
# Strategies
# =============================================================================

class ReadCheck:
    """One step of the attachment read chain."""

    name = "read_check"

    def evaluate(self, db: Session, request: AccessRequest) -> AclVerdict:
        raise NotImplementedError


class SettingsParentCheck(ReadCheck):
    name = "settings_parent"

    def evaluate(self, db: Session, request: AccessRequest) -> AclVerdict:
        if request.record.parent_type == SETTINGS_SCOPE:
            return AclVerdict.PERMIT
        return AclVerdict.ABSTAIN


class NoteTargetCheck(ReadCheck):
    name = "note_target"

    def evaluate(self, db: Session, request: AccessRequest) -> AclVerdict:
        if not isinstance(request.target, Note):
            return AclVerdict.ABSTAIN
        return resolve_note_parent_verdict(db, request.viewer, request.target)


class DelegatedTargetCheck(ReadCheck):
    name = "delegated_target"

    def evaluate(self, db: Session, request: AccessRequest) -> AclVerdict:
        if request.target is None:
            return AclVerdict.ABSTAIN
        if acl_service.check_entity(db, request.viewer, request.target, AclAction.READ):
            return AclVerdict.PERMIT
        return AclVerdict.ABSTAIN


class BaselineRecordCheck(ReadCheck):
    name = "baseline_record"

    def evaluate(self, db: Session, request: AccessRequest) -> AclVerdict:
        if acl_service.check_entity_default(db, request.viewer, request.record, AclAction.READ):
            return AclVerdict.PERMIT
        return AclVerdict.DENY


READ_CHECKS: tuple[ReadCheck, ...] = (
    SettingsParentCheck(),
    NoteTargetCheck(),
    DelegatedTargetCheck(),
    BaselineRecordCheck(),
)


def evaluate_checks(
    db: Session,
    request: AccessRequest,
    checks: tuple[ReadCheck, ...] = READ_CHECKS,
) -> bool:
    """Run checks in order; the first definite verdict wins, none means deny."""
    for check in checks:
        verdict = check.evaluate(db, request)
        if verdict == AclVerdict.PERMIT:
            logger.debug("Attachment %s readable via %s", request.record.id, check.name)
            return True
        if verdict == AclVerdict.DENY:
            logger.debug("Attachment %s denied by %s", request.record.id, check.name)
            return False
    return False


def can_read_attachment(db: Session, viewer: Viewer, record: Attachment) -> bool:
    """Check if the viewer may read an attachment. Never raises for missing links."""
    if viewer.is_admin:
        return True

    request = AccessRequest(
        viewer=viewer,
        record=record,
        target=resolve_delegation_target(db, record),
    )
    return evaluate_checks(db, request)
