"""Enum definitions for application constants."""

from app.db.enums.acl import LEVEL_RANK, AclAction, AclLevel, AclPermission, AclVerdict
from app.db.enums.auth import UserType
from app.db.enums.entities import SETTINGS_SCOPE, EntityType
from app.db.enums.stream import (
    NOTE_TYPES_EMAIL,
    NOTE_TYPES_UPDATES,
    NOTE_TYPES_WITH_ATTACHMENTS,
    NoteTargetType,
    NoteType,
    StreamPrimaryFilter,
)
