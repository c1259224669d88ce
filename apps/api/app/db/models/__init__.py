"""SQLAlchemy ORM models."""

from app.db.models.attachments import Attachment
from app.db.models.auth import AclRole, Team, TeamUser, User, UserRole
from app.db.models.email import Email
from app.db.models.records import (
    Account,
    Case,
    Contact,
    EntityTeam,
    Lead,
    Opportunity,
    OwnedRecordMixin,
)
from app.db.models.stream import Note, NoteTeam, NoteUser
