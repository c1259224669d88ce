"""Stream (activity feed) enums."""

from enum import Enum


class NoteType(str, Enum):
    """Kinds of feed entries."""

    POST = "Post"
    CREATE = "Create"
    CREATE_RELATED = "CreateRelated"
    UPDATE = "Update"
    STATUS = "Status"
    ASSIGN = "Assign"
    RELATE = "Relate"
    UNRELATE = "Unrelate"
    EMAIL_RECEIVED = "EmailReceived"
    EMAIL_SENT = "EmailSent"


class NoteTargetType(str, Enum):
    """Audience-scoping mode of a post (None = conventional parent linkage)."""

    ALL = "all"
    TEAMS = "teams"
    USERS = "users"


class StreamPrimaryFilter(str, Enum):
    """Named filters a stream search can narrow to."""

    POSTS = "posts"
    UPDATES = "updates"


# Entry kinds whose attachments are loaded for display
NOTE_TYPES_WITH_ATTACHMENTS = frozenset({NoteType.POST.value, NoteType.EMAIL_RECEIVED.value})

# Entry kinds produced by email traffic (always related to an Email record)
NOTE_TYPES_EMAIL = frozenset({NoteType.EMAIL_RECEIVED.value, NoteType.EMAIL_SENT.value})

# Entry kinds returned by the "updates" primary filter
NOTE_TYPES_UPDATES = frozenset({NoteType.UPDATE.value, NoteType.STATUS.value})
