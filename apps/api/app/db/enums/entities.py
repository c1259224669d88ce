"""Polymorphic entity enums."""

from enum import Enum


class EntityType(str, Enum):
    """Entity types for polymorphic relationships (parent/related links, teams)."""

    ACCOUNT = "Account"
    CONTACT = "Contact"
    LEAD = "Lead"
    CASE = "Case"
    OPPORTUNITY = "Opportunity"
    EMAIL = "Email"
    USER = "User"
    TEAM = "Team"
    NOTE = "Note"
    ATTACHMENT = "Attachment"


# Global configuration pseudo-type (not an entity)
SETTINGS_SCOPE = "Settings"
