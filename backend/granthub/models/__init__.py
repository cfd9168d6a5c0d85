"""Models for the application."""

from ._base import Base, TeamBase
from .contact import Contact, ContactAttribute, ContactSocialLink
from .contact_change_log import ContactChangeLog
from .event import Event, EventContact, EventRegistration, EventRole
from .group import ContactFieldAccess, Group, GroupModule, UserGroup
from .postal_code_centroid import PostalCodeCentroid
from .team import Team
from .user import User

__all__ = [
    "Base",
    "Contact",
    "ContactAttribute",
    "ContactChangeLog",
    "ContactFieldAccess",
    "ContactSocialLink",
    "Event",
    "EventContact",
    "EventRegistration",
    "EventRole",
    "Group",
    "GroupModule",
    "PostalCodeCentroid",
    "Team",
    "TeamBase",
    "User",
    "UserGroup",
]
