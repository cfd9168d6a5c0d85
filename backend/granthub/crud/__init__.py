"""CRUD operations for the application."""

from .crud_contact import contact
from .crud_contact_change_log import contact_change_log
from .crud_contact_field_access import contact_field_access
from .crud_group import group
from .crud_postal_code_centroid import postal_code_centroid

__all__ = [
    "contact",
    "contact_change_log",
    "contact_field_access",
    "group",
    "postal_code_centroid",
]
