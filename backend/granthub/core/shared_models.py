"""Shared models for the backend."""

from enum import Enum


class Roles(str, Enum):
    """Platform-wide roles carried by the authenticated session."""

    ORGANIZATION = "Organization"
    TEAM = "Team"
    ADMIN = "Admin"


class AppModule(str, Enum):
    """Team modules a group can be granted."""

    CRM = "CRM"
    EVENTS = "EVENTS"
    FUNDING = "FUNDING"
    DONATIONS = "DONATIONS"
    TRANSACTIONS = "TRANSACTIONS"
    ADMIN = "ADMIN"


class ContactAttributeType(str, Enum):
    """Storage type of a profile attribute."""

    STRING = "STRING"
    NUMBER = "NUMBER"
    DATE = "DATE"
    LOCATION = "LOCATION"


class ContactGender(str, Enum):
    """Gender of a contact."""

    FEMALE = "FEMALE"
    MALE = "MALE"
    NON_BINARY = "NON_BINARY"
    OTHER = "OTHER"
    PREFER_NOT_TO_SAY = "PREFER_NOT_TO_SAY"


class ContactRequestPreference(str, Enum):
    """Whether a contact wants requests matched on a demographic dimension."""

    YES = "YES"
    NO = "NO"
    NO_PREFERENCE = "NO_PREFERENCE"


class ChangeAction(str, Enum):
    """Kind of change recorded in the contact change log."""

    CREATED = "created"
    UPDATED = "updated"


class ContactSubmodule(str, Enum):
    """Named bundles of restricted contact fields."""

    SUPERVISION = "SUPERVISION"
    EVENTS = "EVENTS"
    SHOP = "SHOP"


class EventContactSource(str, Enum):
    """How a contact is linked to an event."""

    ASSIGNED = "assigned"
    REGISTRATION = "registration"
