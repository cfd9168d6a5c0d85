# flake8: noqa: F401
"""Schemas for the application."""

from .contact import (
    Contact,
    ContactBase,
    ContactCreate,
    ContactEvent,
    ContactEventRole,
    ContactGroup,
    ContactPatch,
    ContactUpdate,
    DateProfileAttribute,
    DeleteContacts,
    LocationProfileAttribute,
    LocationValue,
    NumberProfileAttribute,
    ProfileAttribute,
    RawProfileAttribute,
    SocialLink,
    SocialLinkInput,
    StringProfileAttribute,
)
from .contact_change_log import ContactChangeLog
from .contact_filter import (
    AttributeFilter,
    ContactFieldFilter,
    ContactFilter,
    CreatedAtFilter,
    DistanceFilter,
    EventRoleFilter,
    GroupFilter,
    contact_filters_adapter,
)
from .group import FieldAccessRule, Group, GroupCreate, GroupUpdate, GroupUsers, ModuleAccess
from .presence import NOT_PROVIDED, Provided, is_provided
