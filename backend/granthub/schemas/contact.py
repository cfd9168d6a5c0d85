"""Contact schemas."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Annotated, Any, Iterator, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, validate_email

from granthub.core.constants.contact_fields import CONTACT_SCALAR_FIELDS
from granthub.core.shared_models import (
    ContactAttributeType,
    ContactGender,
    ContactRequestPreference,
    EventContactSource,
)
from granthub.schemas.presence import NOT_PROVIDED, Presence, Provided


class RawProfileAttribute(BaseModel):
    """Profile attribute as sent by a client.

    Deliberately loose: entries that cannot be normalized are dropped by the
    service instead of failing the request.
    """

    key: Optional[str] = None
    type: Optional[str] = None
    value: Any = None


class SocialLinkInput(BaseModel):
    """Social link as sent by a client."""

    platform: str = Field(..., max_length=50)
    handle: str = Field(..., max_length=255)


class ContactBase(BaseModel):
    """Fields a client may send when creating or updating a contact."""

    name: Optional[str] = None
    pronouns: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    signal: Optional[str] = None
    website: Optional[str] = None

    gender: Optional[ContactGender] = None
    gender_request_preference: Optional[ContactRequestPreference] = None
    is_bipoc: Optional[bool] = None
    racism_request_preference: Optional[ContactRequestPreference] = None
    other_margins: Optional[str] = None
    onboarding_date: Optional[Union[datetime, str]] = None
    break_until: Optional[Union[datetime, str]] = None

    address: Optional[str] = None
    postal_code: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None

    group_id: Optional[UUID] = None
    social_links: Optional[list[SocialLinkInput]] = None
    profile_attributes: Optional[list[RawProfileAttribute]] = None

    @field_validator("email")
    def validate_email_format(cls, v: Optional[str]) -> Optional[str]:
        """Reject malformed addresses; empty values are left to the service."""
        if v is None or not v.strip():
            return v
        validate_email(v.strip())
        return v


class ContactCreate(ContactBase):
    """Schema for creating a contact."""

    team_id: UUID

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "team_id": "2f7e8c1a-3b4d-4e5f-8a9b-0c1d2e3f4a5b",
                    "name": "Jane Doe",
                    "email": "jane@example.com",
                    "city": "Berlin",
                    "social_links": [{"platform": "mastodon", "handle": "@jane"}],
                    "profile_attributes": [{"key": "role", "type": "STRING", "value": "Mentor"}],
                }
            ]
        }
    }


class ContactUpdate(ContactBase):
    """Schema for updating a contact.

    Only keys present in the payload are applied. ``{"city": ""}`` clears the
    city, a payload without ``city`` leaves it alone.
    """

    id: UUID
    team_id: UUID

    def to_patch(self) -> "ContactPatch":
        """Convert to a patch whose fields record whether they were sent."""
        sent = self.model_fields_set
        values = {
            name: Provided(getattr(self, name)) if name in sent else NOT_PROVIDED
            for name in ContactPatch.patch_field_names()
        }
        return ContactPatch(contact_id=self.id, team_id=self.team_id, **values)


@dataclass(frozen=True)
class ContactPatch:
    """Partial update of a contact with explicit per-field presence."""

    contact_id: UUID
    team_id: UUID

    name: Presence[Optional[str]] = NOT_PROVIDED
    pronouns: Presence[Optional[str]] = NOT_PROVIDED
    gender: Presence[Optional[ContactGender]] = NOT_PROVIDED
    gender_request_preference: Presence[Optional[ContactRequestPreference]] = NOT_PROVIDED
    is_bipoc: Presence[Optional[bool]] = NOT_PROVIDED
    racism_request_preference: Presence[Optional[ContactRequestPreference]] = NOT_PROVIDED
    other_margins: Presence[Optional[str]] = NOT_PROVIDED
    onboarding_date: Presence[Optional[Union[datetime, str]]] = NOT_PROVIDED
    break_until: Presence[Optional[Union[datetime, str]]] = NOT_PROVIDED
    address: Presence[Optional[str]] = NOT_PROVIDED
    postal_code: Presence[Optional[str]] = NOT_PROVIDED
    state: Presence[Optional[str]] = NOT_PROVIDED
    city: Presence[Optional[str]] = NOT_PROVIDED
    country: Presence[Optional[str]] = NOT_PROVIDED
    email: Presence[Optional[str]] = NOT_PROVIDED
    phone: Presence[Optional[str]] = NOT_PROVIDED
    signal: Presence[Optional[str]] = NOT_PROVIDED
    website: Presence[Optional[str]] = NOT_PROVIDED
    group_id: Presence[Optional[UUID]] = NOT_PROVIDED
    social_links: Presence[Optional[list[SocialLinkInput]]] = NOT_PROVIDED
    profile_attributes: Presence[Optional[list[RawProfileAttribute]]] = NOT_PROVIDED

    @staticmethod
    def patch_field_names() -> tuple[str, ...]:
        """Names of the presence-wrapped fields."""
        return (*CONTACT_SCALAR_FIELDS, "social_links", "profile_attributes")

    def provided_scalars(self) -> Iterator[tuple[str, Any]]:
        """Yield ``(field, raw value)`` for every scalar field the caller sent."""
        for name in CONTACT_SCALAR_FIELDS:
            field = getattr(self, name)
            if isinstance(field, Provided):
                yield name, field.value

    def without(self, *names: str) -> "ContactPatch":
        """Return a copy with the given fields marked as not provided."""
        return replace(self, **{name: NOT_PROVIDED for name in names})


class LocationValue(BaseModel):
    """Value of a LOCATION attribute; absent sub-fields are omitted."""

    label: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class StringProfileAttribute(BaseModel):
    """Profile attribute holding free text."""

    key: str
    type: Literal[ContactAttributeType.STRING] = ContactAttributeType.STRING
    value: str


class NumberProfileAttribute(BaseModel):
    """Profile attribute holding a number."""

    key: str
    type: Literal[ContactAttributeType.NUMBER] = ContactAttributeType.NUMBER
    value: float


class DateProfileAttribute(BaseModel):
    """Profile attribute holding a date as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""

    key: str
    type: Literal[ContactAttributeType.DATE] = ContactAttributeType.DATE
    value: str


class LocationProfileAttribute(BaseModel):
    """Profile attribute holding a place."""

    key: str
    type: Literal[ContactAttributeType.LOCATION] = ContactAttributeType.LOCATION
    value: LocationValue


ProfileAttribute = Annotated[
    Union[
        StringProfileAttribute,
        NumberProfileAttribute,
        DateProfileAttribute,
        LocationProfileAttribute,
    ],
    Field(discriminator="type"),
]


class SocialLink(BaseModel):
    """Social link of a contact."""

    platform: str
    handle: str

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ContactGroup(BaseModel):
    """Group a contact is assigned to."""

    id: UUID
    name: str

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ContactEventRole(BaseModel):
    """Role a contact has at an event."""

    id: UUID
    name: str
    color: Optional[str] = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ContactEvent(BaseModel):
    """An event a contact is linked to, directly or through a registration."""

    event_id: UUID
    title: str
    starts_at: datetime
    source: EventContactSource
    role: Optional[ContactEventRole] = None


class Contact(BaseModel):
    """Contact as returned to clients.

    Restricted fields the caller may not see are returned as null.
    """

    id: UUID
    team_id: UUID

    name: str
    pronouns: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    signal: Optional[str] = None
    website: Optional[str] = None

    gender: Optional[ContactGender] = None
    gender_request_preference: Optional[ContactRequestPreference] = None
    is_bipoc: Optional[bool] = None
    racism_request_preference: Optional[ContactRequestPreference] = None
    other_margins: Optional[str] = None
    onboarding_date: Optional[datetime] = None
    break_until: Optional[datetime] = None

    address: Optional[str] = None
    postal_code: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    group_id: Optional[UUID] = None
    group: Optional[ContactGroup] = None
    profile_attributes: list[ProfileAttribute] = Field(default_factory=list)
    social_links: list[SocialLink] = Field(default_factory=list)
    events: list[ContactEvent] = Field(default_factory=list)

    created_at: datetime
    modified_at: datetime


class DeleteContacts(BaseModel):
    """Bulk delete request."""

    ids: list[UUID]
