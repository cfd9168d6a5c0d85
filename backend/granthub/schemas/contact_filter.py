"""Typed filter clauses for listing contacts.

Filters arrive as a JSON array, each element tagged by ``type``:

    [
        {"type": "contactField", "field": "city", "operator": "contains", "value": "ber"},
        {"type": "attribute", "key": "role", "operator": "equals", "value": "mentor"},
        {"type": "distance", "postal_code": "10115", "country_code": "DE", "radius_km": 25}
    ]
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator

from granthub.core.constants.contact_fields import CONTACT_FILTER_FIELDS


class ContactFieldFilter(BaseModel):
    """Match on a contact column."""

    type: Literal["contactField"] = "contactField"
    field: str
    operator: Literal["contains", "has", "missing"]
    value: Optional[str] = None

    @field_validator("field")
    def validate_field(cls, v: str) -> str:
        """Only plain identity/address columns are filterable."""
        if v not in CONTACT_FILTER_FIELDS:
            raise ValueError(f"field must be one of {', '.join(CONTACT_FILTER_FIELDS)}")
        return v


class AttributeFilter(BaseModel):
    """Match on a profile attribute."""

    type: Literal["attribute"] = "attribute"
    key: str = Field(..., min_length=1)
    operator: Literal["contains", "equals"]
    value: Optional[str] = None


class GroupFilter(BaseModel):
    """Contact belongs to one of the given groups."""

    type: Literal["group"] = "group"
    group_id: Union[UUID, list[UUID]]

    @property
    def group_ids(self) -> list[UUID]:
        """Requested group ids as a list."""
        return self.group_id if isinstance(self.group_id, list) else [self.group_id]


class EventRoleFilter(BaseModel):
    """Contact holds one of the given event roles at any event."""

    type: Literal["eventRole"] = "eventRole"
    event_role_id: Union[UUID, list[UUID]]

    @property
    def event_role_ids(self) -> list[UUID]:
        """Requested event role ids as a list."""
        if isinstance(self.event_role_id, list):
            return self.event_role_id
        return [self.event_role_id]


class CreatedAtFilter(BaseModel):
    """Contact was created inside an inclusive range."""

    type: Literal["createdAt"] = "createdAt"
    from_: Optional[datetime] = Field(None, alias="from")
    to: Optional[datetime] = None

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def require_a_bound(self) -> "CreatedAtFilter":
        """At least one bound must be given."""
        if self.from_ is None and self.to is None:
            raise ValueError("createdAt filter requires 'from' or 'to'")
        return self


class DistanceFilter(BaseModel):
    """Contact lives within ``radius_km`` of a postal code centroid.

    Inputs are validated by the query builder, not here: anything it cannot
    resolve makes the whole listing empty.
    """

    type: Literal["distance"] = "distance"
    postal_code: Optional[str] = None
    country_code: Optional[str] = None
    radius_km: Optional[float] = None


ContactFilter = Annotated[
    Union[
        ContactFieldFilter,
        AttributeFilter,
        GroupFilter,
        EventRoleFilter,
        CreatedAtFilter,
        DistanceFilter,
    ],
    Field(discriminator="type"),
]

contact_filters_adapter = TypeAdapter(list[ContactFilter])
