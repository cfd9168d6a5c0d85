"""Group schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from granthub.core.shared_models import AppModule


class GroupBase(BaseModel):
    """Base schema for groups."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    can_access_all_contacts: bool = False

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class GroupCreate(GroupBase):
    """Schema for creating a group."""

    modules: list[AppModule] = Field(default_factory=list)
    user_ids: list[UUID] = Field(default_factory=list)


class GroupUpdate(BaseModel):
    """Schema for updating a group; omitted fields stay unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    can_access_all_contacts: Optional[bool] = None
    modules: Optional[list[AppModule]] = None


class Group(GroupBase):
    """Group as returned to clients."""

    id: UUID
    team_id: UUID
    is_default: bool
    modules: list[AppModule] = Field(default_factory=list)
    user_ids: list[UUID] = Field(default_factory=list)
    created_at: datetime
    modified_at: datetime


class GroupUsers(BaseModel):
    """Users to add to or remove from a group."""

    user_ids: list[UUID]


class FieldAccessRule(BaseModel):
    """Groups allowed to see one contact field or profile attribute.

    Attribute keys use the ``profile_attribute.<key>`` form.
    """

    field_key: str = Field(..., min_length=1)
    group_ids: list[UUID] = Field(default_factory=list)


class ModuleAccess(BaseModel):
    """Modules the caller can use within the team."""

    modules: list[AppModule]
