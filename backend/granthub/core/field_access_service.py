"""Field-level access control for contacts.

A field (or profile attribute key) without rules is visible to everyone in
the team. A field with rules is visible only to members of at least one of the
listed groups. Write access mirrors read access. A caller without a user id
belongs to no group, so every restricted field is hidden from it.
"""

from dataclasses import dataclass, field, replace
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from granthub import crud
from granthub.core.constants.contact_fields import (
    CONTACT_SCALAR_FIELDS,
    SOCIAL_LINK_FIELD_PREFIX,
    attribute_field_key,
    submodule_field_keys,
)
from granthub.core.shared_models import ContactSubmodule
from granthub.schemas.contact import Contact, ContactCreate, ContactPatch, RawProfileAttribute
from granthub.schemas.presence import Provided

# Contact fields a rule can target besides the scalar input fields
_REDACTABLE_FIELDS = (*CONTACT_SCALAR_FIELDS, "social_links")


def is_field_visible(
    field_key: str, access_map: dict[str, set[UUID]], user_group_ids: Iterable[UUID]
) -> bool:
    """Whether a field is visible to a member of ``user_group_ids``."""
    allowed = access_map.get(field_key)
    if not allowed:
        return True
    return any(group_id in allowed for group_id in user_group_ids)


@dataclass(frozen=True)
class FieldAccessPolicy:
    """Resolved access rules of one team for one caller."""

    access_map: dict[str, set[UUID]] = field(default_factory=dict)
    user_group_ids: frozenset[UUID] = frozenset()

    def can_see(self, field_key: str) -> bool:
        """Whether the caller may read and write ``field_key``."""
        return is_field_visible(field_key, self.access_map, self.user_group_ids)

    def can_see_attribute(self, key: str) -> bool:
        """Whether the caller may read and write the profile attribute ``key``."""
        return self.can_see(attribute_field_key(key.strip()))

    def can_see_change(self, field_name: Optional[str]) -> bool:
        """Whether a change-log entry on ``field_name`` may be shown to the caller."""
        if field_name is None:
            return True
        if field_name.startswith(SOCIAL_LINK_FIELD_PREFIX):
            return self.can_see("social_links")
        return self.can_see(field_name)

    def hidden_fields(self) -> list[str]:
        """Contact fields the caller may not see."""
        return [name for name in _REDACTABLE_FIELDS if not self.can_see(name)]

    def _visible_attributes(
        self, attributes: Optional[list[RawProfileAttribute]]
    ) -> Optional[list[RawProfileAttribute]]:
        if attributes is None:
            return None
        return [
            attribute
            for attribute in attributes
            if not isinstance(attribute.key, str) or self.can_see_attribute(attribute.key)
        ]

    def redact(self, contact: Contact) -> Contact:
        """Strip values of fields and attributes the caller may not see."""
        update: dict = {}
        for name in self.hidden_fields():
            update[name] = [] if name == "social_links" else None
        if "group_id" in update:
            update["group"] = None
        # country_code and the coordinates are derived from postal_code and country
        if "postal_code" in update or "country" in update:
            update.update(country_code=None, latitude=None, longitude=None)

        visible_attributes = [
            attribute
            for attribute in contact.profile_attributes
            if self.can_see_attribute(attribute.key)
        ]
        if len(visible_attributes) != len(contact.profile_attributes):
            update["profile_attributes"] = visible_attributes

        if not update:
            return contact
        return contact.model_copy(update=update)

    def sanitize_create(self, contact_in: ContactCreate) -> ContactCreate:
        """Drop input the caller may not write."""
        update: dict = {name: None for name in self.hidden_fields()}
        attributes = self._visible_attributes(contact_in.profile_attributes)
        if attributes is not None:
            update["profile_attributes"] = attributes
        return contact_in.model_copy(update=update)

    def sanitize_patch(self, patch: ContactPatch) -> ContactPatch:
        """Mark fields the caller may not write as not provided.

        Invisible profile attributes are removed from the payload; the update
        engine also leaves stored invisible attributes untouched.
        """
        patch = patch.without(*self.hidden_fields())
        if isinstance(patch.profile_attributes, Provided) and patch.profile_attributes.value:
            patch = replace(
                patch,
                profile_attributes=Provided(
                    self._visible_attributes(patch.profile_attributes.value)
                ),
            )
        return patch


class FieldAccessService:
    """Loads field-access rules and group memberships."""

    async def get_field_access_map(self, db: AsyncSession, team_id: UUID) -> dict[str, set[UUID]]:
        """Map of field key to the groups allowed to see it."""
        access_map: dict[str, set[UUID]] = {}
        for rule in await crud.contact_field_access.get_multi_by_team(db, team_id):
            access_map.setdefault(rule.field_key, set()).add(rule.group_id)
        return access_map

    async def get_user_group_ids(
        self, db: AsyncSession, user_id: Optional[UUID], team_id: UUID
    ) -> list[UUID]:
        """Groups of the team the user belongs to; empty without a user."""
        if user_id is None:
            return []
        groups = await crud.group.get_user_groups(db, user_id=user_id, team_id=team_id)
        return [group.id for group in groups]

    async def resolve(
        self, db: AsyncSession, team_id: UUID, user_id: Optional[UUID]
    ) -> FieldAccessPolicy:
        """Resolve the policy for one caller."""
        access_map = await self.get_field_access_map(db, team_id)
        user_group_ids = await self.get_user_group_ids(db, user_id, team_id)
        return FieldAccessPolicy(access_map=access_map, user_group_ids=frozenset(user_group_ids))

    async def get_allowed_submodules(
        self, db: AsyncSession, team_id: UUID, user_id: Optional[UUID]
    ) -> list[ContactSubmodule]:
        """Submodules with at least one field visible to the user.

        Without a user nothing is allowed.
        """
        if user_id is None:
            return []
        policy = await self.resolve(db, team_id, user_id)
        return [
            submodule
            for submodule in ContactSubmodule
            if any(policy.can_see(key) for key in submodule_field_keys(submodule))
        ]


field_access_service = FieldAccessService()
