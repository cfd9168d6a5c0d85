"""Contact service: access-controlled reads and audited writes."""

from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional, Sequence, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from granthub import crud, schemas
from granthub.core.constants.contact_fields import (
    CONTACT_SCALAR_FIELDS,
    attribute_field_key,
    social_link_field_key,
)
from granthub.core.contact_attributes import (
    NormalizedAttribute,
    attribute_audit_value,
    attribute_signature,
    normalize_attributes,
    to_profile_attribute,
)
from granthub.core.contact_change_log_service import contact_change_log_service
from granthub.core.contact_query_builder import ContactQueryBuilder, group_visibility_predicate
from granthub.core.datetime_utils import parse_datetime
from granthub.core.exceptions import (
    ContactNotFoundException,
    ContactValidationError,
    GroupNotFoundException,
)
from granthub.core.field_access_service import FieldAccessPolicy, field_access_service
from granthub.core.geo import normalize_country_code, normalize_postal_code, resolve_centroid
from granthub.core.group_service import group_service, is_admin
from granthub.core.logging import ContextualLogger, logger
from granthub.core.predicates import MatchNone, compile_predicate
from granthub.core.shared_models import ContactSubmodule, EventContactSource
from granthub.db.unit_of_work import UnitOfWork
from granthub.models.contact import Contact, ContactAttribute, ContactSocialLink
from granthub.schemas.contact import ContactPatch, SocialLinkInput
from granthub.schemas.presence import Provided

contact_logger = logger.with_context(component="contact_service")

_DATE_FIELDS = {
    "onboarding_date": ContactValidationError.INVALID_ONBOARDING_DATE,
    "break_until": ContactValidationError.INVALID_BREAK_UNTIL_DATE,
}
_PASSTHROUGH_FIELDS = ("is_bipoc", "group_id")

AuditFn = Callable[[str, Any, Any], None]


def normalize_scalar(field: str, raw: Any) -> Any:
    """Normalize one scalar input field; empty input becomes None.

    Raises:
        ContactValidationError: For a date field that does not parse.
    """
    if raw is None:
        return None
    if field in _PASSTHROUGH_FIELDS:
        return raw
    if isinstance(raw, Enum):
        return raw.value
    if field in _DATE_FIELDS:
        if isinstance(raw, str) and not raw.strip():
            return None
        parsed = parse_datetime(raw)
        if parsed is None:
            raise ContactValidationError(_DATE_FIELDS[field])
        return parsed
    if field == "postal_code":
        return normalize_postal_code(raw)

    text = str(raw).strip()
    if not text:
        return None
    if field == "email":
        return text.lower()
    return text


def normalize_social_links(links: Optional[Sequence[SocialLinkInput]]) -> dict[str, str]:
    """Platform (lower-cased) to handle; empty entries dropped, first platform wins."""
    normalized: dict[str, str] = {}
    for link in links or ():
        platform = link.platform.strip().lower()
        handle = link.handle.strip()
        if platform and handle and platform not in normalized:
            normalized[platform] = handle
    return normalized


def to_contact_schema(contact: Contact) -> schemas.Contact:
    """Map a hydrated contact row to its API shape (unredacted)."""
    profile_attributes = [
        projected
        for projected in (to_profile_attribute(row) for row in contact.attributes)
        if projected is not None
    ]
    profile_attributes.sort(key=lambda attribute: attribute.key)

    events: dict[UUID, schemas.ContactEvent] = {}
    for link in contact.event_contacts:
        if link.event is None:
            continue
        events[link.event_id] = schemas.ContactEvent(
            event_id=link.event_id,
            title=link.event.title,
            starts_at=link.event.starts_at,
            source=EventContactSource.ASSIGNED,
            role=(
                schemas.ContactEventRole.model_validate(link.event_role)
                if link.event_role is not None
                else None
            ),
        )
    for registration in contact.event_registrations:
        if registration.event is None or registration.event_id in events:
            continue
        events[registration.event_id] = schemas.ContactEvent(
            event_id=registration.event_id,
            title=registration.event.title,
            starts_at=registration.event.starts_at,
            source=EventContactSource.REGISTRATION,
        )

    return schemas.Contact(
        id=contact.id,
        team_id=contact.team_id,
        name=contact.name,
        pronouns=contact.pronouns,
        email=contact.email,
        phone=contact.phone,
        signal=contact.signal,
        website=contact.website,
        gender=contact.gender,
        gender_request_preference=contact.gender_request_preference,
        is_bipoc=contact.is_bipoc,
        racism_request_preference=contact.racism_request_preference,
        other_margins=contact.other_margins,
        onboarding_date=contact.onboarding_date,
        break_until=contact.break_until,
        address=contact.address,
        postal_code=contact.postal_code,
        state=contact.state,
        city=contact.city,
        country=contact.country,
        country_code=contact.country_code,
        latitude=float(contact.latitude) if contact.latitude is not None else None,
        longitude=float(contact.longitude) if contact.longitude is not None else None,
        group_id=contact.group_id,
        group=schemas.ContactGroup.model_validate(contact.group) if contact.group else None,
        profile_attributes=profile_attributes,
        social_links=[
            schemas.SocialLink(platform=link.platform, handle=link.handle)
            for link in sorted(contact.social_links, key=lambda link: link.platform)
        ],
        events=sorted(events.values(), key=lambda event: event.starts_at, reverse=True),
        created_at=contact.created_at,
        modified_at=contact.modified_at,
    )


def _is_duplicate_email(error: IntegrityError) -> bool:
    return "uq_contact_team_email" in str(error.orig)


def _audit_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _to_decimal(value: float) -> Decimal:
    return Decimal(str(round(value, 6)))


class ContactService:
    """Service for listing, reading, creating, updating and deleting contacts."""

    async def _visible_group_ids(
        self,
        db: AsyncSession,
        team_id: UUID,
        user_id: Optional[UUID],
        roles: Optional[Sequence[str]],
    ) -> Optional[list[UUID]]:
        """Groups whose contacts the caller may see; None when unrestricted."""
        if user_id is None or is_admin(roles):
            return None
        groups = await group_service.get_user_groups(db, user_id, team_id)
        if any(group.can_access_all_contacts for group in groups):
            return None
        return [group.id for group in groups]

    async def list_contacts(
        self,
        db: AsyncSession,
        team_id: UUID,
        query: Optional[str] = None,
        user_id: Optional[UUID] = None,
        filters: Optional[Sequence[schemas.ContactFilter]] = None,
        roles: Optional[Sequence[str]] = None,
        log: Optional[ContextualLogger] = None,
    ) -> list[schemas.Contact]:
        """Contacts of a team matching ``query`` and ``filters``, newest first.

        Group visibility limits which contacts are returned; field-access rules
        then strip the values the caller may not see.
        """
        log = (log or contact_logger).with_context(team_id=str(team_id))
        await group_service.ensure_default_group(db, team_id)

        visible_group_ids = await self._visible_group_ids(db, team_id, user_id, roles)
        predicate = await ContactQueryBuilder(db, log).build(
            team_id, query=query, filters=filters, visible_group_ids=visible_group_ids
        )
        if isinstance(predicate, MatchNone):
            return []

        contacts = await crud.contact.list_matching(db, compile_predicate(predicate, Contact))
        policy = await field_access_service.resolve(db, team_id, user_id)
        log.debug(f"Listing {len(contacts)} contacts")
        return [policy.redact(to_contact_schema(contact)) for contact in contacts]

    async def get_contact_by_id(
        self,
        db: AsyncSession,
        contact_id: UUID,
        team_id: UUID,
        user_id: Optional[UUID] = None,
        roles: Optional[Sequence[str]] = None,
    ) -> Optional[schemas.Contact]:
        """One contact of a team, redacted for the caller; None if missing or not visible."""
        visible_group_ids = await self._visible_group_ids(db, team_id, user_id, roles)
        where = None
        if visible_group_ids is not None:
            where = compile_predicate(group_visibility_predicate(visible_group_ids), Contact)

        contact = await crud.contact.get_with_relations(db, contact_id, team_id, where=where)
        if contact is None:
            return None
        policy = await field_access_service.resolve(db, team_id, user_id)
        return policy.redact(to_contact_schema(contact))

    async def get_allowed_submodules(
        self, db: AsyncSession, team_id: UUID, user_id: Optional[UUID] = None
    ) -> list[ContactSubmodule]:
        """Submodules the caller can open; empty without a user."""
        return await field_access_service.get_allowed_submodules(db, team_id, user_id)

    async def get_team_contact_attribute_keys(
        self,
        db: AsyncSession,
        team_id: UUID,
        user_id: Optional[UUID] = None,
        roles: Optional[Sequence[str]] = None,
    ) -> list[str]:
        """Sorted attribute keys present on contacts visible to the caller."""
        contacts = await self.list_contacts(db, team_id, user_id=user_id, roles=roles)
        return sorted(
            {attribute.key for contact in contacts for attribute in contact.profile_attributes}
        )

    async def _validate_group(self, db: AsyncSession, team_id: UUID, group_id: UUID) -> None:
        if not await crud.group.get_ids_in_team(db, team_id, [group_id]):
            raise GroupNotFoundException()

    async def create_contact(
        self,
        db: AsyncSession,
        contact_in: schemas.ContactCreate,
        user_id: Optional[UUID] = None,
        user_name: Optional[str] = None,
    ) -> schemas.Contact:
        """Create a contact with its attributes and social links.

        Raises:
            ContactValidationError: Missing name or email, invalid dates, duplicate email.
            GroupNotFoundException: ``group_id`` is not a group of the team.
        """
        team_id = contact_in.team_id
        log = contact_logger.with_context(team_id=str(team_id), operation="create_contact")

        policy = await field_access_service.resolve(db, team_id, user_id)
        contact_in = policy.sanitize_create(contact_in)

        values = {
            field: normalize_scalar(field, getattr(contact_in, field))
            for field in CONTACT_SCALAR_FIELDS
        }
        if not values["name"]:
            raise ContactValidationError(ContactValidationError.NAME_REQUIRED)
        if not values["email"]:
            raise ContactValidationError(ContactValidationError.EMAIL_REQUIRED)

        if await crud.contact.get_by_email(db, team_id=team_id, email=values["email"]):
            raise ContactValidationError(ContactValidationError.DUPLICATE_EMAIL)
        if values["group_id"] is not None:
            await self._validate_group(db, team_id, values["group_id"])

        attributes = normalize_attributes(contact_in.profile_attributes)
        social_links = normalize_social_links(contact_in.social_links)

        try:
            async with UnitOfWork(db) as uow:
                values["country_code"] = normalize_country_code(values["country"])
                centroid = await resolve_centroid(
                    uow.session, values["country_code"], values["postal_code"]
                )
                if centroid is not None:
                    values["latitude"] = _to_decimal(centroid.latitude)
                    values["longitude"] = _to_decimal(centroid.longitude)

                contact = Contact(
                    team_id=team_id,
                    **values,
                    attributes=[ContactAttribute(**a.to_columns()) for a in attributes],
                    social_links=[
                        ContactSocialLink(platform=platform, handle=handle)
                        for platform, handle in social_links.items()
                    ],
                )
                uow.session.add(contact)
                await uow.flush()

                contact_change_log_service.log_contact_creation(
                    contact.id, user_id, user_name, uow, metadata={"name": values["name"]}
                )
                await uow.commit()
        except IntegrityError as e:
            if _is_duplicate_email(e):
                raise ContactValidationError(ContactValidationError.DUPLICATE_EMAIL) from e
            raise

        log.info(f"Created contact {contact.id}")
        created = await crud.contact.get_with_relations(db, contact.id, team_id)
        return to_contact_schema(created)

    async def update_contact(
        self,
        db: AsyncSession,
        contact_in: Union[schemas.ContactUpdate, ContactPatch],
        user_id: Optional[UUID] = None,
        user_name: Optional[str] = None,
    ) -> schemas.Contact:
        """Apply the fields the caller sent, writing one audit entry per change.

        Fields absent from the payload are not touched; fields sent empty are
        cleared. The returned contact is not redacted.

        Raises:
            ContactNotFoundException: No such contact in the team.
            ContactValidationError: Cleared name, invalid dates, duplicate email.
            GroupNotFoundException: ``group_id`` is not a group of the team.
        """
        if isinstance(contact_in, schemas.ContactUpdate):
            contact_in = contact_in.to_patch()
        team_id = contact_in.team_id
        log = contact_logger.with_context(
            team_id=str(team_id), contact_id=str(contact_in.contact_id), operation="update_contact"
        )

        policy = await field_access_service.resolve(db, team_id, user_id)
        patch = policy.sanitize_patch(contact_in)

        changes = {field: normalize_scalar(field, raw) for field, raw in patch.provided_scalars()}
        if "name" in changes and not changes["name"]:
            raise ContactValidationError(ContactValidationError.NAME_REQUIRED)

        try:
            async with UnitOfWork(db) as uow:
                existing = await crud.contact.get_for_update(
                    uow.session, patch.contact_id, team_id
                )
                if existing is None:
                    raise ContactNotFoundException()

                def audit(field_key: str, old_value: Any, new_value: Any) -> None:
                    contact_change_log_service.log_field_update(
                        existing.id, field_key, old_value, new_value, user_id, user_name, uow
                    )

                staged = await self._stage_scalar_changes(uow.session, existing, changes, audit)
                if "postal_code" in changes or "country" in changes:
                    staged.update(await self._resolve_geo(uow.session, existing, changes))

                if isinstance(patch.social_links, Provided):
                    self._apply_social_links(existing, patch.social_links.value, audit)
                if isinstance(patch.profile_attributes, Provided):
                    self._apply_attributes(
                        existing, patch.profile_attributes.value, policy, audit
                    )

                for field, value in staged.items():
                    setattr(existing, field, value)

                await uow.commit()
        except IntegrityError as e:
            if _is_duplicate_email(e):
                raise ContactValidationError(ContactValidationError.DUPLICATE_EMAIL) from e
            raise

        log.info(f"Updated contact {existing.id}")
        updated = await crud.contact.get_with_relations(db, existing.id, team_id)
        return to_contact_schema(updated)

    async def _stage_scalar_changes(
        self,
        db: AsyncSession,
        existing: Contact,
        changes: dict[str, Any],
        audit: AuditFn,
    ) -> dict[str, Any]:
        """Audit and collect the scalar fields whose value differs from the stored one."""
        staged: dict[str, Any] = {}
        for field in CONTACT_SCALAR_FIELDS:
            if field not in changes:
                continue
            new_value = changes[field]
            old_value = getattr(existing, field)
            if _audit_value(old_value) == _audit_value(new_value):
                continue

            if field == "email" and new_value:
                duplicate = await crud.contact.get_by_email(
                    db, team_id=existing.team_id, email=new_value, exclude_id=existing.id
                )
                if duplicate is not None:
                    raise ContactValidationError(ContactValidationError.DUPLICATE_EMAIL)
            if field == "group_id" and new_value is not None:
                await self._validate_group(db, existing.team_id, new_value)

            audit(field, old_value, new_value)
            staged[field] = new_value
        return staged

    async def _resolve_geo(
        self, db: AsyncSession, existing: Contact, changes: dict[str, Any]
    ) -> dict[str, Any]:
        """Derived location columns for the effective post-update postal code and country."""
        postal_code = changes["postal_code"] if "postal_code" in changes else existing.postal_code
        country = changes["country"] if "country" in changes else existing.country
        country_code = normalize_country_code(country)

        centroid = await resolve_centroid(db, country_code, normalize_postal_code(postal_code))
        return {
            "country_code": country_code,
            "latitude": _to_decimal(centroid.latitude) if centroid else None,
            "longitude": _to_decimal(centroid.longitude) if centroid else None,
        }

    def _apply_social_links(
        self,
        existing: Contact,
        links: Optional[list[SocialLinkInput]],
        audit: AuditFn,
    ) -> None:
        """Diff social links by platform, auditing each removal, addition and change."""
        desired = normalize_social_links(links)
        current = {link.platform: link for link in existing.social_links}

        for platform, link in current.items():
            if platform not in desired:
                audit(social_link_field_key(platform), link.handle, None)
                existing.social_links.remove(link)

        for platform, handle in desired.items():
            link = current.get(platform)
            if link is None:
                audit(social_link_field_key(platform), None, handle)
                existing.social_links.append(ContactSocialLink(platform=platform, handle=handle))
            elif link.handle != handle:
                audit(social_link_field_key(platform), link.handle, handle)
                link.handle = handle

    def _apply_attributes(
        self,
        existing: Contact,
        raw_attributes: Optional[list[schemas.RawProfileAttribute]],
        policy: FieldAccessPolicy,
        audit: AuditFn,
    ) -> None:
        """Diff profile attributes by key over every typed sub-field.

        Stored attributes the caller cannot see are left alone.
        """
        desired: dict[str, NormalizedAttribute] = {
            attribute.key: attribute for attribute in normalize_attributes(raw_attributes)
        }
        current = {
            row.key: row for row in existing.attributes if policy.can_see_attribute(row.key)
        }

        for key, row in current.items():
            if key not in desired:
                audit(attribute_field_key(key), attribute_audit_value(row), None)
                existing.attributes.remove(row)

        for key, attribute in desired.items():
            row = current.get(key)
            if row is None:
                audit(attribute_field_key(key), None, attribute_audit_value(attribute))
                existing.attributes.append(ContactAttribute(**attribute.to_columns()))
            elif attribute_signature(row) != attribute_signature(attribute):
                audit(
                    attribute_field_key(key),
                    attribute_audit_value(row),
                    attribute_audit_value(attribute),
                )
                for column, value in attribute.to_columns().items():
                    setattr(row, column, value)

    async def delete_contacts(self, db: AsyncSession, team_id: UUID, ids: list[UUID]) -> int:
        """Delete contacts of a team by id; ids of other teams are ignored."""
        if not ids:
            return 0
        deleted = await crud.contact.bulk_remove(db, ids=ids, team_id=team_id)
        contact_logger.with_context(team_id=str(team_id)).info(f"Deleted {deleted} contacts")
        return deleted


contact_service = ContactService()
