"""Translate contact search text and typed filters into a predicate."""

import math
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from granthub import crud
from granthub.core.constants.contact_fields import CONTACT_SEARCH_FIELDS
from granthub.core.contact_attributes import to_finite_decimal
from granthub.core.datetime_utils import parse_datetime, to_naive_utc
from granthub.core.geo import normalize_country_code, normalize_postal_code, resolve_centroid
from granthub.core.logging import ContextualLogger, logger
from granthub.core.predicates import (
    Compare,
    Exists,
    MatchAll,
    MatchNone,
    Not,
    Predicate,
    all_of,
    any_of,
)
from granthub.schemas.contact_filter import (
    AttributeFilter,
    ContactFieldFilter,
    ContactFilter,
    CreatedAtFilter,
    DistanceFilter,
    EventRoleFilter,
    GroupFilter,
)


def _has_value(field: str) -> Predicate:
    return all_of((Not(Compare(field, "is_null")), Not(Compare(field, "eq", ""))))


def _missing_value(field: str) -> Predicate:
    return any_of((Compare(field, "is_null"), Compare(field, "eq", "")))


def text_search_predicate(query: Optional[str]) -> Predicate:
    """Case-insensitive substring match across contact columns and attributes."""
    text = (query or "").strip()
    if not text:
        return MatchAll()
    attribute_match = any_of(
        Compare(name, "icontains", text) for name in ("key", "string_value", "location_label")
    )
    return any_of(
        (
            *(Compare(name, "icontains", text) for name in CONTACT_SEARCH_FIELDS),
            Exists("attributes", attribute_match),
        )
    )


def contact_field_predicate(clause: ContactFieldFilter) -> Predicate:
    """``contains``/``has``/``missing`` on a contact column."""
    if clause.operator == "has":
        return _has_value(clause.field)
    if clause.operator == "missing":
        return _missing_value(clause.field)
    value = (clause.value or "").strip()
    if not value:
        return MatchAll()
    return Compare(clause.field, "icontains", value)


def attribute_predicate(clause: AttributeFilter) -> Predicate:
    """``contains``/``equals`` on the attribute with the given key.

    ``equals`` compares against every encoding an attribute can have: text and
    location label ignoring case, the number column when the value parses as a
    number, the date column when it parses as a date.
    """
    key = clause.key.strip()
    value = (clause.value or "").strip()
    if not key or not value:
        return MatchAll()

    if clause.operator == "contains":
        value_match = any_of(
            (
                Compare("string_value", "icontains", value),
                Compare("location_label", "icontains", value),
            )
        )
    else:
        alternatives: list[Predicate] = [
            Compare("string_value", "ieq", value),
            Compare("location_label", "ieq", value),
        ]
        number = to_finite_decimal(value)
        if number is not None:
            alternatives.append(Compare("number_value", "eq", number))
        moment = parse_datetime(value)
        if moment is not None:
            alternatives.append(Compare("date_value", "eq", moment))
        value_match = any_of(alternatives)

    return Exists("attributes", all_of((Compare("key", "eq", key), value_match)))


def group_predicate(clause: GroupFilter) -> Predicate:
    """Contact is in one of the groups."""
    return Compare("group_id", "in", tuple(clause.group_ids))


def event_role_predicate(clause: EventRoleFilter) -> Predicate:
    """Contact holds one of the roles at any event."""
    return Exists("event_contacts", Compare("event_role_id", "in", tuple(clause.event_role_ids)))


def created_at_predicate(clause: CreatedAtFilter) -> Predicate:
    """Inclusive creation date range."""
    bounds = []
    if clause.from_ is not None:
        bounds.append(Compare("created_at", "gte", to_naive_utc(clause.from_)))
    if clause.to is not None:
        bounds.append(Compare("created_at", "lte", to_naive_utc(clause.to)))
    return all_of(bounds)


def group_visibility_predicate(visible_group_ids: Optional[Sequence[UUID]]) -> Predicate:
    """Contacts without a group, or in one of ``visible_group_ids``.

    None means the caller may see contacts of every group.
    """
    if visible_group_ids is None:
        return MatchAll()
    unassigned = Compare("group_id", "is_null")
    if not visible_group_ids:
        return unassigned
    return any_of((unassigned, Compare("group_id", "in", tuple(visible_group_ids))))


class ContactQueryBuilder:
    """Builds the predicate selecting the contacts a listing returns.

    Distance filters need the database (centroid lookup and radius search);
    every other clause is translated without I/O.
    """

    def __init__(self, db: AsyncSession, log: Optional[ContextualLogger] = None):
        """Bind the builder to a session used for distance lookups."""
        self.db = db
        self.logger = (log or logger).with_context(component="contact_query_builder")

    async def build(
        self,
        team_id: UUID,
        query: Optional[str] = None,
        filters: Optional[Sequence[ContactFilter]] = None,
        visible_group_ids: Optional[Sequence[UUID]] = None,
    ) -> Predicate:
        """Compose the team scope, group visibility, text search and filters."""
        clauses: list[Predicate] = [
            Compare("team_id", "eq", team_id),
            group_visibility_predicate(visible_group_ids),
            text_search_predicate(query),
        ]

        for clause in filters or ():
            if isinstance(clause, DistanceFilter):
                clauses.append(await self.distance_predicate(team_id, clause))
            else:
                clauses.append(self.filter_predicate(clause))

        return all_of(clauses)

    def filter_predicate(self, clause: ContactFilter) -> Predicate:
        """Translate one non-distance filter."""
        if isinstance(clause, ContactFieldFilter):
            return contact_field_predicate(clause)
        if isinstance(clause, AttributeFilter):
            return attribute_predicate(clause)
        if isinstance(clause, GroupFilter):
            return group_predicate(clause)
        if isinstance(clause, EventRoleFilter):
            return event_role_predicate(clause)
        if isinstance(clause, CreatedAtFilter):
            return created_at_predicate(clause)
        raise TypeError(f"Unsupported contact filter: {clause!r}")

    async def distance_predicate(self, team_id: UUID, clause: DistanceFilter) -> Predicate:
        """Restrict to contacts within the radius; anything unresolvable matches nothing."""
        postal_code = normalize_postal_code(clause.postal_code)
        country_code = normalize_country_code(clause.country_code)
        radius_km = clause.radius_km

        if (
            postal_code is None
            or country_code is None
            or radius_km is None
            or not math.isfinite(radius_km)
            or radius_km < 0
        ):
            self.logger.info(
                "Distance filter has unusable input, returning no contacts",
                extra={"postal_code": clause.postal_code, "country_code": clause.country_code},
            )
            return MatchNone()

        try:
            origin = await resolve_centroid(self.db, country_code, postal_code)
            if origin is None:
                self.logger.info(
                    f"No centroid for {country_code} {postal_code}, returning no contacts"
                )
                return MatchNone()

            contact_ids = await crud.contact.get_ids_within_radius(
                self.db, team_id=team_id, origin=origin, radius_m=radius_km * 1000
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Distance lookup failed, returning no contacts: {e}")
            await self.db.rollback()
            return MatchNone()

        if not contact_ids:
            return MatchNone()
        return Compare("id", "in", tuple(contact_ids))
