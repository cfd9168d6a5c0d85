"""Unit tests for translating contact search text and filters into predicates."""

import math
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from granthub import schemas
from granthub.core.contact_query_builder import (
    ContactQueryBuilder,
    attribute_predicate,
    contact_field_predicate,
    created_at_predicate,
    group_visibility_predicate,
    text_search_predicate,
)
from granthub.core.geo import Coordinates
from granthub.core.predicates import And, Compare, Exists, MatchAll, MatchNone, Or


class TestPureClauses:
    """Clauses that need no database."""

    def test_empty_search_matches_all(self):
        assert text_search_predicate("  ") == MatchAll()
        assert text_search_predicate(None) == MatchAll()

    def test_search_covers_columns_and_attributes(self):
        predicate = text_search_predicate(" jane ")
        assert isinstance(predicate, Or)
        assert Compare("email", "icontains", "jane") in predicate.items
        assert isinstance(predicate.items[-1], Exists)

    def test_contact_field_operators(self):
        has = contact_field_predicate(schemas.ContactFieldFilter(field="phone", operator="has"))
        missing = contact_field_predicate(
            schemas.ContactFieldFilter(field="phone", operator="missing")
        )
        contains = contact_field_predicate(
            schemas.ContactFieldFilter(field="city", operator="contains", value=" ber ")
        )
        empty = contact_field_predicate(
            schemas.ContactFieldFilter(field="city", operator="contains", value="")
        )
        assert isinstance(has, And)
        assert missing == Or((Compare("phone", "is_null"), Compare("phone", "eq", "")))
        assert contains == Compare("city", "icontains", "ber")
        assert empty == MatchAll()

    def test_unknown_contact_field_is_rejected(self):
        with pytest.raises(ValueError):
            schemas.ContactFieldFilter(field="gender", operator="has")

    def test_attribute_equals_is_polymorphic(self):
        predicate = attribute_predicate(
            schemas.AttributeFilter(key="since", operator="equals", value="2024-03-01")
        )
        assert isinstance(predicate, Exists)
        _, value_match = predicate.where.items
        assert Compare("date_value", "eq", datetime(2024, 3, 1)) in value_match.items
        assert not any(item.field == "number_value" for item in value_match.items)

    def test_attribute_equals_number_is_not_read_as_a_date(self):
        predicate = attribute_predicate(
            schemas.AttributeFilter(key="since", operator="equals", value="10")
        )
        _, value_match = predicate.where.items
        assert Compare("number_value", "eq", Decimal("10")) in value_match.items
        assert not any(item.field == "date_value" for item in value_match.items)

    def test_attribute_equals_text_only(self):
        predicate = attribute_predicate(
            schemas.AttributeFilter(key="role", operator="equals", value="Mentor")
        )
        _, value_match = predicate.where.items
        assert {item.field for item in value_match.items} == {"string_value", "location_label"}

    def test_attribute_filter_with_empty_value_is_skipped(self):
        for operator in ("contains", "equals"):
            clause = schemas.AttributeFilter(key="role", operator=operator, value=" ")
            assert attribute_predicate(clause) == MatchAll()

    def test_created_at_bounds_are_inclusive_and_naive_utc(self):
        clause = schemas.CreatedAtFilter(
            **{"from": datetime(2024, 1, 1, 1, tzinfo=timezone.utc), "to": datetime(2024, 2, 1)}
        )
        assert created_at_predicate(clause) == And(
            (
                Compare("created_at", "gte", datetime(2024, 1, 1, 1)),
                Compare("created_at", "lte", datetime(2024, 2, 1)),
            )
        )

    def test_created_at_requires_a_bound(self):
        with pytest.raises(ValueError):
            schemas.CreatedAtFilter()

    def test_group_visibility(self):
        g1 = uuid.uuid4()
        assert group_visibility_predicate(None) == MatchAll()
        assert group_visibility_predicate([]) == Compare("group_id", "is_null")
        assert group_visibility_predicate([g1]) == Or(
            (Compare("group_id", "is_null"), Compare("group_id", "in", (g1,)))
        )

    def test_filters_parse_from_json(self):
        filters = schemas.contact_filters_adapter.validate_json(
            '[{"type": "group", "group_id": "%s"},'
            ' {"type": "distance", "postal_code": "10115", "radius_km": 5}]' % uuid.uuid4()
        )
        assert isinstance(filters[0], schemas.GroupFilter)
        assert isinstance(filters[1], schemas.DistanceFilter)


@pytest.mark.asyncio
class TestDistance:
    """Distance filters fail closed."""

    @pytest.mark.parametrize(
        "postal_code,country_code,radius_km",
        [
            ("  ", "DE", 10),
            ("10115", "Atlantis", 10),
            ("10115", "DE", math.nan),
            ("10115", "DE", math.inf),
            ("10115", "DE", None),
            ("10115", "DE", -1),
        ],
    )
    async def test_unusable_input_matches_nothing(
        self, mock_db_session, postal_code, country_code, radius_km
    ):
        clause = schemas.DistanceFilter(
            postal_code=postal_code, country_code=country_code, radius_km=radius_km
        )
        with patch(
            "granthub.core.contact_query_builder.resolve_centroid", new=AsyncMock()
        ) as resolve:
            predicate = await ContactQueryBuilder(mock_db_session).distance_predicate(
                uuid.uuid4(), clause
            )
        assert predicate == MatchNone()
        resolve.assert_not_called()

    async def test_unknown_centroid_matches_nothing(self, mock_db_session):
        clause = schemas.DistanceFilter(postal_code="00000", country_code="DE", radius_km=10)
        with patch(
            "granthub.core.contact_query_builder.resolve_centroid",
            new=AsyncMock(return_value=None),
        ):
            predicate = await ContactQueryBuilder(mock_db_session).distance_predicate(
                uuid.uuid4(), clause
            )
        assert predicate == MatchNone()

    async def test_no_contacts_in_radius_matches_nothing(self, mock_db_session):
        clause = schemas.DistanceFilter(postal_code="10115", country_code="de", radius_km=10)
        with patch(
            "granthub.core.contact_query_builder.resolve_centroid",
            new=AsyncMock(return_value=Coordinates(52.53, 13.38)),
        ), patch(
            "granthub.crud.contact.get_ids_within_radius", new=AsyncMock(return_value=[])
        ) as within:
            predicate = await ContactQueryBuilder(mock_db_session).distance_predicate(
                uuid.uuid4(), clause
            )
        assert predicate == MatchNone()
        assert within.await_args.kwargs["radius_m"] == 10_000

    async def test_contacts_in_radius_restrict_by_id(self, mock_db_session):
        ids = [uuid.uuid4(), uuid.uuid4()]
        clause = schemas.DistanceFilter(postal_code="10115", country_code="DE", radius_km=2.5)
        with patch(
            "granthub.core.contact_query_builder.resolve_centroid",
            new=AsyncMock(return_value=Coordinates(52.53, 13.38)),
        ), patch(
            "granthub.crud.contact.get_ids_within_radius", new=AsyncMock(return_value=ids)
        ):
            predicate = await ContactQueryBuilder(mock_db_session).distance_predicate(
                uuid.uuid4(), clause
            )
        assert predicate == Compare("id", "in", tuple(ids))

    async def test_database_error_matches_nothing(self, mock_db_session):
        clause = schemas.DistanceFilter(postal_code="10115", country_code="DE", radius_km=10)
        with patch(
            "granthub.core.contact_query_builder.resolve_centroid",
            new=AsyncMock(side_effect=OperationalError("select", {}, Exception("down"))),
        ):
            predicate = await ContactQueryBuilder(mock_db_session).distance_predicate(
                uuid.uuid4(), clause
            )
        assert predicate == MatchNone()
        mock_db_session.rollback.assert_awaited_once()

    async def test_build_short_circuits_on_failed_distance(self, mock_db_session):
        team_id = uuid.uuid4()
        filters = [
            schemas.ContactFieldFilter(field="city", operator="contains", value="Berlin"),
            schemas.DistanceFilter(postal_code="", country_code="DE", radius_km=5),
        ]
        predicate = await ContactQueryBuilder(mock_db_session).build(team_id, filters=filters)
        assert predicate == MatchNone()

    async def test_build_scopes_to_team(self, mock_db_session):
        team_id = uuid.uuid4()
        predicate = await ContactQueryBuilder(mock_db_session).build(team_id)
        assert predicate == Compare("team_id", "eq", team_id)
