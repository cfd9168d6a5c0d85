"""Unit tests for field-level access control."""

import uuid
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from granthub import schemas
from granthub.core.field_access_service import (
    FieldAccessPolicy,
    field_access_service,
    is_field_visible,
)
from granthub.core.shared_models import ContactSubmodule

G1 = uuid.uuid4()
G2 = uuid.uuid4()


def _contact(**overrides) -> schemas.Contact:
    values = dict(
        id=uuid.uuid4(),
        team_id=uuid.uuid4(),
        name="Jane Doe",
        email="jane@example.com",
        gender="FEMALE",
        is_bipoc=True,
        postal_code="10115",
        country="Germany",
        country_code="DE",
        latitude=52.53,
        longitude=13.38,
        profile_attributes=[
            {"key": "role", "type": "STRING", "value": "Mentor"},
            {"key": "salary", "type": "NUMBER", "value": 1000},
        ],
        social_links=[{"platform": "mastodon", "handle": "@jane"}],
        created_at=datetime(2024, 1, 1),
        modified_at=datetime(2024, 1, 1),
    )
    values.update(overrides)
    return schemas.Contact(**values)


class TestIsFieldVisible:
    """Tests for is_field_visible."""

    def test_field_without_rule_is_visible_to_everyone(self):
        assert is_field_visible("gender", {}, [])

    def test_member_of_allowed_group_sees_field(self):
        assert is_field_visible("gender", {"gender": {G1, G2}}, [G2])

    def test_non_member_does_not_see_field(self):
        assert not is_field_visible("gender", {"gender": {G1}}, [G2])
        assert not is_field_visible("gender", {"gender": {G1}}, [])


class TestRedact:
    """Tests for FieldAccessPolicy.redact."""

    def test_restricted_scalar_is_cleared_for_outsiders(self):
        policy = FieldAccessPolicy({"gender": {G1}}, frozenset())
        redacted = policy.redact(_contact())
        assert redacted.gender is None
        assert redacted.is_bipoc is True

    def test_member_keeps_value(self):
        policy = FieldAccessPolicy({"gender": {G1}}, frozenset({G1}))
        contact = _contact()
        assert policy.redact(contact) is contact

    def test_restricted_attribute_key_is_removed(self):
        policy = FieldAccessPolicy({"profile_attribute.salary": {G1}}, frozenset())
        redacted = policy.redact(_contact())
        assert [a.key for a in redacted.profile_attributes] == ["role"]

    def test_hidden_postal_code_hides_derived_location(self):
        policy = FieldAccessPolicy({"postal_code": {G1}}, frozenset())
        redacted = policy.redact(_contact())
        assert redacted.postal_code is None
        assert (redacted.country_code, redacted.latitude, redacted.longitude) == (None,) * 3
        assert redacted.country == "Germany"

    def test_hidden_country_hides_derived_location(self):
        policy = FieldAccessPolicy({"country": {G1}}, frozenset())
        redacted = policy.redact(_contact())
        assert redacted.country is None
        assert (redacted.country_code, redacted.latitude, redacted.longitude) == (None,) * 3
        assert redacted.postal_code == "10115"

    def test_hidden_social_links_become_empty(self):
        policy = FieldAccessPolicy({"social_links": {G1}}, frozenset())
        assert policy.redact(_contact()).social_links == []


class TestSanitize:
    """Write access mirrors read access."""

    def test_create_drops_hidden_fields_and_attributes(self):
        policy = FieldAccessPolicy(
            {"gender": {G1}, "profile_attribute.salary": {G1}}, frozenset({G2})
        )
        contact_in = schemas.ContactCreate(
            team_id=uuid.uuid4(),
            name="Jane",
            email="jane@example.com",
            gender="FEMALE",
            profile_attributes=[
                {"key": "salary", "type": "NUMBER", "value": 1},
                {"key": "role", "type": "STRING", "value": "Mentor"},
            ],
        )
        sanitized = policy.sanitize_create(contact_in)
        assert sanitized.gender is None
        assert [a.key for a in sanitized.profile_attributes] == ["role"]
        assert sanitized.name == "Jane"

    def test_patch_marks_hidden_fields_not_provided(self):
        policy = FieldAccessPolicy({"gender": {G1}}, frozenset())
        patch_in = schemas.ContactUpdate(
            id=uuid.uuid4(), team_id=uuid.uuid4(), gender="MALE", city="Berlin"
        ).to_patch()
        sanitized = policy.sanitize_patch(patch_in)
        assert sanitized.gender is schemas.NOT_PROVIDED
        assert sanitized.city == schemas.Provided("Berlin")

    def test_patch_filters_hidden_attributes(self):
        policy = FieldAccessPolicy({"profile_attribute.salary": {G1}}, frozenset())
        patch_in = schemas.ContactUpdate(
            id=uuid.uuid4(),
            team_id=uuid.uuid4(),
            profile_attributes=[
                {"key": "salary", "type": "NUMBER", "value": 1},
                {"key": "role", "type": "STRING", "value": "Mentor"},
            ],
        ).to_patch()
        sanitized = policy.sanitize_patch(patch_in)
        assert [a.key for a in sanitized.profile_attributes.value] == ["role"]

    def test_change_visibility(self):
        policy = FieldAccessPolicy(
            {"gender": {G1}, "social_links": {G1}, "profile_attribute.salary": {G1}},
            frozenset(),
        )
        assert policy.can_see_change(None)
        assert policy.can_see_change("city")
        assert not policy.can_see_change("gender")
        assert not policy.can_see_change("social_link.mastodon")
        assert not policy.can_see_change("profile_attribute.salary")
        assert policy.can_see_change("profile_attribute.role")


@pytest.mark.asyncio
class TestFieldAccessService:
    """Tests for FieldAccessService with mocked crud."""

    async def test_no_user_gets_no_submodules(self, mock_db_session):
        with patch.object(field_access_service, "resolve", new=AsyncMock()) as resolve:
            result = await field_access_service.get_allowed_submodules(
                mock_db_session, uuid.uuid4(), None
            )
        assert result == []
        resolve.assert_not_called()

    async def test_no_user_belongs_to_no_group(self, mock_db_session):
        with patch("granthub.crud.group.get_user_groups", new=AsyncMock()) as get_groups:
            assert await field_access_service.get_user_group_ids(
                mock_db_session, None, uuid.uuid4()
            ) == []
        get_groups.assert_not_called()

    async def test_submodule_allowed_when_any_field_visible(self, mock_db_session):
        team_id, user_id = uuid.uuid4(), uuid.uuid4()
        rules = [
            MagicMock(field_key="gender", group_id=G1),
            MagicMock(field_key="submodule.EVENTS", group_id=G1),
        ]
        with patch(
            "granthub.crud.contact_field_access.get_multi_by_team",
            new=AsyncMock(return_value=rules),
        ), patch(
            "granthub.crud.group.get_user_groups", new=AsyncMock(return_value=[])
        ):
            result = await field_access_service.get_allowed_submodules(
                mock_db_session, team_id, user_id
            )

        assert ContactSubmodule.SUPERVISION in result
        assert ContactSubmodule.SHOP in result
        assert ContactSubmodule.EVENTS not in result
