"""Unit tests for contact input schemas and presence wrappers."""

import uuid

import pytest
from pydantic import ValidationError

from granthub import schemas
from granthub.schemas import NOT_PROVIDED, Provided, is_provided


def _update(**fields) -> schemas.ContactUpdate:
    return schemas.ContactUpdate(id=uuid.uuid4(), team_id=uuid.uuid4(), **fields)


class TestPresence:
    """Absent keys and empty values are different states."""

    def test_absent_field_is_not_provided(self):
        patch = _update(name="Jane").to_patch()
        assert patch.city is NOT_PROVIDED
        assert not is_provided(patch.city)
        assert patch.name == Provided("Jane")

    def test_empty_and_null_values_are_provided(self):
        patch = _update(city="", phone=None, social_links=[]).to_patch()
        assert patch.city == Provided("")
        assert patch.phone == Provided(None)
        assert patch.social_links == Provided([])

    def test_provided_scalars_lists_only_sent_fields(self):
        patch = _update(city="", email="a@example.com").to_patch()
        assert dict(patch.provided_scalars()) == {"city": "", "email": "a@example.com"}

    def test_without_marks_fields_absent(self):
        patch = _update(gender="FEMALE", city="Berlin").to_patch().without("gender")
        assert patch.gender is NOT_PROVIDED
        assert patch.city == Provided("Berlin")

    def test_not_provided_is_a_falsy_singleton(self):
        assert not NOT_PROVIDED
        assert type(NOT_PROVIDED)() is NOT_PROVIDED
        assert repr(NOT_PROVIDED) == "NOT_PROVIDED"


class TestContactInput:
    """Validation of contact payloads."""

    def test_malformed_email_is_rejected(self):
        with pytest.raises(ValidationError):
            schemas.ContactCreate(team_id=uuid.uuid4(), name="Jane", email="not-an-email")

    def test_empty_email_is_left_to_the_service(self):
        contact_in = schemas.ContactCreate(team_id=uuid.uuid4(), name="Jane", email=" ")
        assert contact_in.email == " "

    def test_social_link_lengths(self):
        with pytest.raises(ValidationError):
            schemas.SocialLinkInput(platform="x" * 51, handle="h")

    def test_profile_attributes_are_loose(self):
        contact_in = schemas.ContactCreate(
            team_id=uuid.uuid4(),
            name="Jane",
            profile_attributes=[{"key": None, "type": "BOOLEAN", "value": {"a": 1}}],
        )
        assert contact_in.profile_attributes[0].value == {"a": 1}
