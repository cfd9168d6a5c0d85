"""Unit tests for change log value encoding and entry construction."""

import uuid
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock

from granthub.core.contact_change_log_service import (
    contact_change_log_service,
    decode_value,
    encode_value,
)
from granthub.core.shared_models import ChangeAction, ContactGender
from granthub.db.unit_of_work import UnitOfWork


def test_none_stays_null():
    assert encode_value(None) is None
    assert decode_value(None) is None


def test_values_are_json_encoded():
    assert encode_value("Berlin") == '"Berlin"'
    assert encode_value(True) == "true"
    assert encode_value(ContactGender.FEMALE) == '"FEMALE"'
    assert encode_value(datetime(2024, 3, 1, 9, 30)) == '"2024-03-01T09:30:00.000Z"'
    assert encode_value({"key": "score", "value": 1.5}) == '{"key": "score", "value": 1.5}'


def test_uuid_and_decimal_are_encodable():
    group_id = uuid.UUID("2f7e8c1a-3b4d-4e5f-8a9b-0c1d2e3f4a5b")
    assert decode_value(encode_value(group_id)) == str(group_id)
    assert decode_value(encode_value(Decimal("1.5"))) == "1.5"


def test_legacy_plain_text_is_returned_as_is():
    assert decode_value("not json {") == "not json {"


def test_field_update_is_recorded_on_the_unit_of_work():
    uow = MagicMock()
    contact_id, user_id = uuid.uuid4(), uuid.uuid4()

    entry = contact_change_log_service.log_field_update(
        contact_id, "city", "Berlin", None, user_id, "Ada", uow
    )

    uow.record.assert_called_once_with(entry)
    assert entry.action == ChangeAction.UPDATED.value
    assert (entry.field_name, entry.old_value, entry.new_value) == ("city", '"Berlin"', None)
    assert (entry.user_id, entry.user_name) == (user_id, "Ada")


def test_creation_entry_carries_metadata():
    uow = MagicMock()
    entry = contact_change_log_service.log_contact_creation(
        uuid.uuid4(), None, None, uow, metadata={"name": "Jane"}
    )
    assert entry.action == ChangeAction.CREATED.value
    assert entry.field_name is None
    assert decode_value(entry.new_value) == {"name": "Jane"}


def test_entries_of_one_change_are_numbered_in_write_order():
    uow = UnitOfWork(MagicMock())
    contact_id = uuid.uuid4()

    created = contact_change_log_service.log_contact_creation(contact_id, None, None, uow)
    city = contact_change_log_service.log_field_update(
        contact_id, "city", None, "Berlin", None, None, uow
    )
    phone = contact_change_log_service.log_field_update(
        contact_id, "phone", None, "+49", None, None, uow
    )

    assert [created.position, city.position, phone.position] == [0, 1, 2]
