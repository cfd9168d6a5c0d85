"""Unit tests for the date helpers."""

from datetime import date, datetime, timezone

import pytest

from granthub.core.datetime_utils import parse_datetime, to_iso_string


class TestParseDatetime:
    """Tests for parse_datetime."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2024-03-01", datetime(2024, 3, 1)),
            ("1 March 2024", datetime(2024, 3, 1)),
            ("2024-03-01T10:30:00+01:00", datetime(2024, 3, 1, 9, 30)),
            (" 2024-02-29 ", datetime(2024, 2, 29)),
            (date(2024, 3, 1), datetime(2024, 3, 1)),
            (datetime(2024, 3, 1, 12, tzinfo=timezone.utc), datetime(2024, 3, 1, 12)),
        ],
    )
    def test_full_dates_are_parsed(self, value, expected):
        assert parse_datetime(value) == expected

    @pytest.mark.parametrize("value", ["5", "10", "March", "March 2024", "12:30"])
    def test_partial_dates_are_rejected(self, value):
        assert parse_datetime(value) is None

    @pytest.mark.parametrize("value", ["2024-02-30", "not a date", "", None, 20240101])
    def test_invalid_input_is_rejected(self, value):
        assert parse_datetime(value) is None


def test_iso_string_has_millisecond_precision():
    moment = datetime(2024, 3, 1, 9, 30, 0, 123456)
    assert to_iso_string(moment) == "2024-03-01T09:30:00.123Z"
