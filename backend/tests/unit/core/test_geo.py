"""Unit tests for postal code, country and distance helpers."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from granthub.core.geo import (
    Coordinates,
    bounding_box,
    haversine_m,
    normalize_country_code,
    normalize_postal_code,
    resolve_centroid,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        (" 1012  ab ", "1012 AB"),
        ("10115", "10115"),
        ("sw1a\t1aa", "SW1A 1AA"),
        ("", None),
        ("   ", None),
        (None, None),
    ],
)
def test_normalize_postal_code(raw, expected):
    assert normalize_postal_code(raw) == expected


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("de", "DE"),
        ("Germany", "DE"),
        ("deutschland", "DE"),
        ("Österreich", "AT"),
        ("oesterreich", "AT"),
        ("The Netherlands", "NL"),
        ("Україна", "UA"),
        ("Ελλάδα", "GR"),
        ("Atlantis", None),
        ("XX", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_country_code(raw, expected):
    assert normalize_country_code(raw) == expected


def test_haversine_known_distance():
    # Berlin to Hamburg, roughly 255 km
    distance = haversine_m(52.5200, 13.4050, 53.5511, 9.9937)
    assert 250_000 < distance < 260_000


def test_haversine_same_point_is_zero():
    assert haversine_m(48.1, 11.5, 48.1, 11.5) == 0


def test_bounding_box_contains_the_circle():
    origin = Coordinates(52.52, 13.405)
    box = bounding_box(origin, 50_000)
    assert box.min_latitude < origin.latitude < box.max_latitude
    assert box.min_longitude < origin.longitude < box.max_longitude
    # A point 49 km due east lies inside the box
    east_lon = origin.longitude + 0.72
    assert haversine_m(origin.latitude, origin.longitude, origin.latitude, east_lon) < 50_000
    assert box.min_longitude <= east_lon <= box.max_longitude


def test_bounding_box_near_pole_spans_all_longitudes():
    box = bounding_box(Coordinates(89.9, 0.0), 50_000)
    assert (box.min_longitude, box.max_longitude) == (-180.0, 180.0)
    assert box.max_latitude == 90.0


def test_bounding_box_zero_radius():
    box = bounding_box(Coordinates(10.0, 20.0), 0)
    assert (box.min_latitude, box.max_latitude) == (10.0, 10.0)
    assert (box.min_longitude, box.max_longitude) == (20.0, 20.0)


@pytest.mark.asyncio
class TestResolveCentroid:
    """Tests for resolve_centroid."""

    async def test_missing_input_skips_lookup(self, mock_db_session):
        with patch("granthub.crud.postal_code_centroid.get_by_code", new=AsyncMock()) as lookup:
            assert await resolve_centroid(mock_db_session, None, "10115") is None
            assert await resolve_centroid(mock_db_session, "DE", None) is None
            lookup.assert_not_called()

    async def test_found(self, mock_db_session):
        row = MagicMock(latitude=52.5323, longitude=13.3846)
        with patch(
            "granthub.crud.postal_code_centroid.get_by_code", new=AsyncMock(return_value=row)
        ) as lookup:
            result = await resolve_centroid(mock_db_session, "DE", "10115")

        assert result == Coordinates(52.5323, 13.3846)
        lookup.assert_awaited_once_with(mock_db_session, country_code="DE", postal_code="10115")

    async def test_unmatched(self, mock_db_session):
        with patch(
            "granthub.crud.postal_code_centroid.get_by_code", new=AsyncMock(return_value=None)
        ):
            assert await resolve_centroid(mock_db_session, "DE", "00000") is None
