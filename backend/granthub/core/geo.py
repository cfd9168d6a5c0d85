"""Postal code, country and distance helpers."""

import math
import re
import unicodedata
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from granthub.core.constants.countries import COUNTRIES

EARTH_RADIUS_M = 6_371_008.8

_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[\W_]+")


@dataclass(frozen=True)
class Coordinates:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class BoundingBox:
    """Lat/lon rectangle enclosing a circle; used as an index-friendly prefilter."""

    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float


def _normalize_name(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("", stripped.casefold())


def _build_country_lookup() -> dict[str, str]:
    lookup: dict[str, str] = {}
    for code, names in COUNTRIES.items():
        lookup[code.casefold()] = code
        for name in names:
            key = _normalize_name(name)
            if key:
                lookup[key] = code
    return lookup


_COUNTRY_LOOKUP = _build_country_lookup()


def normalize_postal_code(raw: Optional[str]) -> Optional[str]:
    """Trim, upper-case and collapse inner whitespace; None for empty input.

    Example: ``" 1012  ab "`` -> ``"1012 AB"``.
    """
    if raw is None:
        return None
    trimmed = raw.strip()
    if not trimmed:
        return None
    return _WHITESPACE.sub(" ", trimmed.upper())


def normalize_country_code(raw: Optional[str]) -> Optional[str]:
    """Map an ISO-2 code or a known country name to the ISO-2 code.

    Names are matched ignoring case, accents, spaces and punctuation
    (``"Österreich"``, ``"oesterreich"`` and ``"AT"`` all give ``"AT"``).
    Returns None for unsupported countries.
    """
    if raw is None:
        return None
    trimmed = raw.strip()
    if not trimmed:
        return None

    upper = trimmed.upper()
    if len(upper) == 2 and upper in COUNTRIES:
        return upper

    return _COUNTRY_LOOKUP.get(_normalize_name(trimmed))


async def resolve_centroid(
    db: AsyncSession, country_code: Optional[str], postal_code: Optional[str]
) -> Optional[Coordinates]:
    """Look up the centroid of a normalized (country, postal code) pair."""
    if not country_code or not postal_code:
        return None

    from granthub import crud

    centroid = await crud.postal_code_centroid.get_by_code(
        db, country_code=country_code, postal_code=postal_code
    )
    if centroid is None:
        return None
    return Coordinates(latitude=float(centroid.latitude), longitude=float(centroid.longitude))


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in meters."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(origin: Coordinates, radius_m: float) -> BoundingBox:
    """Smallest lat/lon box containing every point within ``radius_m`` of ``origin``."""
    angular = radius_m / EARTH_RADIUS_M
    d_lat = math.degrees(angular)
    min_lat = max(-90.0, origin.latitude - d_lat)
    max_lat = min(90.0, origin.latitude + d_lat)

    cos_lat = math.cos(math.radians(origin.latitude))
    # Circle reaches a pole: every longitude qualifies
    if max_lat >= 90.0 or min_lat <= -90.0 or math.sin(angular) >= cos_lat:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0)

    d_lon = math.degrees(math.asin(math.sin(angular) / cos_lat))

    return BoundingBox(
        min_latitude=min_lat,
        max_latitude=max_lat,
        min_longitude=origin.longitude - d_lon,
        max_longitude=origin.longitude + d_lon,
    )
