"""Import of GeoNames postal code centroids and contact geo backfill.

GeoNames ``allCountries.txt`` is tab separated with 12 columns:
country code, postal code, place name, admin name1, admin code1,
admin name2, admin code2, admin name3, admin code3, latitude, longitude,
accuracy.
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Iterator, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from granthub import crud
from granthub.core.geo import normalize_country_code, normalize_postal_code, resolve_centroid
from granthub.core.logging import logger
from granthub.models.postal_code_centroid import PostalCodeCentroid

geo_logger = logger.with_context(component="postal_centroid_service")

GEONAMES_COLUMNS = (
    "country_code",
    "postal_code",
    "place_name",
    "admin_name1",
    "admin_code1",
    "admin_name2",
    "admin_code2",
    "admin_name3",
    "admin_code3",
    "latitude",
    "longitude",
    "accuracy",
)


@dataclass
class ImportResult:
    """Outcome of a centroid import."""

    read: int = 0
    inserted: int = 0
    skipped: int = 0


@dataclass
class BackfillResult:
    """Outcome of a contact geo backfill."""

    scanned: int = 0
    updated: int = 0
    unresolved: int = 0


def _coordinate(raw: str, limit: float) -> Optional[Decimal]:
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value) or abs(value) > limit:
        return None
    return Decimal(raw.strip()).quantize(Decimal("0.000001"))


def parse_geonames_rows(
    lines: Iterable[str], countries: Optional[set[str]] = None
) -> Iterator[dict[str, Any]]:
    """Parse GeoNames rows into centroid column dicts.

    Rows with a missing country, postal code or coordinates are skipped.
    ``countries`` limits the output to those ISO-2 codes.
    """
    for line in lines:
        parts = line.rstrip("\r\n").split("\t")
        if len(parts) < len(GEONAMES_COLUMNS):
            continue
        raw = dict(zip(GEONAMES_COLUMNS, parts))

        country_code = raw["country_code"].strip().upper()
        postal_code = normalize_postal_code(raw["postal_code"])
        if len(country_code) != 2 or not postal_code:
            continue
        if countries is not None and country_code not in countries:
            continue

        latitude = _coordinate(raw["latitude"], 90.0)
        longitude = _coordinate(raw["longitude"], 180.0)
        if latitude is None or longitude is None:
            continue

        accuracy = raw["accuracy"].strip()
        row: dict[str, Any] = {
            "country_code": country_code,
            "postal_code": postal_code,
            "latitude": latitude,
            "longitude": longitude,
            "accuracy": int(accuracy) if accuracy.isdigit() else None,
        }
        for column in GEONAMES_COLUMNS[2:9]:
            row[column] = raw[column].strip() or None
        yield row


async def import_postal_centroids(
    db: AsyncSession,
    rows: Iterable[dict[str, Any]],
    batch_size: int = 5000,
    replace: bool = False,
) -> ImportResult:
    """Insert centroid rows, keeping the first row per (country, postal code).

    Each batch is committed on its own. With ``replace`` the table is emptied
    first.
    """
    result = ImportResult()
    if replace:
        await db.execute(delete(PostalCodeCentroid))
        await db.commit()

    seen: set[tuple[str, str]] = set()
    batch: list[dict[str, Any]] = []

    async def flush_batch() -> None:
        keys = [(row["country_code"], row["postal_code"]) for row in batch]
        existing = await crud.postal_code_centroid.get_existing_keys(db, keys)
        new_rows = [
            row for row in batch if (row["country_code"], row["postal_code"]) not in existing
        ]
        crud.postal_code_centroid.add_many(db, new_rows)
        await db.commit()
        result.inserted += len(new_rows)
        result.skipped += len(batch) - len(new_rows)
        batch.clear()

    for row in rows:
        result.read += 1
        key = (row["country_code"], row["postal_code"])
        if key in seen:
            result.skipped += 1
            continue
        seen.add(key)
        batch.append(row)
        if len(batch) >= batch_size:
            await flush_batch()

    if batch:
        await flush_batch()

    geo_logger.info(
        f"Imported {result.inserted} postal code centroids "
        f"({result.skipped} skipped of {result.read} read)"
    )
    return result


async def backfill_contact_geo(
    db: AsyncSession, batch_size: int = 200, dry_run: bool = False
) -> BackfillResult:
    """Resolve coordinates for contacts that have a postal code but no coordinates."""
    result = BackfillResult()
    after_id = None

    while True:
        contacts = await crud.contact.get_missing_geo(db, limit=batch_size, after_id=after_id)
        if not contacts:
            break

        for contact in contacts:
            result.scanned += 1
            country_code = contact.country_code or normalize_country_code(contact.country)
            postal_code = normalize_postal_code(contact.postal_code)
            centroid = await resolve_centroid(db, country_code, postal_code)
            if centroid is None:
                result.unresolved += 1
                continue
            if not dry_run:
                contact.country_code = country_code
                contact.latitude = Decimal(str(round(centroid.latitude, 6)))
                contact.longitude = Decimal(str(round(centroid.longitude, 6)))
            result.updated += 1

        after_id = contacts[-1].id
        if not dry_run:
            await db.commit()

    verb = "would be updated" if dry_run else "updated"
    geo_logger.info(
        f"Contact geo backfill: {result.updated} {verb}, "
        f"{result.unresolved} unresolved of {result.scanned}"
    )
    return result
