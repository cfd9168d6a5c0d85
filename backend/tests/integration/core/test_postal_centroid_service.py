"""Tests for the GeoNames centroid import and the contact geo backfill."""

from decimal import Decimal

import pytest
from sqlalchemy import select

from granthub import models
from granthub.core.postal_centroid_service import (
    backfill_contact_geo,
    import_postal_centroids,
    parse_geonames_rows,
)


def geonames_line(country="DE", postal="10115", lat="52.5323", lon="13.3846", accuracy="4"):
    return "\t".join(
        [country, postal, "Berlin", "Berlin", "BE", "", "", "", "", lat, lon, accuracy]
    )


class TestParseGeonamesRows:
    """Parsing of ``allCountries.txt`` lines."""

    def test_parses_a_row(self):
        rows = list(parse_geonames_rows([geonames_line() + "\n"]))

        assert rows == [
            {
                "country_code": "DE",
                "postal_code": "10115",
                "latitude": Decimal("52.532300"),
                "longitude": Decimal("13.384600"),
                "accuracy": 4,
                "place_name": "Berlin",
                "admin_name1": "Berlin",
                "admin_code1": "BE",
                "admin_name2": None,
                "admin_code2": None,
                "admin_name3": None,
                "admin_code3": None,
            }
        ]

    def test_postal_code_is_normalized(self):
        rows = list(parse_geonames_rows([geonames_line(country="gb", postal=" sw1a  1aa ")]))

        assert rows[0]["country_code"] == "GB"
        assert rows[0]["postal_code"] == "SW1A 1AA"

    @pytest.mark.parametrize(
        "line",
        [
            geonames_line(postal=""),
            geonames_line(country="DEU"),
            geonames_line(lat="north"),
            geonames_line(lon="181"),
            geonames_line(lat="nan"),
            "DE\t10115\tBerlin",
        ],
    )
    def test_unusable_rows_are_skipped(self, line):
        assert list(parse_geonames_rows([line])) == []

    def test_country_filter(self):
        lines = [geonames_line(), geonames_line(country="AT", postal="1010")]

        rows = list(parse_geonames_rows(lines, countries={"AT"}))

        assert [row["country_code"] for row in rows] == ["AT"]

    def test_missing_accuracy(self):
        rows = list(parse_geonames_rows([geonames_line(accuracy="")]))

        assert rows[0]["accuracy"] is None


@pytest.mark.integration
class TestImportPostalCentroids:
    """Loading parsed rows into the centroid table."""

    async def test_first_row_per_code_wins_and_existing_rows_are_kept(self, db):
        lines = [
            geonames_line(),
            geonames_line(lat="1.0", lon="1.0"),
            geonames_line(postal="20095", lat="53.5511", lon="9.9937"),
        ]

        first = await import_postal_centroids(db, parse_geonames_rows(lines), batch_size=2)
        assert (first.read, first.inserted, first.skipped) == (3, 2, 1)

        again = await import_postal_centroids(db, parse_geonames_rows(lines[:1]))
        assert (again.read, again.inserted, again.skipped) == (1, 0, 1)

        result = await db.execute(
            select(models.PostalCodeCentroid).where(
                models.PostalCodeCentroid.postal_code == "10115"
            )
        )
        assert float(result.scalar_one().latitude) == pytest.approx(52.5323)

    async def test_replace_empties_the_table_first(self, db):
        await import_postal_centroids(db, parse_geonames_rows([geonames_line()]))

        result = await import_postal_centroids(
            db,
            parse_geonames_rows([geonames_line(postal="20095")]),
            replace=True,
        )

        assert result.inserted == 1
        codes = await db.execute(select(models.PostalCodeCentroid.postal_code))
        assert codes.scalars().all() == ["20095"]


@pytest.mark.integration
class TestBackfillContactGeo:
    """Filling coordinates of contacts stored before the centroids existed."""

    async def add_contacts(self, db, team_id):
        db.add_all(
            [
                models.Contact(
                    team_id=team_id,
                    name="Berlin",
                    email="berlin@example.com",
                    postal_code="10115",
                    country="Germany",
                ),
                models.Contact(
                    team_id=team_id,
                    name="Nowhere",
                    email="nowhere@example.com",
                    postal_code="99999",
                    country="DE",
                ),
                models.Contact(team_id=team_id, name="No code", email="none@example.com"),
            ]
        )
        await db.commit()

    async def test_backfill(self, db, team):
        team_id = team.id
        await import_postal_centroids(db, parse_geonames_rows([geonames_line()]))
        await self.add_contacts(db, team_id)

        result = await backfill_contact_geo(db, batch_size=1)

        assert (result.scanned, result.updated, result.unresolved) == (2, 1, 1)
        berlin = (
            await db.execute(select(models.Contact).where(models.Contact.name == "Berlin"))
        ).scalar_one()
        assert berlin.country_code == "DE"
        assert float(berlin.latitude) == pytest.approx(52.5323)

    async def test_dry_run_changes_nothing(self, db, team):
        team_id = team.id
        await import_postal_centroids(db, parse_geonames_rows([geonames_line()]))
        await self.add_contacts(db, team_id)

        result = await backfill_contact_geo(db, dry_run=True)

        assert result.updated == 1
        coordinates = await db.execute(
            select(models.Contact.latitude).where(models.Contact.latitude.is_not(None))
        )
        assert coordinates.scalars().all() == []
