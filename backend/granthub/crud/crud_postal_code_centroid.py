"""CRUD operations for postal code centroids."""

from typing import Any, Iterable, Optional

from sqlalchemy import select, tuple_
from sqlalchemy.ext.asyncio import AsyncSession

from granthub.models.postal_code_centroid import PostalCodeCentroid


class CRUDPostalCodeCentroid:
    """Read access and bulk import for the centroid reference table."""

    async def get_by_code(
        self, db: AsyncSession, *, country_code: str, postal_code: str
    ) -> Optional[PostalCodeCentroid]:
        """Get the centroid of a normalized (country, postal code) pair."""
        stmt = select(PostalCodeCentroid).where(
            PostalCodeCentroid.country_code == country_code,
            PostalCodeCentroid.postal_code == postal_code,
        )
        result = await db.execute(stmt.limit(1))
        return result.scalars().first()

    async def get_existing_keys(
        self, db: AsyncSession, keys: Iterable[tuple[str, str]]
    ) -> set[tuple[str, str]]:
        """Subset of (country_code, postal_code) keys already imported."""
        keys = list(keys)
        if not keys:
            return set()
        stmt = select(PostalCodeCentroid.country_code, PostalCodeCentroid.postal_code).where(
            tuple_(PostalCodeCentroid.country_code, PostalCodeCentroid.postal_code).in_(keys)
        )
        result = await db.execute(stmt)
        return {(country, postal) for country, postal in result.all()}

    def add_many(self, db: AsyncSession, rows: Iterable[dict[str, Any]]) -> None:
        """Stage new centroid rows on the session."""
        db.add_all([PostalCodeCentroid(**row) for row in rows])


postal_code_centroid = CRUDPostalCodeCentroid()
