"""Resolve coordinates for contacts that have a postal code but no coordinates.

Usage:
    python scripts/backfill_contact_geo.py [--batch-size 200] [--dry-run]
"""

import argparse
import asyncio

from granthub.core.config import settings
from granthub.core.logging import logger
from granthub.core.postal_centroid_service import backfill_contact_geo
from granthub.db.session import Database


async def main(batch_size: int, dry_run: bool) -> None:
    """Run the backfill."""
    db = Database.from_settings(settings)
    try:
        async with db.session() as session:
            result = await backfill_contact_geo(session, batch_size=batch_size, dry_run=dry_run)
        logger.info(
            f"Backfill finished: scanned={result.scanned} updated={result.updated} "
            f"unresolved={result.unresolved} dry_run={dry_run}"
        )
    finally:
        await db.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Backfill contact coordinates")
    parser.add_argument("--batch-size", type=int, default=200)
    parser.add_argument("--dry-run", action="store_true")
    args = parser.parse_args()
    asyncio.run(main(args.batch_size, args.dry_run))
