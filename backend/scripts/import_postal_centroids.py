"""Download the GeoNames postal code archive and import it as postal code centroids.

Usage:
    python scripts/import_postal_centroids.py [--url URL] [--file allCountries.txt]
        [--countries DE,AT,CH] [--batch-size 5000] [--replace]

Rows already present for a (country, postal code) pair are skipped, so the
import can be re-run safely.
"""

import argparse
import asyncio
import io
import tempfile
import zipfile
from pathlib import Path
from typing import Iterator, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from granthub.core.config import settings
from granthub.core.logging import logger
from granthub.core.postal_centroid_service import import_postal_centroids, parse_geonames_rows
from granthub.db.session import Database

EXTRACTED_NAME = "allCountries.txt"

script_logger = logger.with_context(component="import_postal_centroids")


@retry(
    retry=retry_if_exception_type(httpx.HTTPError),
    wait=wait_exponential(multiplier=1, min=2, max=30),
    stop=stop_after_attempt(5),
    reraise=True,
)
async def download_archive(url: str, destination: Path) -> Path:
    """Stream the archive at ``url`` to ``destination``."""
    script_logger.info(f"Downloading {url}")
    async with httpx.AsyncClient(timeout=httpx.Timeout(60.0), follow_redirects=True) as client:
        async with client.stream("GET", url) as response:
            response.raise_for_status()
            with destination.open("wb") as handle:
                async for chunk in response.aiter_bytes():
                    handle.write(chunk)
    script_logger.info(f"Downloaded {destination.stat().st_size} bytes")
    return destination


def iter_archive_lines(archive: Path, member: str = EXTRACTED_NAME) -> Iterator[str]:
    """Yield the lines of ``member`` inside the zip ``archive``."""
    with zipfile.ZipFile(archive) as zipped:
        if member not in zipped.namelist():
            raise FileNotFoundError(f"Could not find {member} in {archive}")
        with zipped.open(member) as raw:
            yield from io.TextIOWrapper(raw, encoding="utf-8")


def iter_file_lines(path: Path) -> Iterator[str]:
    """Yield the lines of an extracted GeoNames text file."""
    with path.open(encoding="utf-8") as handle:
        yield from handle


async def main(
    url: str,
    file: Optional[Path],
    countries: Optional[set[str]],
    batch_size: int,
    replace: bool,
) -> None:
    """Run the import."""
    db = Database.from_settings(settings)
    try:
        with tempfile.TemporaryDirectory() as tmp:
            if file is not None:
                lines = iter_file_lines(file)
            else:
                archive = await download_archive(url, Path(tmp) / "allCountries.zip")
                lines = iter_archive_lines(archive)

            async with db.session() as session:
                result = await import_postal_centroids(
                    session,
                    parse_geonames_rows(lines, countries=countries),
                    batch_size=batch_size,
                    replace=replace,
                )
        script_logger.info(
            f"Done: {result.inserted} inserted, {result.skipped} skipped, {result.read} read"
        )
    finally:
        await db.dispose()


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--url", default=settings.POSTAL_CENTROIDS_URL)
    parser.add_argument("--file", type=Path, help="Use an extracted allCountries.txt instead")
    parser.add_argument("--countries", help="Comma separated ISO-2 codes to import")
    parser.add_argument("--batch-size", type=int, default=5000)
    parser.add_argument("--replace", action="store_true", help="Empty the table first")
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    selected = (
        {code.strip().upper() for code in args.countries.split(",") if code.strip()}
        if args.countries
        else None
    )
    asyncio.run(main(args.url, args.file, selected, args.batch_size, args.replace))
