"""Date helpers shared by models, profile attributes and the change log.

GrantHub stores timestamps as naive UTC (``TIMESTAMP WITHOUT TIME ZONE``).
"""

from datetime import date, datetime, timezone
from typing import Optional

from dateutil.parser import ParserError, parse

_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def utc_now_naive() -> datetime:
    """Current UTC time without tzinfo, the form every timestamp column holds."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed to be UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_iso_string(value: datetime) -> str:
    """Render a datetime as a millisecond-precision UTC ISO string.

    Example: ``2024-03-01T09:30:00.000Z``.
    """
    value = to_naive_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_datetime(value: object) -> Optional[datetime]:
    """Parse user input into a naive UTC datetime.

    Accepts datetime/date objects and free-form date strings that name a full
    calendar date. Fragments such as "5" or "March 2024" are rejected rather
    than completed from the current date. Returns None for anything else.
    """
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        # A year, month or day missing from the input comes out of each default differently
        parsed = parse(text, default=_FILL_DEFAULTS[0])
        if parse(text, default=_FILL_DEFAULTS[1]) != parsed:
            return None
    except (ParserError, ValueError, OverflowError):
        return None
    return to_naive_utc(parsed)
