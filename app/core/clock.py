"""UTC time helpers.

SQLite hands back naive datetimes even for timezone-aware columns, so every
comparison against "now" goes through as_utc().
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC.

    Naive values are assumed to already be UTC (that is how they are written).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
