"""Datetime utility functions."""

from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

from freightbid.config import settings

# Local calendar for order IDs and API responses (from config)
LOCAL_TIMEZONE = ZoneInfo(settings.timezone)


def utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def to_local_timezone(dt: datetime | None) -> datetime | None:
    """Convert a datetime to the local timezone (from config).

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Datetime in local timezone, or None if input was None
    """
    if dt is None:
        return None
    # Ensure datetime is timezone-aware (assume UTC if naive)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(LOCAL_TIMEZONE)


def local_date(dt: datetime) -> date:
    """Calendar date of `dt` in the local timezone."""
    localized = to_local_timezone(dt)
    assert localized is not None
    return localized.date()
