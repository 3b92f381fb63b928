"""
UTC datetime utilities for consistent timezone handling.

All datetime values in the system should be timezone-aware UTC.
Use these helpers instead of datetime.now() or datetime.utcnow().
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current UTC datetime with timezone info."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Use at repository/persistence boundaries to normalize datetimes
    (SQLite returns naive values even for timezone-aware columns).
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def parse_datetime_utc(value: str | datetime | None) -> datetime | None:
    """
    Parse an ISO-8601 string (or pass through a datetime) into UTC.

    Accepts a trailing "Z" and date-only values ("2025-01-10" means
    midnight UTC). Empty strings and None return None.

    Raises:
        ValueError: If the string is not a valid ISO-8601 date or datetime.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = value.strip()
    if not text:
        return None
    return ensure_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))


def to_iso(dt: datetime | None) -> str | None:
    """Serialize a datetime as ISO-8601 UTC (None stays None). Used for JSON step outputs."""
    normalized = ensure_utc(dt)
    return normalized.isoformat() if normalized is not None else None
