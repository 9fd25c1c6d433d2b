"""Datetime utilities with consistent timezone handling.

Records reach the analytics core with timestamps in whatever shape the
owning store produced them: aware or naive datetimes, plain dates, or ISO
strings from a JSON snapshot. Everything goes through ``parse_timestamp``
first; a value that cannot be parsed is reported as ``None`` and the caller
treats the record as contributing nothing. Naive values are kept naive on
the records and read as wall-clock time in the configured timezone when
they are bucketed or measured.
"""

import logging
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def now_utc() -> datetime:
    """Return current datetime in UTC timezone.

    Returns:
        Current datetime with timezone=UTC
    """
    return datetime.now(timezone.utc)


def ensure_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure datetime is timezone-aware, assuming UTC if naive.

    Args:
        dt: Datetime to check/convert, or None

    Returns:
        Timezone-aware datetime, or None if input was None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=timezone.utc)

    return dt


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a record timestamp without attaching a timezone.

    Accepts datetimes, dates (taken as midnight) and ISO-8601 strings. Naive
    values stay naive; they are wall-clock times whose zone is only known to
    the caller. Returns None for missing or malformed values instead of
    raising.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        # fromisoformat() only learned the trailing Z in 3.11
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Ignoring malformed timestamp: {value!r}")
            return None
    logger.debug(f"Ignoring timestamp of unsupported type {type(value).__name__}")
    return None


def coerce_datetime(value: Any, tz: tzinfo = timezone.utc) -> Optional[datetime]:
    """Turn a record timestamp into an aware datetime.

    Naive datetimes and plain dates are read as wall-clock time in ``tz``.
    """
    dt = parse_timestamp(value)
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt


def get_timezone(name: Optional[str]) -> tzinfo:
    """Resolve an IANA timezone name, falling back to UTC."""
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{name}', using UTC")
        return timezone.utc


def local_day(value: Any, tz: tzinfo = timezone.utc) -> Optional[date]:
    """Calendar day of a record timestamp in the given timezone.

    Naive values already are wall-clock time in ``tz``; aware values are
    converted into it. Returns None when the timestamp is missing or
    malformed.
    """
    dt = coerce_datetime(value, tz)
    if dt is None:
        return None
    return dt.astimezone(tz).date()


def to_date(value: Any, tz: tzinfo = timezone.utc) -> Optional[date]:
    """Normalize a reference date argument (date, datetime or ISO string)."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    return local_day(value, tz)


def to_iso_string(dt: Optional[datetime]) -> Optional[str]:
    """Convert datetime to ISO string with timezone info.

    Args:
        dt: Datetime to convert, or None

    Returns:
        ISO format string with timezone, or None if input was None
    """
    if dt is None:
        return None

    aware_dt = ensure_aware(dt)
    return aware_dt.isoformat()
