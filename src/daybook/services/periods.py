"""Calendar-aligned aggregation periods."""

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterator, Optional, Union

logger = logging.getLogger(__name__)

# Unknown periods fall back to this many days before the reference date
FALLBACK_WINDOW_DAYS = 7


class Period(Enum):
    """Time frames for analytics queries"""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar days."""
    start: date
    end: date

    def contains(self, day: Optional[date]) -> bool:
        return day is not None and self.start <= day <= self.end

    def days(self) -> Iterator[date]:
        """Each calendar day in the range, ascending."""
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def __len__(self) -> int:
        return max((self.end - self.start).days + 1, 0)


def parse_period(value: Union[Period, str, None]) -> Optional[Period]:
    """Return the matching Period, or None for anything unrecognized."""
    if isinstance(value, Period):
        return value
    if isinstance(value, str):
        try:
            return Period(value.strip().lower())
        except ValueError:
            return None
    return None


def resolve_range(period: Union[Period, str, None], reference: date) -> DateRange:
    """Resolve a period to the calendar days it covers around ``reference``.

    Weeks run Monday to Sunday. Periods outside the enumerated set resolve to
    a trailing window ending on the reference day instead of failing.
    """
    resolved = parse_period(period)

    if resolved == Period.DAY:
        return DateRange(reference, reference)
    elif resolved == Period.WEEK:
        start = reference - timedelta(days=reference.weekday())
        return DateRange(start, start + timedelta(days=6))
    elif resolved == Period.MONTH:
        last_day = calendar.monthrange(reference.year, reference.month)[1]
        return DateRange(reference.replace(day=1), reference.replace(day=last_day))
    elif resolved == Period.YEAR:
        return DateRange(date(reference.year, 1, 1), date(reference.year, 12, 31))

    logger.warning(f"Unknown period {period!r}; using trailing {FALLBACK_WINDOW_DAYS}-day window")
    return DateRange(reference - timedelta(days=FALLBACK_WINDOW_DAYS), reference)


def trailing_range(end: date, days: int) -> DateRange:
    """The ``days`` calendar days ending on ``end`` (inclusive)."""
    return DateRange(end - timedelta(days=max(days, 1) - 1), end)
