"""Calendar-month helpers shared by the round services."""

from __future__ import annotations

import calendar
import re
from collections.abc import Iterable
from datetime import UTC, date, datetime, time, timedelta, tzinfo

from domain.errors import InvalidReferenceMonthError

_MONTH_VALUE_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def parse_reference_month(value: str) -> date:
    """Parse a ``YYYY-MM`` value into the first day of that month."""
    match = _MONTH_VALUE_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise InvalidReferenceMonthError(f"Invalid reference month: {value!r} (expected YYYY-MM)")
    year, month = int(match.group(1)), int(match.group(2))
    if month < 1 or month > 12 or year < 1:
        raise InvalidReferenceMonthError(f"Invalid reference month: {value!r}")
    return date(year, month, 1)


def format_month_value(month: date) -> str:
    return f"{month.year:04d}-{month.month:02d}"


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive values as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Storage representation: naive datetime in UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def month_key(moment: datetime, tz: tzinfo) -> date:
    """First day of the local calendar month containing ``moment``."""
    local = as_utc(moment).astimezone(tz)
    return date(local.year, local.month, 1)


def local_datetime(day: date, at: time, tz: tzinfo) -> datetime:
    """Wall-clock ``at`` on ``day`` in ``tz``, returned as aware UTC."""
    return datetime.combine(day, at, tzinfo=tz).astimezone(UTC)


def month_range(month: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Aware UTC [start, end) of the local calendar month."""
    start_day = date(month.year, month.month, 1)
    end_day = shift_month(start_day, 1)
    return local_datetime(start_day, time(0, 0), tz), local_datetime(end_day, time(0, 0), tz)


def shift_month(value: date, offset: int) -> date:
    """Move a date by whole months, clamping the day to the target month."""
    month_index = value.year * 12 + (value.month - 1) + offset
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def shift_datetime_months(value: datetime | None, offset: int, tz: tzinfo) -> datetime | None:
    """Shift an instant by whole months keeping its local wall-clock time."""
    if value is None:
        return None
    local = as_utc(value).astimezone(tz)
    shifted_day = shift_month(local.date(), offset)
    return local_datetime(shifted_day, local.time().replace(tzinfo=None), tz)


def month_diff(start: date, end: date) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)


def next_active_month(month: date, inactive_months: Iterable[int] = ()) -> date:
    """Next month after ``month`` that is not configured as inactive."""
    skipped = set(inactive_months)
    candidate = date(month.year, month.month, 1)
    for _ in range(24):
        candidate = shift_month(candidate, 1)
        if candidate.month not in skipped:
            return candidate
    return candidate


def last_day_of_month(month: date) -> date:
    return date(month.year, month.month, calendar.monthrange(month.year, month.month)[1])


def business_day(month: date, ordinal: int) -> date:
    """The ``ordinal``-th weekday (Mon-Fri) of the month, 1-based."""
    current = date(month.year, month.month, 1)
    seen = 0
    while True:
        if current.weekday() < 5:
            seen += 1
            if seen == ordinal:
                return current
        current += timedelta(days=1)


def format_local(moment: datetime, tz: tzinfo) -> str:
    """``dd/mm/YYYY HH:MM`` in the given zone."""
    local = as_utc(moment).astimezone(tz)
    return local.strftime("%d/%m/%Y %H:%M")


__all__ = [
    "as_utc",
    "business_day",
    "format_local",
    "format_month_value",
    "last_day_of_month",
    "local_datetime",
    "month_diff",
    "month_key",
    "month_range",
    "next_active_month",
    "parse_reference_month",
    "shift_datetime_months",
    "shift_month",
    "to_naive_utc",
]
