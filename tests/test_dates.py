"""Tests for calendar-month helpers."""

from __future__ import annotations

from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

import pytest

from domain.dates import (
    business_day,
    format_local,
    last_day_of_month,
    month_diff,
    month_key,
    month_range,
    next_active_month,
    parse_reference_month,
    shift_datetime_months,
    shift_month,
    to_naive_utc,
)
from domain.errors import InvalidReferenceMonthError

SAO_PAULO = ZoneInfo("America/Sao_Paulo")


def test_parse_reference_month() -> None:
    assert parse_reference_month("2025-03") == date(2025, 3, 1)
    assert parse_reference_month(" 2025-12 ") == date(2025, 12, 1)


@pytest.mark.parametrize("value", ["2025-13", "2025-00", "2025/03", "march", "2025-3", ""])
def test_parse_reference_month_rejects_malformed_values(value: str) -> None:
    with pytest.raises(InvalidReferenceMonthError):
        parse_reference_month(value)


def test_invalid_month_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_reference_month("nope")


def test_shift_month_clamps_the_day() -> None:
    assert shift_month(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert shift_month(date(2025, 12, 15), 1) == date(2026, 1, 15)
    assert shift_month(date(2025, 3, 1), -3) == date(2024, 12, 1)


def test_month_diff() -> None:
    assert month_diff(date(2025, 11, 1), date(2026, 2, 1)) == 3
    assert month_diff(date(2025, 3, 1), date(2025, 3, 1)) == 0


def test_next_active_month_skips_inactive_months() -> None:
    assert next_active_month(date(2025, 3, 1)) == date(2025, 4, 1)
    assert next_active_month(date(2025, 12, 1), inactive_months=(1,)) == date(2026, 2, 1)


def test_business_days_skip_weekends() -> None:
    # 2025-03-01 is a Saturday
    assert business_day(date(2025, 3, 1), 1) == date(2025, 3, 3)
    assert business_day(date(2025, 3, 1), 2) == date(2025, 3, 4)
    assert business_day(date(2025, 4, 1), 1) == date(2025, 4, 1)


def test_last_day_of_month_handles_leap_years() -> None:
    assert last_day_of_month(date(2024, 2, 1)) == date(2024, 2, 29)
    assert last_day_of_month(date(2025, 2, 1)) == date(2025, 2, 28)


def test_month_range_and_key_use_local_calendar() -> None:
    start, end = month_range(date(2025, 3, 1), SAO_PAULO)
    assert start == datetime(2025, 3, 1, 3, 0, tzinfo=UTC)
    assert end == datetime(2025, 4, 1, 3, 0, tzinfo=UTC)

    # 01:00 UTC on April 1st is still March 31st in Sao Paulo
    assert month_key(datetime(2025, 4, 1, 1, 0, tzinfo=UTC), SAO_PAULO) == date(2025, 3, 1)


def test_shift_datetime_months_keeps_local_wall_clock() -> None:
    shifted = shift_datetime_months(datetime(2025, 3, 3, 10, 0), 1, SAO_PAULO)
    assert shifted == datetime(2025, 4, 3, 10, 0, tzinfo=UTC)
    assert shift_datetime_months(None, 1, SAO_PAULO) is None


def test_to_naive_utc_converts_aware_and_keeps_naive() -> None:
    assert to_naive_utc(datetime(2025, 3, 3, 7, 0, tzinfo=SAO_PAULO)) == datetime(2025, 3, 3, 10, 0)
    assert to_naive_utc(datetime(2025, 3, 3, 10, 0)) == datetime(2025, 3, 3, 10, 0)
    assert to_naive_utc(None) is None


def test_format_local_uses_the_given_zone() -> None:
    moment = datetime(2025, 3, 3, 10, 0, tzinfo=UTC)
    assert format_local(moment, SAO_PAULO) == "03/03/2025 07:00"
    assert format_local(moment, UTC) == "03/03/2025 10:00"
