from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from daylog.domain import days
from daylog.domain.errors import ValidationError

LA = "America/Los_Angeles"


def test_rollover_at_five_pm_los_angeles() -> None:
    before = datetime(2024, 3, 10, 16, 59, tzinfo=ZoneInfo(LA))
    at = datetime(2024, 3, 10, 17, 0, tzinfo=ZoneInfo(LA))

    assert days.today(LA, 17, now=before) == date(2024, 3, 9)
    assert days.today(LA, 17, now=at) == date(2024, 3, 10)


@pytest.mark.parametrize("hour", [0, 1, 5, 12, 17, 23])
def test_day_advances_exactly_at_rollover_hour(hour: int) -> None:
    boundary = datetime(2024, 6, 15, hour, 0, tzinfo=ZoneInfo("Europe/Berlin"))
    just_before = boundary - timedelta(minutes=1)

    assert days.today("Europe/Berlin", hour, now=boundary) == date(2024, 6, 15)
    assert days.today("Europe/Berlin", hour, now=just_before) == date(2024, 6, 14)


def test_midnight_rollover_is_plain_calendar_date() -> None:
    late = datetime(2024, 3, 10, 23, 59, tzinfo=ZoneInfo(LA))
    early = datetime(2024, 3, 11, 0, 0, tzinfo=ZoneInfo(LA))

    assert days.today(LA, 0, now=late) == date(2024, 3, 10)
    assert days.today(LA, 0, now=early) == date(2024, 3, 11)


def test_instant_is_converted_into_the_configured_zone() -> None:
    instant = datetime(2024, 3, 11, 2, 0, tzinfo=timezone.utc)

    assert days.day_for(instant, LA, 0) == date(2024, 3, 10)
    assert days.day_for(instant, "Asia/Tokyo", 0) == date(2024, 3, 11)


def test_naive_instant_is_read_as_utc() -> None:
    assert days.day_for(datetime(2024, 3, 10, 0, 30), "UTC", 1) == date(2024, 3, 9)


def test_format_day_labels() -> None:
    now = datetime(2024, 3, 10, 18, 0, tzinfo=ZoneInfo(LA))

    assert days.format_day(date(2024, 3, 10), LA, 17, now=now) == "Today"
    assert days.format_day(date(2024, 3, 9), LA, 17, now=now) == "Yesterday"
    assert days.format_day(date(2024, 3, 8), LA, 17, now=now) == "Fri, Mar 8"


def test_days_ago_counts_from_rollover_aware_today() -> None:
    now = datetime(2024, 3, 10, 9, 0, tzinfo=ZoneInfo(LA))

    assert days.days_ago(2, LA, 17, now=now) == date(2024, 3, 7)


def test_unknown_timezone_is_rejected() -> None:
    with pytest.raises(ValidationError):
        days.today("Mars/Olympus_Mons", 0)


@pytest.mark.parametrize("hour", [-1, 24, "5", True])
def test_rollover_hour_must_be_an_hour(hour) -> None:
    with pytest.raises(ValidationError):
        days.validate_rollover_hour(hour)


def test_day_keys_round_trip_and_reject_garbage() -> None:
    assert days.parse_day(days.day_key(date(2024, 3, 10))) == date(2024, 3, 10)
    with pytest.raises(ValidationError):
        days.parse_day("10/03/2024")
