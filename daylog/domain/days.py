"""Day boundary arithmetic.

A day identifier is a plain ``datetime.date``. The current day for a user is
derived from the wall clock in their timezone, shifted back by one day while
the local hour is still before their rollover hour.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ValidationError


@lru_cache(maxsize=64)
def resolve_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        raise ValidationError(f"Unknown timezone: {name!r}") from exc


def validate_rollover_hour(hour: int) -> int:
    if isinstance(hour, bool) or not isinstance(hour, int) or not 0 <= hour <= 23:
        raise ValidationError(f"Rollover hour must be between 0 and 23, got {hour!r}")
    return hour


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def day_for(instant: datetime, tz_name: str, rollover_hour: int) -> date:
    """Return the day an instant belongs to for the given configuration."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    local = instant.astimezone(resolve_timezone(tz_name))
    if local.hour < rollover_hour:
        return local.date() - timedelta(days=1)
    return local.date()


def today(tz_name: str, rollover_hour: int, now: datetime | None = None) -> date:
    return day_for(now or utcnow(), tz_name, rollover_hour)


def shift_day(day: date, days: int) -> date:
    return day + timedelta(days=days)


def days_ago(n: int, tz_name: str, rollover_hour: int, now: datetime | None = None) -> date:
    return shift_day(today(tz_name, rollover_hour, now), -n)


def format_day(
    day: date,
    tz_name: str,
    rollover_hour: int,
    now: datetime | None = None,
) -> str:
    current = today(tz_name, rollover_hour, now)
    if day == current:
        return "Today"
    if day == shift_day(current, -1):
        return "Yesterday"
    return f"{day:%a}, {day:%b} {day.day}"


def day_key(day: date) -> str:
    return day.isoformat()


def parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid day identifier: {value!r}") from exc
