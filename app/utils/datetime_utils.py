"""
Date and datetime helpers.
- Store and compute in UTC in DB.
- API responses expose datetimes in the configured display timezone (settings.TZ).
- Leave durations are counted in business days on calendar dates.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from app.core.config import settings

UTC = timezone.utc

# Monday=0 ... Saturday=5, Sunday=6
WEEKEND_DAYS = frozenset({5, 6})


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware)."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def iso_local(dt: Optional[datetime]) -> Optional[str]:
    """Serialize as ISO-8601 in the display timezone. Naive values are treated as UTC."""
    if dt is None:
        return None
    return ensure_utc(dt).astimezone(ZoneInfo(settings.TZ)).isoformat()


def normalize_date(value: Union[date, datetime]) -> date:
    """Drop any time-of-day component so day counting is not shifted by it."""
    if isinstance(value, datetime):
        return value.date()
    return value


def is_business_day(day: date) -> bool:
    return day.weekday() not in WEEKEND_DAYS


def count_business_days(start: Union[date, datetime], end: Union[date, datetime]) -> int:
    """
    Count business days between start and end, both inclusive.

    Saturdays and Sundays are excluded; public holidays are not considered.
    Returns 0 when start is after end (callers validate the range first).
    """
    current = normalize_date(start)
    last = normalize_date(end)
    days = 0
    while current <= last:
        if is_business_day(current):
            days += 1
        current += timedelta(days=1)
    return days


def start_of_year(today: Optional[date] = None) -> date:
    """January 1st of the current (or given) year; leave balances reset annually."""
    today = today or date.today()
    return date(today.year, 1, 1)
