"""Date manipulation utilities"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite drops the offset)"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def month_bounds(day: date) -> Tuple[datetime, datetime]:
    """Half-open [first of month, first of next month) in UTC"""
    start = datetime.combine(day.replace(day=1), time.min, tzinfo=timezone.utc)
    next_month = (start + timedelta(days=32)).replace(day=1)
    return start, next_month
