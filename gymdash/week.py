# gymdash/week.py
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Tuple
from zoneinfo import ZoneInfo

from .config import TZ_NAME

TZ = ZoneInfo(TZ_NAME)


def today() -> date:
    """Calendar date at the gym, not on the server."""
    return datetime.now(TZ).date()


def parse_date(value) -> date:
    """
    Accepts a date, a datetime, or an ISO string ('2025-01-06' or
    '2025-01-06T00:00:00Z') and returns the calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise TypeError(f"Unrecognised date: {value!r}")


def week_range(day: date) -> Tuple[date, date]:
    """Monday..Sunday of the week containing `day`."""
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def week_start(day: date) -> date:
    return week_range(day)[0]
