"""Date manipulation utilities"""

import math
from datetime import datetime, timedelta, timezone
from typing import Callable

SECONDS_PER_DAY = 24 * 60 * 60

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching stored timestamps"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from start to end, rounding partial days up (negative if end is earlier)"""
    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


def lookback_start(now: datetime, days: int) -> datetime:
    """Start of a trailing window of the given length ending at now"""
    return now - timedelta(days=days)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed to be UTC already"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
