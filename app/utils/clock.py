"""
clock.py - timestamp helpers
Single responsibility: produce UTC timestamps for record bookkeeping.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

_TICK = timedelta(microseconds=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(previous: Optional[datetime] = None) -> datetime:
    """Current UTC time, nudged forward so it is strictly after previous."""
    now = utc_now()
    if previous is not None and now <= previous:
        return previous + _TICK
    return now
