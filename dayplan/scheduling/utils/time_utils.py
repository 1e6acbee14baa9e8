"""
Wall-clock helpers shared by the scheduler and the service layer.

The scheduler works on naive local datetimes. Anything timezone-aware is
converted with pytz at the edges.
"""

from datetime import date, datetime, time, timedelta
from typing import Union

import pytz


def parse_hhmm(value: Union[str, time]) -> int:
    """Return minutes from midnight for an "HH:MM" string or a time."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    hours, minutes = value.strip().split(":")[:2]
    hours, minutes = int(hours), int(minutes)
    if not (0 <= hours <= 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid HH:MM value: {value!r}")
    return hours * 60 + minutes


def format_hhmm(value: datetime) -> str:
    return value.strftime("%H:%M")


def get_timezone(name: str):
    return pytz.timezone(name or "UTC")


def to_local_naive(value: datetime, tz) -> datetime:
    """Aware datetimes are moved into ``tz``; naive ones are taken as already local."""
    if value.tzinfo is None:
        return value
    return value.astimezone(tz).replace(tzinfo=None)


def utc_naive_to_local(value: datetime, tz) -> datetime:
    return pytz.utc.localize(value).astimezone(tz).replace(tzinfo=None)


def local_naive_to_utc(value: datetime, tz) -> datetime:
    return tz.localize(value).astimezone(pytz.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime, tz=None) -> datetime:
    """
    Normalize an API datetime for storage. Aware values become naive UTC;
    naive values are read as wall-clock time in ``tz`` (UTC when omitted).
    """
    if value.tzinfo is None:
        return local_naive_to_utc(value, tz) if tz is not None else value
    return value.astimezone(pytz.utc).replace(tzinfo=None)


def localize(value: datetime, tz) -> datetime:
    return tz.localize(value)


def local_today(tz) -> date:
    return datetime.now(tz).date()


def day_start(day: date) -> datetime:
    return datetime.combine(day, time.min)


def minute_of_day(value: datetime, day: date) -> int:
    """Minutes from the start of ``day``; may fall outside 0..1440 for other days."""
    return int((value - day_start(day)) / timedelta(minutes=1))
