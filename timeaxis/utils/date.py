from datetime import date, datetime, timedelta
from typing import Union

import numpy as np
from dateutil import parser as date_parser
from pandas import NaT, Timestamp

from timeaxis.errors import InvalidRangeError

EPOCH = datetime(1970, 1, 1)
ONE_MS = timedelta(milliseconds=1)

InstantLike = Union[str, date, datetime, Timestamp, np.datetime64, int, float]


def _truncate_to_ms(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        # single implicit calendar: keep the wall-clock reading
        dt = dt.replace(tzinfo=None)
    return dt.replace(microsecond=dt.microsecond - dt.microsecond % 1000)


def to_instant(value: InstantLike, field: str = "date") -> datetime:
    """
    Convert a date-like into a naive datetime with millisecond resolution.
    Accepts datetimes, dates (midnight), pandas Timestamps, numpy datetime64,
    epoch milliseconds and date strings ('2014-03-21 00:00:00', '20140321', ...).
    """
    if value is NaT:
        raise InvalidRangeError(field, value)
    if isinstance(value, Timestamp):
        return _truncate_to_ms(value.to_pydatetime(warn=False))
    if isinstance(value, datetime):
        return _truncate_to_ms(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, np.datetime64):
        if np.isnat(value):
            raise InvalidRangeError(field, value)
        return to_instant(Timestamp(value), field)
    if isinstance(value, bool):
        raise InvalidRangeError(field, value)
    if isinstance(value, (int, float, np.integer, np.floating)):
        try:
            return from_millis(int(value))
        except (ValueError, OverflowError):
            raise InvalidRangeError(field, value) from None
    if isinstance(value, str):
        try:
            return _truncate_to_ms(date_parser.parse(value))
        except (ValueError, OverflowError):
            raise InvalidRangeError(field, value) from None
    raise InvalidRangeError(field, value)


def to_millis(value: InstantLike, field: str = "date") -> int:
    """Milliseconds since 1970-01-01 00:00 of the same wall-clock calendar."""
    if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
        return int(value)
    return (to_instant(value, field) - EPOCH) // ONE_MS


def from_millis(ms: int) -> datetime:
    return EPOCH + timedelta(milliseconds=int(ms))


def day_of_week(dt: Union[date, datetime]) -> int:
    """Day of the week with Sunday as 0."""
    return (dt.weekday() + 1) % 7


def start_of_week(dt: datetime) -> datetime:
    """
    Move to the Sunday of the week, keeping the time of day.
    """
    return dt - timedelta(days=day_of_week(dt))


def _week_start_date(d: date) -> date:
    return d - timedelta(days=day_of_week(d))


def week_of_year(dt: Union[date, datetime]) -> int:
    """
    Sunday-based week number; week 1 is the week that contains January 1st,
    so the last days of December may already belong to week 1.
    """
    d = dt.date() if isinstance(dt, datetime) else dt
    next_year_start = _week_start_date(date(d.year + 1, 1, 1))
    if d >= next_year_start:
        year_start = next_year_start
    else:
        year_start = _week_start_date(date(d.year, 1, 1))
    return (_week_start_date(d) - year_start).days // 7 + 1


def set_week(dt: datetime, week: int) -> datetime:
    """Move to the same weekday of the given week number."""
    return dt + timedelta(weeks=week - week_of_year(dt))


def is_same_month(a: datetime, b: datetime) -> bool:
    return a.year == b.year and a.month == b.month
