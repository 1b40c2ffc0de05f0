"""
Non-business days of a QuantLib calendar as hidden intervals, so an axis can
collapse weekends and holidays the same way it collapses configured ranges.
"""

from datetime import datetime, timedelta
from typing import List, Union

import QuantLib as ql

from timeaxis.hidden.intervals import HiddenInterval, normalize
from timeaxis.utils.date import InstantLike, to_instant, to_millis

# Calendar factories by name
QL_CALENDARS = {
    "TARGET": ql.TARGET,
    "EUR": ql.TARGET,
    "WEEKEND": ql.WeekendsOnly,
}


def ql_calendar(name: str) -> ql.Calendar:
    """QuantLib calendar for a registered name (case-insensitive)."""
    factory = QL_CALENDARS.get(str(name).upper())
    if factory is None:
        raise ValueError(f"Unknown calendar: {name!r}. Available: {sorted(QL_CALENDARS)}")
    return factory()


def business_day_gaps(
    calendar: Union[ql.Calendar, str], start: InstantLike, end: InstantLike
) -> List[HiddenInterval]:
    """
    Hidden intervals covering every non-business day touched by
    ``[start, end]``, merged into contiguous blocks (a weekend becomes one
    Saturday-to-Monday interval).

    Args:
        calendar: QuantLib calendar or a name known to ``ql_calendar``
        start: First day to inspect
        end: Last day to inspect

    Returns:
        Normalized intervals, ready to pass as ``hidden_dates``.
    """
    if not isinstance(calendar, ql.Calendar):
        calendar = ql_calendar(calendar)

    first = to_instant(start, "start").date()
    last = to_instant(end, "end").date()
    day = ql.Date(first.day, first.month, first.year)
    stop = ql.Date(last.day, last.month, last.year)

    gaps = []
    while day <= stop:
        if not calendar.isBusinessDay(day):
            closed = datetime(day.year(), day.month(), day.dayOfMonth())
            gaps.append(HiddenInterval(to_millis(closed), to_millis(closed + timedelta(days=1))))
        day += 1
    return normalize(gaps)
