"""
Hidden-date option handling: conversion of host options into intervals and
expansion of repeating intervals across a visible span.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, List, Mapping, NamedTuple, Optional, Sequence, Union

from dateutil.relativedelta import relativedelta

from timeaxis.conventions.types import Repeat
from timeaxis.errors import InvalidRepeatCadenceError
from timeaxis.utils.date import day_of_week, from_millis, to_instant, to_millis

from .intervals import HiddenInterval, is_hidden, normalize

logger = logging.getLogger(__name__)

HiddenDatesOption = Union[Mapping[str, Any], Sequence[Any], HiddenInterval, None]

_CADENCE_STEP = {
    Repeat.DAILY: relativedelta(days=1),
    Repeat.WEEKLY: relativedelta(weeks=1),
    Repeat.MONTHLY: relativedelta(months=1),
    Repeat.YEARLY: relativedelta(years=1),
}


class HiddenDatesUpdate(NamedTuple):
    """Normalized hidden intervals plus the range pushed out of them."""

    hidden_dates: List[HiddenInterval]
    range_start: datetime
    range_end: datetime


def _as_list(hidden_dates: HiddenDatesOption) -> list:
    if hidden_dates is None:
        return []
    if isinstance(hidden_dates, (Mapping, HiddenInterval)):
        return [hidden_dates]
    return list(hidden_dates)


def _repeat_of(entry) -> Optional[Any]:
    if isinstance(entry, Mapping):
        return entry.get("repeat")
    return None


def _to_interval(entry) -> HiddenInterval:
    if isinstance(entry, HiddenInterval):
        return entry
    if isinstance(entry, Mapping):
        return HiddenInterval.from_bounds(entry.get("start"), entry.get("end"))
    start, end = entry
    return HiddenInterval.from_bounds(start, end)


def convert_hidden_options(hidden_dates: HiddenDatesOption) -> List[HiddenInterval]:
    """
    Convert the non-repeating entries of a hidden-dates option into intervals.

    Accepts a single entry or a list of entries; an entry is a mapping with
    ``start``/``end``, a ``(start, end)`` pair or a HiddenInterval.
    The result is sorted by start but not merged.
    """
    intervals = [
        _to_interval(entry)
        for entry in _as_list(hidden_dates)
        if _repeat_of(entry) is None
    ]
    intervals.sort(key=lambda iv: iv.start)
    return intervals


def _anchor(
    repeat: Repeat, start: datetime, end: datetime, span_start: datetime
):
    """Place the template one cadence unit before the span start."""
    if repeat is Repeat.DAILY:
        offset = 1 if start.weekday() != end.weekday() else 0
        anchored_start = datetime.combine(span_start.date(), start.time()) - timedelta(days=7)
        anchored_end = datetime.combine(span_start.date(), end.time()) - timedelta(days=7 - offset)
    elif repeat is Repeat.WEEKLY:
        # whole days only: a sub-day weekly template collapses to zero length
        day_offset = (end - start).days
        anchored_start = datetime.combine(span_start.date(), start.time())
        anchored_start += timedelta(days=day_of_week(start) - day_of_week(anchored_start))
        anchored_end = anchored_start + timedelta(days=day_offset)
        anchored_start -= timedelta(weeks=1)
        anchored_end -= timedelta(weeks=1)
    elif repeat is Repeat.MONTHLY:
        offset = 1 if start.month != end.month else 0
        here = relativedelta(year=span_start.year, month=span_start.month)
        anchored_start = start + here - relativedelta(months=1)
        anchored_end = end + here - relativedelta(months=1) + relativedelta(months=offset)
    else:
        offset = 1 if start.year != end.year else 0
        anchored_start = start + relativedelta(year=span_start.year) - relativedelta(years=1)
        anchored_end = (
            end + relativedelta(year=span_start.year) - relativedelta(years=1)
            + relativedelta(years=offset)
        )
    return anchored_start, anchored_end


def _run_until(repeat: Repeat, span_end: datetime) -> datetime:
    if repeat in (Repeat.DAILY, Repeat.WEEKLY):
        return span_end + timedelta(weeks=1)
    return span_end + _CADENCE_STEP[repeat]


def materialize_repeating(
    template: Mapping[str, Any],
    span_start,
    span_end,
    pixel_time: float = 0,
) -> List[HiddenInterval]:
    """
    Expand one repeating hidden interval into its occurrences around a span.

    Args:
        template: Mapping with ``start``, ``end`` and ``repeat``
            ('daily', 'weekly', 'monthly' or 'yearly')
        span_start: Start of the containing span
        span_end: End of the containing span
        pixel_time: Milliseconds per pixel; templates shorter than four
            pixels are not materialized

    Returns:
        Occurrences in generation order (not normalized). An unknown cadence
        yields no occurrences.
    """
    start = to_instant(template.get("start"), "start")
    end = to_instant(template.get("end"), "end")
    try:
        repeat = Repeat.parse(template.get("repeat"))
    except InvalidRepeatCadenceError as exc:
        logger.warning("%s", exc)
        return []

    if to_millis(end) - to_millis(start) < 4 * pixel_time:
        logger.debug("Hidden %s interval %s - %s narrower than 4px, skipped", repeat.value, start, end)
        return []

    span_start = to_instant(span_start, "range start")
    span_end = to_instant(span_end, "range end")

    occurrence_start, occurrence_end = _anchor(repeat, start, end, span_start)
    run_until = _run_until(repeat, span_end)
    step = _CADENCE_STEP[repeat]

    occurrences: List[HiddenInterval] = []
    while occurrence_start < run_until:
        occurrences.append(HiddenInterval(to_millis(occurrence_start), to_millis(occurrence_end)))
        occurrence_start += step
        occurrence_end += step
    occurrences.append(HiddenInterval(to_millis(occurrence_start), to_millis(occurrence_end)))
    return occurrences


def build_hidden_dates(
    hidden_dates: HiddenDatesOption,
    span_start,
    span_end,
    pixel_time: float = 0,
) -> List[HiddenInterval]:
    """Convert, expand repeats over the span, and normalize."""
    intervals = convert_hidden_options(hidden_dates)
    for entry in _as_list(hidden_dates):
        if _repeat_of(entry) is not None:
            intervals.extend(materialize_repeating(entry, span_start, span_end, pixel_time))
    return normalize(intervals)


def update_hidden_dates(
    hidden_dates: HiddenDatesOption,
    range_start,
    range_end,
    pixel_time: float = 0,
    start_to_front: bool = False,
    end_to_front: bool = False,
) -> HiddenDatesUpdate:
    """
    Rebuild the hidden intervals for a visible range and make sure neither
    range end sits inside one.

    A hidden range start/end moves past the interval (``end + 1ms``), or in
    front of it (``start - 1ms``) when the matching ``*_to_front`` flag is set.
    """
    range_start = to_instant(range_start, "range start")
    range_end = to_instant(range_end, "range end")
    intervals = build_hidden_dates(hidden_dates, range_start, range_end, pixel_time)

    start_hidden = is_hidden(range_start, intervals)
    end_hidden = is_hidden(range_end, intervals)
    if start_hidden.hidden:
        range_start = from_millis(
            start_hidden.start - 1 if start_to_front else start_hidden.end + 1
        )
    if end_hidden.hidden:
        range_end = from_millis(end_hidden.start - 1 if end_to_front else end_hidden.end + 1)

    return HiddenDatesUpdate(intervals, range_start, range_end)
