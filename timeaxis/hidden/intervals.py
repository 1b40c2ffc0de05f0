"""
Hidden interval arithmetic.

Hidden intervals are half-open ``[start, end)`` ranges in epoch milliseconds
that a time axis collapses: the stepper never lands inside one and duration
queries subtract them from the visible span.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Union

from timeaxis.conventions.types import Crossing
from timeaxis.utils.date import InstantLike, from_millis, to_millis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HiddenInterval:
    """A hidden ``[start, end)`` range in milliseconds."""

    start: int
    end: int

    @classmethod
    def from_bounds(cls, start: InstantLike, end: InstantLike) -> "HiddenInterval":
        """Build an interval from date-likes, failing with InvalidRangeError."""
        return cls(to_millis(start, "start"), to_millis(end, "end"))

    @property
    def duration(self) -> int:
        return self.end - self.start

    def contains(self, ms: int) -> bool:
        return self.start <= ms < self.end

    def as_datetimes(self):
        return from_millis(self.start), from_millis(self.end)


@dataclass(frozen=True)
class HiddenLookup:
    """
    Result of ``is_hidden``.

    When ``hidden`` is False, ``start``/``end`` describe the nearest interval
    at or before the instant (or the first interval if none precedes it),
    and are None for an empty collection.
    """

    hidden: bool
    start: Optional[int] = None
    end: Optional[int] = None


Instant = Union[datetime, int]


def _like(template, ms: int):
    """Return ``ms`` in the same representation as ``template``."""
    if isinstance(template, datetime):
        return from_millis(ms)
    return ms


def _range_bounds(time_range):
    if isinstance(time_range, (tuple, list)):
        start, end = time_range
    else:
        start, end = time_range.start, time_range.end
    return to_millis(start, "range start"), to_millis(end, "range end")


def _overlap(interval: HiddenInterval, start: int, end: int) -> int:
    return max(0, min(interval.end, end) - max(interval.start, start))


def normalize(intervals: Iterable[HiddenInterval]) -> List[HiddenInterval]:
    """
    Sort intervals by start and merge the ones that overlap or touch.

    The result is the minimal disjoint cover of the input; running it on an
    already normalized list returns an equal list.
    """
    merged: List[HiddenInterval] = []
    for interval in sorted(intervals, key=lambda iv: (iv.start, iv.end)):
        if merged and interval.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = HiddenInterval(last.start, max(last.end, interval.end))
        else:
            merged.append(interval)
    return merged


def is_hidden(time: InstantLike, intervals: Sequence[HiddenInterval]) -> HiddenLookup:
    """Find the interval containing ``time``, if any."""
    ms = to_millis(time)
    nearest: Optional[HiddenInterval] = None
    for interval in intervals:
        if interval.contains(ms):
            return HiddenLookup(True, interval.start, interval.end)
        if interval.start <= ms and (nearest is None or interval.start >= nearest.start):
            nearest = interval
    if nearest is None and intervals:
        nearest = min(intervals, key=lambda iv: iv.start)
    if nearest is None:
        return HiddenLookup(False)
    return HiddenLookup(False, nearest.start, nearest.end)


def snap_away_from_hidden(
    intervals: Sequence[HiddenInterval],
    time: Instant,
    direction: int,
    correction_enabled: bool = False,
) -> Instant:
    """
    Move ``time`` out of the hidden interval it falls in.

    Forward (``direction >= 0``) snaps to ``end + 1ms``, backward to
    ``start - 1ms``. With ``correction_enabled`` the distance already travelled
    inside the interval is carried over to the other side, and the snap is
    repeated while the result lands in another hidden interval.
    Visible instants are returned unchanged.
    """
    ms = to_millis(time)
    lookup = is_hidden(ms, intervals)
    if not lookup.hidden:
        return time

    while lookup.hidden:
        if direction < 0:
            carried = (lookup.end - ms) if correction_enabled else 0
            ms = lookup.start - carried - 1
        else:
            carried = (ms - lookup.start) if correction_enabled else 0
            ms = lookup.end + carried + 1
        if not correction_enabled:
            break
        lookup = is_hidden(ms, intervals)
    return _like(time, ms)


def step_over_hidden_dates(time_step, previous_time: Instant) -> None:
    """
    Push the stepper's current instant to the end of the hidden interval it
    landed in and record which calendar boundary the jump crossed.
    """
    if not time_step.hidden_dates:
        return

    current = to_millis(time_step.current)
    landed_in = None
    for interval in time_step.hidden_dates:
        if interval.contains(current):
            landed_in = interval
            break

    previous = to_millis(previous_time)
    if landed_in is None or current >= to_millis(time_step.end) or current == previous:
        return

    prev_value = from_millis(previous)
    new_value = from_millis(landed_in.end)
    if prev_value.year != new_value.year:
        time_step.crossing = Crossing.YEAR
    elif prev_value.month != new_value.month:
        time_step.crossing = Crossing.MONTH
    elif prev_value.day != new_value.day:
        time_step.crossing = Crossing.DAY
    logger.debug(
        "Stepped over hidden range %s -> %s (crossing=%s)",
        from_millis(current), new_value, time_step.crossing,
    )
    time_step.current = new_value


def get_hidden_duration_between(
    intervals: Sequence[HiddenInterval], start: InstantLike, end: InstantLike
) -> int:
    """Hidden milliseconds inside ``[start, end)``; each interval counts its overlap."""
    start_ms, end_ms = to_millis(start, "start"), to_millis(end, "end")
    return sum(_overlap(interval, start_ms, end_ms) for interval in intervals)


def get_hidden_duration_before_start(
    intervals: Sequence[HiddenInterval], start: InstantLike, end: InstantLike
) -> int:
    """
    Hidden milliseconds between an instant left of the visible range
    (``start``) and the range start (``end``).
    """
    start_ms, end_ms = to_millis(start, "start"), to_millis(end, "end")
    if end_ms <= start_ms:
        return 0
    return sum(_overlap(interval, start_ms, end_ms) for interval in intervals)


def get_hidden_duration_before(
    intervals: Sequence[HiddenInterval], time_range, time: InstantLike
) -> int:
    """Hidden milliseconds between the range start and ``time``, clipped to the range."""
    range_start, range_end = _range_bounds(time_range)
    ms = to_millis(time)
    return get_hidden_duration_between(intervals, range_start, min(ms, range_end))


def correct_time_for_hidden(
    intervals: Sequence[HiddenInterval], time_range, time: Instant
) -> Instant:
    """Translate a calendar instant into visible time by removing hidden time before it."""
    ms = to_millis(time)
    return _like(time, ms - get_hidden_duration_before(intervals, time_range, ms))


def get_accumulated_hidden_duration(
    intervals: Sequence[HiddenInterval], time_range, required_duration: float
) -> int:
    """
    Walk the intervals inside the range, accumulating visible time between
    them; return the hidden time passed before the visible total reaches
    ``required_duration``.
    """
    range_start, range_end = _range_bounds(time_range)
    hidden_duration = 0
    visible_duration = 0
    previous_point = range_start
    for interval in sorted(intervals, key=lambda iv: iv.start):
        if interval.start < range_start or interval.end >= range_end:
            continue
        visible_duration += interval.start - previous_point
        previous_point = interval.end
        if visible_duration >= required_duration:
            break
        hidden_duration += interval.duration
    return hidden_duration
