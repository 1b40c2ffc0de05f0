"""
Projection between instants and screen positions on an axis whose hidden
intervals are collapsed to zero width.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from timeaxis.utils.date import InstantLike, from_millis, to_millis

from .intervals import (
    HiddenInterval,
    correct_time_for_hidden,
    get_accumulated_hidden_duration,
    get_hidden_duration_before_start,
    get_hidden_duration_between,
    is_hidden,
)


@dataclass(frozen=True)
class Conversion:
    """Linear map ``x = (time - offset) * scale``."""

    offset: float
    scale: float


@dataclass(frozen=True)
class TimeRange:
    """Visible range in milliseconds."""

    start: int
    end: int

    @classmethod
    def of(cls, start: InstantLike, end: InstantLike) -> "TimeRange":
        return cls(to_millis(start, "range start"), to_millis(end, "range end"))

    @property
    def duration(self) -> int:
        return self.end - self.start

    def conversion(self, width: float, total_hidden: int = 0) -> Conversion:
        """Conversion for an axis ``width`` pixels wide."""
        visible = self.end - self.start - total_hidden
        if width != 0 and visible != 0:
            return Conversion(offset=self.start, scale=width / visible)
        return Conversion(offset=0, scale=1)


def to_screen(
    hidden_dates: Sequence[HiddenInterval],
    time_range: TimeRange,
    time: InstantLike,
    width: float,
) -> float:
    """Pixel position of ``time``; hidden instants map to the start of their interval."""
    ms = to_millis(time)
    if not hidden_dates:
        conversion = time_range.conversion(width)
        return (ms - conversion.offset) * conversion.scale

    lookup = is_hidden(ms, hidden_dates)
    if lookup.hidden:
        ms = lookup.start

    duration = get_hidden_duration_between(hidden_dates, time_range.start, time_range.end)
    conversion = time_range.conversion(width, duration)
    if ms < time_range.start:
        ms += get_hidden_duration_before_start(hidden_dates, ms, conversion.offset)
        return -(conversion.offset - ms) * conversion.scale
    if ms > time_range.end:
        ms = correct_time_for_hidden(hidden_dates, TimeRange(time_range.start, ms), ms)
        return (ms - conversion.offset) * conversion.scale
    ms = correct_time_for_hidden(hidden_dates, time_range, ms)
    return (ms - conversion.offset) * conversion.scale


def to_time(
    hidden_dates: Sequence[HiddenInterval],
    time_range: TimeRange,
    x: float,
    width: float,
) -> datetime:
    """Instant at pixel ``x``, skipping over collapsed hidden intervals."""
    if not hidden_dates:
        conversion = time_range.conversion(width)
        return from_millis(round(x / conversion.scale + conversion.offset))

    hidden_duration = get_hidden_duration_between(hidden_dates, time_range.start, time_range.end)
    total_duration = time_range.end - time_range.start - hidden_duration
    partial_duration = total_duration * x / width
    accumulated = get_accumulated_hidden_duration(hidden_dates, time_range, partial_duration)
    return from_millis(round(accumulated + partial_duration + time_range.start))
