"""
Calendar-aware step iterator for time axis labels.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterator, Mapping, Optional, Union

from dateutil.relativedelta import relativedelta

from timeaxis.conventions.types import Crossing, Granularity
from timeaxis.hidden.intervals import snap_away_from_hidden, step_over_hidden_dates
from timeaxis.hidden.repeat import HiddenDatesOption, build_hidden_dates
from timeaxis.utils.date import (
    InstantLike,
    day_of_week,
    is_same_month,
    set_week,
    start_of_week,
    to_instant,
    week_of_year,
)

from .labels import DEFAULT_FORMAT, LabelFormat, LabelTier, render_label
from .scales import StepDescriptor, select_scale, snap
from .ticks import generate_ticks, ticks_frame

logger = logging.getLogger(__name__)


_OPTION_ALIASES = {
    "showMajorLabels": "show_major_labels",
    "showMajorBoundaryInjection": "show_major_labels",
    "show_major_boundary_injection": "show_major_labels",
    "showWeekScale": "allow_week_scale",
    "allowWeekScale": "allow_week_scale",
    "show_week_scale": "allow_week_scale",
}


@dataclass(frozen=True)
class TimeStepOptions:
    """Host options consumed by the stepper."""

    show_major_labels: bool = True
    allow_week_scale: bool = False

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]]) -> "TimeStepOptions":
        """Build options from a raw widget option mapping; unknown keys are ignored."""
        values = {}
        for key, value in (options or {}).items():
            name = _OPTION_ALIASES.get(key, key)
            if name in ("show_major_labels", "allow_week_scale") and value is not None:
                values[name] = bool(value)
        return cls(**values)


DEFAULT_OPTIONS = TimeStepOptions()


# Field resets applied by round_to_minor, tagged with the finest granularity
# they apply to. Listed coarse to fine: the year reset must run first.
_MINOR_RESETS = (
    (Granularity.YEAR, lambda dt, step: dt.replace(year=max(step * (dt.year // step), 1), month=1)),
    (Granularity.MONTH, lambda dt, step: dt.replace(day=1)),
    (Granularity.WEEKDAY, lambda dt, step: dt.replace(hour=0)),
    (Granularity.HOUR, lambda dt, step: dt.replace(minute=0)),
    (Granularity.MINUTE, lambda dt, step: dt.replace(second=0)),
    (Granularity.SECOND, lambda dt, step: dt.replace(microsecond=0)),
)

# Round down to the first minor value that is a multiple of the step.
_STEP_FLOORS = {
    Granularity.MILLISECOND: lambda dt, step: dt - timedelta(milliseconds=(dt.microsecond // 1000) % step),
    Granularity.SECOND: lambda dt, step: dt - timedelta(seconds=dt.second % step),
    Granularity.MINUTE: lambda dt, step: dt - timedelta(minutes=dt.minute % step),
    Granularity.HOUR: lambda dt, step: dt - timedelta(hours=dt.hour % step),
    Granularity.WEEKDAY: lambda dt, step: dt - timedelta(days=(dt.day - 1) % step),
    Granularity.DAY: lambda dt, step: dt - timedelta(days=(dt.day - 1) % step),
    Granularity.WEEK: lambda dt, step: dt - timedelta(weeks=day_of_week(dt) % step),
    Granularity.MONTH: lambda dt, step: dt - relativedelta(months=(dt.month - 1) % step),
    # year 1 is the floor of the calendar
    Granularity.YEAR: lambda dt, step: dt.replace(year=max(dt.year - dt.year % step, 1)),
}


def _reset_below_step(value: int, step: int) -> bool:
    return 0 < value < step


# After a multi-unit step, snap back to the start of the parent unit when the
# step overshot it (e.g. 4-hourly steps restart at 00:00 each day).
_MAJOR_RESETS = {
    Granularity.MILLISECOND: lambda dt, step: (
        dt.replace(microsecond=0) if _reset_below_step(dt.microsecond // 1000, step) else dt
    ),
    Granularity.SECOND: lambda dt, step: (
        dt.replace(second=0) if _reset_below_step(dt.second, step) else dt
    ),
    Granularity.MINUTE: lambda dt, step: (
        dt.replace(minute=0) if _reset_below_step(dt.minute, step) else dt
    ),
    Granularity.HOUR: lambda dt, step: (
        dt.replace(hour=0) if _reset_below_step(dt.hour, step) else dt
    ),
    Granularity.WEEKDAY: lambda dt, step: dt.replace(day=1) if dt.day < step + 1 else dt,
    Granularity.DAY: lambda dt, step: dt.replace(day=1) if dt.day < step + 1 else dt,
    # week numbering starts at 1
    Granularity.WEEK: lambda dt, step: set_week(dt, 1) if week_of_year(dt) < step else dt,
    Granularity.MONTH: lambda dt, step: dt.replace(month=1) if dt.month - 1 < step else dt,
    Granularity.YEAR: lambda dt, step: dt,
}

_FINER_THAN_DAY = frozenset({
    Granularity.MILLISECOND, Granularity.SECOND, Granularity.MINUTE, Granularity.HOUR,
})

# Granularities whose label is major right after a hidden range skip crossed
# the given calendar boundary.
_MAJOR_ON_CROSSING = {
    Crossing.YEAR: frozenset(Granularity),
    Crossing.MONTH: _FINER_THAN_DAY | {Granularity.WEEKDAY, Granularity.DAY, Granularity.WEEK},
    Crossing.DAY: _FINER_THAN_DAY,
}

_MAJOR_CHECKS = {
    Granularity.MILLISECOND: lambda dt: dt.microsecond // 1000 == 0,
    Granularity.SECOND: lambda dt: dt.second == 0,
    # first minute of every hour, not only of midnight
    Granularity.MINUTE: lambda dt: dt.minute == 0,
    Granularity.HOUR: lambda dt: dt.hour == 0,
    Granularity.WEEKDAY: lambda dt: dt.day == 1,
    Granularity.DAY: lambda dt: dt.day == 1,
    Granularity.WEEK: lambda dt: dt.day == 1,
    Granularity.MONTH: lambda dt: dt.month == 1,
    Granularity.YEAR: lambda dt: False,
}


class TimeStep:
    """
    Iterator over calendar-aligned instants between a start and an end date.

    If ``minimum_step`` (ms) is given, the step size is the smallest one
    larger than it; without a hint the scale is 1 day. A scale can also be
    set by hand, which disables autoscaling. Call ``first()``, then
    ``advance()`` while ``has_next()``; the current instant is available as
    ``current``. Hidden intervals are never landed in.
    """

    snap = staticmethod(snap)

    def __init__(
        self,
        start: InstantLike,
        end: InstantLike,
        minimum_step: Optional[float] = None,
        hidden_dates: HiddenDatesOption = None,
        options: Union[TimeStepOptions, Mapping[str, Any], None] = None,
        scale: Union[StepDescriptor, Granularity, str, None] = None,
        step: int = 1,
    ):
        if isinstance(options, TimeStepOptions):
            self.options = options
        else:
            self.options = TimeStepOptions.from_mapping(options)

        self.auto_scale = True
        self._scale = StepDescriptor(Granularity.DAY, 1)
        self.crossing: Optional[Crossing] = None
        self.format: LabelFormat = DEFAULT_FORMAT

        if scale is not None:
            self.set_scale(scale, step)
        self._hidden_option = hidden_dates
        self.set_range(start, end, minimum_step)
        self._current = self._start

    # -- accessors -----------------------------------------------------------

    @property
    def current(self) -> datetime:
        return self._current

    @current.setter
    def current(self, value: InstantLike) -> None:
        self._current = to_instant(value)

    @property
    def start(self) -> datetime:
        return self._start

    @property
    def end(self) -> datetime:
        return self._end

    @property
    def scale(self) -> StepDescriptor:
        return self._scale

    @property
    def granularity(self) -> Granularity:
        return self._scale.granularity

    @property
    def step(self) -> int:
        return self._scale.step

    # -- configuration -------------------------------------------------------

    def set_format(
        self,
        minor_labels: Optional[LabelTier] = None,
        major_labels: Optional[LabelTier] = None,
    ) -> None:
        """
        Set custom formatting for the minor and major labels. Each tier is a
        mapping keyed by granularity name (merged over the defaults) or a
        callable ``(instant, granularity, step) -> str``.
        """
        self.format = LabelFormat.with_overrides(minor_labels, major_labels)

    def set_hidden_dates(self, hidden_dates: HiddenDatesOption) -> None:
        """Replace the hidden intervals; repeating entries are expanded over the range."""
        self._hidden_option = hidden_dates
        self.hidden_dates = build_hidden_dates(hidden_dates, self._start, self._end)

    def set_range(
        self, start: InstantLike, end: InstantLike, minimum_step: Optional[float] = None
    ) -> None:
        """
        Set a new range. With autoscaling enabled the scale is re-selected
        from ``minimum_step``. Hidden intervals are rebuilt for the new
        range so repeating entries cover it.
        """
        self._start = to_instant(start, "start")
        self._end = to_instant(end, "end")
        if self.auto_scale:
            self.set_minimum_step(minimum_step)
        self.hidden_dates = build_hidden_dates(self._hidden_option, self._start, self._end)

    def set_scale(self, scale: Union[StepDescriptor, Granularity, str], step: int = 1) -> None:
        """
        Set a custom scale and disable autoscaling, e.g. ``set_scale('minute', 5)``
        gives minor steps of 5 minutes.
        """
        if isinstance(scale, StepDescriptor):
            self._scale = scale
        else:
            self._scale = StepDescriptor(scale, step)
        self.auto_scale = False

    def set_auto_scale(self, enable: bool) -> None:
        self.auto_scale = enable

    def set_minimum_step(self, minimum_step: Optional[float]) -> None:
        """Select the scale that best fits the minimum step (ms)."""
        descriptor = select_scale(minimum_step, self.options.allow_week_scale)
        if descriptor is not None:
            self._scale = descriptor

    # -- iteration -----------------------------------------------------------

    def first(self) -> None:
        """Set the iterator to the start date, rounded to the first minor value."""
        self._current = self._start
        self.round_to_minor()

    def round_to_minor(self) -> None:
        """
        Round the current date down to the first minor value. Must run once
        after the current date is set to the start.
        """
        granularity, step = self._scale.granularity, self._scale.step
        current = self._current
        if granularity is Granularity.WEEK:
            current = start_of_week(current)
        for finest, reset in _MINOR_RESETS:
            if granularity >= finest:
                current = reset(current, step)

        if step != 1:
            prior = current
            current = _STEP_FLOORS[granularity](current, step)
            if current != prior:
                current = snap_away_from_hidden(self.hidden_dates, current, -1, True)
        self._current = current

    def has_next(self) -> bool:
        """True while the current date has not passed the end date."""
        return self._current <= self._end

    def advance(self) -> None:
        """Do the next step."""
        prev = self._current
        granularity, step = self._scale.granularity, self._scale.step
        current = prev

        if granularity is Granularity.MILLISECOND:
            current += timedelta(milliseconds=step)
        elif granularity is Granularity.SECOND:
            current += timedelta(seconds=step)
        elif granularity is Granularity.MINUTE:
            current += timedelta(minutes=step)
        elif granularity is Granularity.HOUR:
            current += timedelta(hours=step)
            # keep hour labels on multiples of the step around daylight
            # saving switches (end of March / end of October)
            if current.month <= 6:
                current -= timedelta(hours=current.hour % step)
            elif current.hour % step != 0:
                current += timedelta(hours=step - current.hour % step)
        elif granularity in (Granularity.WEEKDAY, Granularity.DAY):
            current += timedelta(days=step)
        elif granularity is Granularity.WEEK:
            current = self._advance_week(current, step)
        elif granularity is Granularity.MONTH:
            current += relativedelta(months=step)
        elif granularity is Granularity.YEAR:
            current += relativedelta(years=step)

        if step != 1:
            current = _MAJOR_RESETS[granularity](current, step)

        # safety mechanism: if current time is still unchanged, move to the end
        if current == prev:
            logger.debug("Step %s made no progress at %s; jumping to end", self._scale, prev)
            current = self._end

        self._current = current
        self.crossing = None
        step_over_hidden_dates(self, prev)

    next = advance

    def _advance_week(self, current: datetime, step: int) -> datetime:
        if day_of_week(current) != 0:
            # a month break not on a week start; switch back to week cycles
            return start_of_week(current) + timedelta(weeks=step)
        if not self.options.show_major_labels:
            return current + timedelta(weeks=step)
        next_week = current + timedelta(weeks=1)
        if is_same_month(next_week, current):
            return current + timedelta(weeks=step)
        # inject a step at the first day of the month
        return (current + timedelta(weeks=step)).replace(day=1)

    def __iter__(self) -> Iterator[datetime]:
        self.first()
        while self.has_next():
            yield self._current
            self.advance()

    # -- classification and labels -------------------------------------------

    def is_major(self) -> bool:
        """
        Check if the current value is a major value (for example when the
        scale is day, a major value is each first day of the month).
        """
        granularity = self._scale.granularity
        if self.crossing is not None:
            return granularity in _MAJOR_ON_CROSSING[self.crossing]
        return _MAJOR_CHECKS[granularity](self._current)

    def minor_label(self, date: Optional[InstantLike] = None) -> str:
        """Minor axis label for ``date`` (defaults to the current date)."""
        date = self._current if date is None else to_instant(date)
        granularity = self._scale.granularity
        tier = self.format.minor_labels
        if callable(tier):
            return tier(date, granularity, self._scale.step)
        # the first of a month that is not a week start would clash with the week labels
        if granularity is Granularity.WEEK and date.day == 1 and day_of_week(date) != 0:
            return ""
        return render_label(tier, date, granularity, self._scale.step)

    def major_label(self, date: Optional[InstantLike] = None) -> str:
        """Major axis label for ``date`` (defaults to the current date)."""
        date = self._current if date is None else to_instant(date)
        return render_label(self.format.major_labels, date, self._scale.granularity, self._scale.step)

    def ticks(self):
        """Yield a Tick for every step from the first minor value to the end."""
        return generate_ticks(self)

    def ticks_frame(self):
        """All ticks as a pandas DataFrame."""
        return ticks_frame(self)
