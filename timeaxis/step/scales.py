"""
Scale selection and snapping.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from timeaxis.conventions.types import Granularity
from timeaxis.utils.date import InstantLike, day_of_week, start_of_week, to_instant

logger = logging.getLogger(__name__)

STEP_MILLISECOND = 1
STEP_SECOND = 1000
STEP_MINUTE = 1000 * 60
STEP_HOUR = 1000 * 60 * 60
STEP_DAY = 1000 * 60 * 60 * 24
STEP_MONTH = STEP_DAY * 30
STEP_YEAR = STEP_MONTH * 12


@dataclass(frozen=True)
class StepDescriptor:
    """Granularity plus step multiplier; non-positive steps become 1."""

    granularity: Granularity
    step: int = 1

    def __post_init__(self):
        object.__setattr__(self, "granularity", Granularity.parse(self.granularity))
        step = int(self.step) if self.step is not None else 1
        object.__setattr__(self, "step", step if step > 0 else 1)


# Candidates from coarsest to finest with their nominal duration in ms.
AUTOSCALE_TABLE: List[Tuple[StepDescriptor, int]] = [
    (StepDescriptor(Granularity.YEAR, 1000), STEP_YEAR * 1000),
    (StepDescriptor(Granularity.YEAR, 500), STEP_YEAR * 500),
    (StepDescriptor(Granularity.YEAR, 100), STEP_YEAR * 100),
    (StepDescriptor(Granularity.YEAR, 50), STEP_YEAR * 50),
    (StepDescriptor(Granularity.YEAR, 10), STEP_YEAR * 10),
    (StepDescriptor(Granularity.YEAR, 5), STEP_YEAR * 5),
    (StepDescriptor(Granularity.YEAR, 1), STEP_YEAR),
    (StepDescriptor(Granularity.MONTH, 3), STEP_MONTH * 3),
    (StepDescriptor(Granularity.MONTH, 1), STEP_MONTH),
    (StepDescriptor(Granularity.WEEK, 1), STEP_DAY * 7),
    (StepDescriptor(Granularity.DAY, 2), STEP_DAY * 2),
    (StepDescriptor(Granularity.DAY, 1), STEP_DAY),
    (StepDescriptor(Granularity.WEEKDAY, 1), STEP_DAY // 2),
    (StepDescriptor(Granularity.HOUR, 4), STEP_HOUR * 4),
    (StepDescriptor(Granularity.HOUR, 1), STEP_HOUR),
    (StepDescriptor(Granularity.MINUTE, 15), STEP_MINUTE * 15),
    (StepDescriptor(Granularity.MINUTE, 10), STEP_MINUTE * 10),
    (StepDescriptor(Granularity.MINUTE, 5), STEP_MINUTE * 5),
    (StepDescriptor(Granularity.MINUTE, 1), STEP_MINUTE),
    (StepDescriptor(Granularity.SECOND, 15), STEP_SECOND * 15),
    (StepDescriptor(Granularity.SECOND, 10), STEP_SECOND * 10),
    (StepDescriptor(Granularity.SECOND, 5), STEP_SECOND * 5),
    (StepDescriptor(Granularity.SECOND, 1), STEP_SECOND),
    (StepDescriptor(Granularity.MILLISECOND, 200), STEP_MILLISECOND * 200),
    (StepDescriptor(Granularity.MILLISECOND, 100), STEP_MILLISECOND * 100),
    (StepDescriptor(Granularity.MILLISECOND, 50), STEP_MILLISECOND * 50),
    (StepDescriptor(Granularity.MILLISECOND, 10), STEP_MILLISECOND * 10),
    (StepDescriptor(Granularity.MILLISECOND, 5), STEP_MILLISECOND * 5),
    (StepDescriptor(Granularity.MILLISECOND, 1), STEP_MILLISECOND),
]


def select_scale(
    minimum_step: Optional[float], allow_week_scale: bool = False
) -> Optional[StepDescriptor]:
    """
    Find the smallest step that is larger than ``minimum_step`` (ms).

    Returns None when no hint is given or when even a 1000-year step is not
    larger than the hint.
    """
    if minimum_step is None:
        return None

    choice = None
    for descriptor, duration in AUTOSCALE_TABLE:
        if descriptor.granularity is Granularity.WEEK and not allow_week_scale:
            continue
        if duration > minimum_step:
            choice = descriptor
    logger.debug("Minimum step %s ms -> %s", minimum_step, choice)
    return choice


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _midnight(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def snap(date: InstantLike, scale, step: int = 1) -> datetime:
    """
    Snap a date to a rounded value. The snap intervals depend on the scale
    and step, e.g. day scale with step 1 snaps to the nearest half day.
    """
    granularity = Granularity.parse(scale)
    clone = to_instant(date)

    if granularity is Granularity.YEAR:
        year = clone.year + _round_half_up((clone.month - 1) / 12)
        year = max(_round_half_up(year / step) * step, 1)
        return datetime(year, 1, 1)

    if granularity is Granularity.MONTH:
        rounded = _midnight(clone).replace(day=1)
        if clone.day > 15:
            rounded += relativedelta(months=1)
        return rounded

    if granularity is Granularity.WEEK:
        rounded = _midnight(start_of_week(clone))
        if day_of_week(clone) > 2:
            rounded += timedelta(weeks=1)
        return rounded

    if granularity in (Granularity.DAY, Granularity.WEEKDAY):
        if granularity is Granularity.DAY:
            hours = 24 if step in (2, 5) else 12
        else:
            hours = 12 if step in (2, 5) else 6
        return _midnight(clone) + timedelta(hours=_round_half_up(clone.hour / hours) * hours)

    if granularity is Granularity.HOUR:
        minutes = 60 if step == 4 else 30
        base = clone.replace(minute=0, second=0, microsecond=0)
        return base + timedelta(minutes=_round_half_up(clone.minute / minutes) * minutes)

    if granularity is Granularity.MINUTE:
        if step in (10, 15):
            base = clone.replace(minute=0, second=0, microsecond=0)
            return base + timedelta(minutes=_round_half_up(clone.minute / 5) * 5)
        seconds = 60 if step == 5 else 30
        base = clone.replace(second=0, microsecond=0)
        return base + timedelta(seconds=_round_half_up(clone.second / seconds) * seconds)

    if granularity is Granularity.SECOND:
        millis = clone.microsecond // 1000
        if step in (10, 15):
            base = clone.replace(second=0, microsecond=0)
            return base + timedelta(seconds=_round_half_up(clone.second / 5) * 5)
        bucket = 1000 if step == 5 else 500
        base = clone.replace(microsecond=0)
        return base + timedelta(milliseconds=_round_half_up(millis / bucket) * bucket)

    # millisecond
    bucket = max(step // 2, 1) if step > 5 else 1
    millis = clone.microsecond // 1000
    base = clone.replace(microsecond=0)
    return base + timedelta(milliseconds=_round_half_up(millis / bucket) * bucket)
