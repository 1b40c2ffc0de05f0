"""Calendar-aware time axis stepping.

This package selects a human-friendly scale for a time span, iterates
calendar-aligned instants across it while skipping hidden ranges, and
classifies and labels each instant for a timeline axis.

Key modules:
- step: Scale selection, the TimeStep iterator, labels and ticks
- hidden: Hidden interval normalization, skipping and duration queries
- conventions: Granularity/repeat enums and business calendars
- utils: Instant coercion and calendar helpers
"""

from .conventions.types import Crossing, Granularity, Repeat
from .errors import InvalidRangeError, InvalidRepeatCadenceError
from .hidden import HiddenInterval, TimeRange
from .step import LabelFormat, StepDescriptor, Tick, TimeStep, TimeStepOptions

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "Crossing",
    "Granularity",
    "Repeat",
    "InvalidRangeError",
    "InvalidRepeatCadenceError",
    "HiddenInterval",
    "TimeRange",
    "LabelFormat",
    "StepDescriptor",
    "Tick",
    "TimeStep",
    "TimeStepOptions",
]
