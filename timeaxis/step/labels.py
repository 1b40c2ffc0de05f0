"""
Label templates for the minor and major axis labels.

Templates are ``str.format`` strings receiving ``dt`` (the instant), ``ms``
(its milliseconds) and ``week`` (Sunday-based week number). A label tier can
also be a callable ``(instant, granularity, step) -> str``.
"""

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Union

from timeaxis.conventions.types import Granularity
from timeaxis.utils.date import week_of_year

LabelFormatter = Callable[[datetime, Granularity, int], str]
LabelTier = Union[Mapping[str, str], LabelFormatter]

MINOR_LABELS = MappingProxyType({
    "millisecond": "{ms:03d}",
    "second": "{dt.second}",
    "minute": "{dt:%H:%M}",
    "hour": "{dt:%H:%M}",
    "weekday": "{dt:%a} {dt.day}",
    "day": "{dt.day}",
    "week": "{week}",
    "month": "{dt:%b}",
    "year": "{dt:%Y}",
})

MAJOR_LABELS = MappingProxyType({
    "millisecond": "{dt:%H:%M:%S}",
    "second": "{dt.day} {dt:%B %H:%M}",
    "minute": "{dt:%a} {dt.day} {dt:%B}",
    "hour": "{dt:%a} {dt.day} {dt:%B}",
    "weekday": "{dt:%B %Y}",
    "day": "{dt:%B %Y}",
    "week": "{dt:%B %Y}",
    "month": "{dt:%Y}",
    "year": "",
})


def merge_tier(defaults: Mapping[str, str], overrides: Optional[LabelTier]) -> LabelTier:
    """Overlay per-granularity overrides on a copy of the defaults."""
    if overrides is None:
        return defaults
    if callable(overrides):
        return overrides
    merged = dict(defaults)
    for key, template in overrides.items():
        merged[Granularity.parse(key).value] = template
    return MappingProxyType(merged)


@dataclass(frozen=True)
class LabelFormat:
    """Minor and major label tiers owned by one stepper."""

    minor_labels: LabelTier = field(default_factory=lambda: MINOR_LABELS)
    major_labels: LabelTier = field(default_factory=lambda: MAJOR_LABELS)

    @classmethod
    def with_overrides(
        cls,
        minor_labels: Optional[LabelTier] = None,
        major_labels: Optional[LabelTier] = None,
    ) -> "LabelFormat":
        """Build a format from the defaults with the given tiers merged in."""
        return cls(
            minor_labels=merge_tier(MINOR_LABELS, minor_labels),
            major_labels=merge_tier(MAJOR_LABELS, major_labels),
        )


DEFAULT_FORMAT = LabelFormat()


def render_label(tier: LabelTier, instant: datetime, granularity: Granularity, step: int) -> str:
    """Format ``instant`` with the tier's template for ``granularity``."""
    if callable(tier):
        return tier(instant, granularity, step)
    template = tier.get(granularity.value)
    if not template:
        return ""
    return template.format(dt=instant, ms=instant.microsecond // 1000, week=week_of_year(instant))
