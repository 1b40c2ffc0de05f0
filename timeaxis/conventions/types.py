"""
Basic types and enums used across the time axis engine.
"""

from enum import Enum

from timeaxis.errors import InvalidRepeatCadenceError


class Granularity(Enum):
    """Calendar granularities, ordered from finest to coarsest."""

    MILLISECOND = "millisecond"
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    WEEKDAY = "weekday"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def rank(self) -> int:
        return _GRANULARITY_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, Granularity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Granularity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Granularity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Granularity):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value) -> "Granularity":
        """Accept a Granularity or its lowercase name ('day', 'Hour', ...)."""
        if isinstance(value, Granularity):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown scale: {value!r}. Available: {[g.value for g in cls]}"
            ) from None


_GRANULARITY_ORDER = list(Granularity)


class Repeat(Enum):
    """Repeat cadences for hidden intervals."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value) -> "Repeat":
        if isinstance(value, Repeat):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidRepeatCadenceError(value) from None


class Crossing(Enum):
    """Calendar boundary crossed by the last step when it skipped a hidden range."""

    YEAR = "YEAR"
    MONTH = "MONTH"
    DAY = "DAY"
