"""
Exception types raised by the time axis engine.
"""


class InvalidRangeError(ValueError):
    """Start or end of a range (or of a hidden interval) is not a valid instant."""

    def __init__(self, field: str, value):
        self.field = field
        self.value = value
        super().__init__(f"Supplied {field} date is not valid: {value!r}")


class InvalidRepeatCadenceError(ValueError):
    """Repeat cadence of a hidden interval is not one of the recognised values."""

    def __init__(self, value):
        self.value = value
        super().__init__(
            f"Wrong repeat format, allowed are: daily, weekly, monthly, yearly. Given: {value!r}"
        )
