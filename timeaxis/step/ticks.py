"""
Tick records produced by walking a stepper from start to end.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Iterator

import pandas as pd

TICK_COLUMNS = ["instant", "is_major", "minor_label", "major_label"]


@dataclass
class Tick:
    """One axis position with its classification and labels."""

    instant: datetime
    is_major: bool
    minor_label: str
    major_label: str


def generate_ticks(time_step) -> Iterator[Tick]:
    """Restart ``time_step`` at its first minor value and yield every tick."""
    time_step.first()
    while time_step.has_next():
        yield Tick(
            instant=time_step.current,
            is_major=time_step.is_major(),
            minor_label=time_step.minor_label(),
            major_label=time_step.major_label(),
        )
        time_step.advance()


def ticks_frame(time_step) -> pd.DataFrame:
    """Ticks of ``time_step`` as a DataFrame with one row per tick."""
    rows = [asdict(tick) for tick in generate_ticks(time_step)]
    return pd.DataFrame(rows, columns=TICK_COLUMNS)
