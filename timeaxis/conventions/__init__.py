from .types import Crossing, Granularity, Repeat
