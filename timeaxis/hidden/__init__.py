# Re-export hidden range components
from .intervals import (
    HiddenInterval,
    HiddenLookup,
    correct_time_for_hidden,
    get_accumulated_hidden_duration,
    get_hidden_duration_before,
    get_hidden_duration_before_start,
    get_hidden_duration_between,
    is_hidden,
    normalize,
    snap_away_from_hidden,
    step_over_hidden_dates,
)
from .projection import Conversion, TimeRange, to_screen, to_time
from .repeat import (
    HiddenDatesUpdate,
    build_hidden_dates,
    convert_hidden_options,
    materialize_repeating,
    update_hidden_dates,
)
