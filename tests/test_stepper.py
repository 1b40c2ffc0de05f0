from datetime import datetime, timedelta

import pytest

import timeaxis.step.stepper as stepper_module
from timeaxis import Crossing, Granularity, InvalidRangeError, TimeStep, TimeStepOptions
from timeaxis.hidden import HiddenInterval, step_over_hidden_dates

START = datetime(2017, 4, 3)
END = datetime(2017, 4, 5)


def _walk(time_step):
    return list(time_step)


def test_default_scale_is_one_day():
    ts = TimeStep(START, END)
    assert ts.auto_scale
    assert ts.granularity is Granularity.DAY
    assert ts.step == 1


@pytest.mark.parametrize(
    "minimum_step, granularity, step",
    [
        (999, Granularity.SECOND, 1),
        (1001, Granularity.SECOND, 5),
        (2000, Granularity.SECOND, 5),
        (5001, Granularity.SECOND, 10),
    ],
)
def test_minimum_step_selects_scale(minimum_step, granularity, step):
    ts = TimeStep(START, END, minimum_step)
    assert (ts.granularity, ts.step) == (granularity, step)


def test_explicit_scale_disables_autoscale():
    ts = TimeStep(START, END, minimum_step=1001, scale="day")
    assert not ts.auto_scale
    assert ts.granularity is Granularity.DAY

    ts.set_range(START, END, minimum_step=1001)
    assert ts.granularity is Granularity.DAY

    ts.set_auto_scale(True)
    ts.set_range(START, END, minimum_step=1001)
    assert (ts.granularity, ts.step) == (Granularity.SECOND, 5)


def test_non_positive_step_becomes_one():
    ts = TimeStep(START, END, scale="minute", step=0)
    assert ts.step == 1
    ts.set_scale("minute", -3)
    assert ts.step == 1


@pytest.mark.parametrize("start", ["lorem ipsum", None])
def test_invalid_range_raises(start):
    with pytest.raises(InvalidRangeError, match="start"):
        TimeStep(start, END)


def test_invalid_end_raises():
    with pytest.raises(InvalidRangeError, match="end"):
        TimeStep(START, "not a date")


@pytest.mark.parametrize(
    "scale, first, second",
    [
        ("year", datetime(2017, 1, 1), datetime(2018, 1, 1)),
        ("month", datetime(2017, 4, 1), datetime(2017, 5, 1)),
        ("week", datetime(2017, 4, 2), datetime(2017, 4, 9)),
        ("day", datetime(2017, 4, 3), datetime(2017, 4, 4)),
        ("hour", datetime(2017, 4, 3), datetime(2017, 4, 3, 1)),
        ("minute", datetime(2017, 4, 3), datetime(2017, 4, 3, 0, 1)),
        ("second", datetime(2017, 4, 3), datetime(2017, 4, 3, 0, 0, 1)),
        ("millisecond", datetime(2017, 4, 3), datetime(2017, 4, 3, 0, 0, 0, 1000)),
    ],
)
def test_first_and_advance(scale, first, second):
    ts = TimeStep(START, END, scale=scale)
    ts.first()
    assert ts.current == first
    ts.advance()
    assert ts.current == second


def test_next_is_advance():
    ts = TimeStep(START, END)
    ts.first()
    ts.next()
    assert ts.current == datetime(2017, 4, 4)


def test_iteration_includes_end():
    assert _walk(TimeStep(START, END)) == [
        datetime(2017, 4, 3),
        datetime(2017, 4, 4),
        datetime(2017, 4, 5),
    ]


def test_hour_steps_restart_each_day():
    ts = TimeStep(datetime(2017, 4, 3, 5), datetime(2017, 4, 4, 2), scale="hour", step=4)
    assert _walk(ts) == [
        datetime(2017, 4, 3, 4),
        datetime(2017, 4, 3, 8),
        datetime(2017, 4, 3, 12),
        datetime(2017, 4, 3, 16),
        datetime(2017, 4, 3, 20),
        datetime(2017, 4, 4),
    ]


def test_day_steps_restart_at_month_start():
    ts = TimeStep(datetime(2017, 1, 27), datetime(2017, 2, 6), scale="day", step=2)
    assert _walk(ts) == [
        datetime(2017, 1, 27),
        datetime(2017, 1, 29),
        datetime(2017, 1, 31),
        datetime(2017, 2, 1),
        datetime(2017, 2, 3),
        datetime(2017, 2, 5),
    ]


def test_quarterly_steps_align_to_multiples():
    ts = TimeStep(datetime(2017, 5, 15), datetime(2018, 3, 1), scale="month", step=3)
    assert _walk(ts) == [
        datetime(2017, 4, 1),
        datetime(2017, 7, 1),
        datetime(2017, 10, 1),
        datetime(2018, 1, 1),
    ]


def test_week_scale_injects_month_start():
    ts = TimeStep(datetime(2017, 4, 20), datetime(2017, 5, 20), scale="week")
    assert _walk(ts) == [
        datetime(2017, 4, 16),
        datetime(2017, 4, 23),
        datetime(2017, 4, 30),
        datetime(2017, 5, 1),
        datetime(2017, 5, 7),
        datetime(2017, 5, 14),
    ]


def test_week_scale_without_major_labels_skips_injection():
    ts = TimeStep(
        datetime(2017, 4, 20),
        datetime(2017, 5, 20),
        options={"showMajorLabels": False},
        scale="week",
    )
    assert _walk(ts) == [
        datetime(2017, 4, 16),
        datetime(2017, 4, 23),
        datetime(2017, 4, 30),
        datetime(2017, 5, 7),
        datetime(2017, 5, 14),
    ]


@pytest.mark.parametrize("minimum_step", [60_000 * 4, 3_600_000, 3_600_000 * 3, 86_400_000 / 3, 86_400_000])
def test_iteration_is_increasing_and_terminates(minimum_step):
    values = _walk(TimeStep(START, END, minimum_step))
    assert values
    assert all(a < b for a, b in zip(values, values[1:]))
    assert values[-1] <= END


def test_no_progress_jumps_to_end(monkeypatch):
    monkeypatch.setitem(
        stepper_module._MAJOR_RESETS, Granularity.DAY, lambda dt, step: dt - timedelta(days=step)
    )
    ts = TimeStep(START, datetime(2017, 4, 10), scale="day", step=2)
    ts.first()
    ts.advance()
    assert ts.current == datetime(2017, 4, 10)


def test_is_major():
    ts = TimeStep(datetime(2017, 4, 30), datetime(2017, 5, 2))
    ts.first()
    assert not ts.is_major()
    ts.advance()
    assert ts.current == datetime(2017, 5, 1)
    assert ts.is_major()

    ts.set_scale("month")
    ts.current = datetime(2018, 1, 1)
    assert ts.is_major()
    ts.current = datetime(2018, 2, 1)
    assert not ts.is_major()

    ts.set_scale("year")
    ts.current = datetime(2018, 1, 1)
    assert not ts.is_major()


def test_step_over_hidden_dates_records_crossing():
    ts = TimeStep(
        datetime(2020, 9, 1),
        datetime(2020, 12, 31),
        hidden_dates=[{"start": "2020-09-15 00:00:00", "end": "2020-10-30 00:00:00"}],
    )
    ts.current = datetime(2020, 9, 30)
    step_over_hidden_dates(ts, datetime(2020, 9, 29))
    assert ts.current == datetime(2020, 10, 30)
    assert ts.crossing is Crossing.MONTH


def test_iteration_skips_hidden_range():
    ts = TimeStep(
        datetime(2020, 9, 10),
        datetime(2020, 11, 5),
        hidden_dates={"start": "2020-09-15", "end": "2020-10-30"},
    )
    ts.first()
    seen = []
    while ts.current < datetime(2020, 11, 2):
        seen.append((ts.current, ts.is_major()))
        ts.advance()

    assert seen == [
        (datetime(2020, 9, 10), False),
        (datetime(2020, 9, 11), False),
        (datetime(2020, 9, 12), False),
        (datetime(2020, 9, 13), False),
        (datetime(2020, 9, 14), False),
        (datetime(2020, 10, 30), True),
        (datetime(2020, 10, 31), False),
        (datetime(2020, 11, 1), True),
    ]


def test_first_moves_out_of_hidden_range_backwards():
    ts = TimeStep(
        datetime(2020, 10, 8, 12),
        datetime(2020, 10, 20),
        hidden_dates=[HiddenInterval.from_bounds(datetime(2020, 10, 6), datetime(2020, 10, 7, 12))],
        scale="day",
        step=2,
    )
    ts.first()
    assert ts.current == datetime(2020, 10, 5, 11, 59, 59, 999000)


def test_never_lands_in_hidden_range():
    hidden = [{"start": "2017-04-03 10:00", "end": "2017-04-03 14:30"}]
    ts = TimeStep(START, END, minimum_step=3_600_000, hidden_dates=hidden)
    for value in ts:
        assert not (datetime(2017, 4, 3, 10) <= value < datetime(2017, 4, 3, 14, 30))


def test_options_from_mapping_aliases():
    options = TimeStepOptions.from_mapping({"showWeekScale": True, "unknown": 1})
    assert options == TimeStepOptions(show_major_labels=True, allow_week_scale=True)

    ts = TimeStep(START, END, minimum_step=86_400_000 * 6, options=options)
    assert ts.granularity is Granularity.WEEK


def test_ticks_frame():
    frame = TimeStep(START, END).ticks_frame()
    assert list(frame.columns) == ["instant", "is_major", "minor_label", "major_label"]
    assert frame["minor_label"].tolist() == ["3", "4", "5"]
    assert frame["major_label"].tolist() == ["April 2017"] * 3
    assert not frame["is_major"].any()


def test_set_range_rebuilds_repeating_hidden_dates():
    nightly = {"start": "2017-04-01 20:00:00", "end": "2017-04-02 06:00:00", "repeat": "daily"}
    ts = TimeStep(START, END, 3_600_000, hidden_dates=nightly)
    ts.set_range(datetime(2017, 6, 1, 12), datetime(2017, 6, 3), 3_600_000)

    assert _walk(ts) == [
        datetime(2017, 6, 1, 12),
        datetime(2017, 6, 1, 16),
        datetime(2017, 6, 2, 6),
        datetime(2017, 6, 2, 8),
        datetime(2017, 6, 2, 12),
        datetime(2017, 6, 2, 16),
    ]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"scale": "year", "step": 1000},
        {"minimum_step": 360 * 86_400_000 * 600},
    ],
)
def test_thousand_year_steps_from_first_millennium(kwargs):
    ts = TimeStep(datetime(500, 1, 1), datetime(2500, 1, 1), **kwargs)
    assert ts.step == 1000
    assert _walk(ts) == [datetime(1, 1, 1), datetime(1001, 1, 1), datetime(2001, 1, 1)]


def _first_crossing(ts):
    ts.first()
    while ts.has_next():
        ts.advance()
        if ts.crossing is not None:
            return ts.current, ts.crossing, ts.is_major()
    return None


@pytest.mark.parametrize(
    "start, end, hidden, scale, landing, crossing, major",
    [
        (
            datetime(2019, 12, 28), datetime(2020, 1, 10),
            ("2019-12-30", "2020-01-03"), "day",
            datetime(2020, 1, 3), Crossing.YEAR, True,
        ),
        (
            datetime(2019, 11, 1), datetime(2020, 6, 1),
            ("2019-12-15", "2020-02-10"), "month",
            datetime(2020, 2, 10), Crossing.YEAR, True,
        ),
        (
            datetime(2020, 10, 5, 20), datetime(2020, 10, 6, 12),
            ("2020-10-05 22:00", "2020-10-06 03:00"), "hour",
            datetime(2020, 10, 6, 3), Crossing.DAY, True,
        ),
        (
            datetime(2020, 10, 1), datetime(2020, 10, 20),
            ("2020-10-05", "2020-10-07 12:00"), "day",
            datetime(2020, 10, 7, 12), Crossing.DAY, False,
        ),
    ],
)
def test_is_major_after_hidden_skip(start, end, hidden, scale, landing, crossing, major):
    ts = TimeStep(start, end, hidden_dates=[hidden], scale=scale)
    assert _first_crossing(ts) == (landing, crossing, major)


@pytest.mark.parametrize(
    "month, expected_hours",
    [
        # first half of the year rounds down to a multiple of the step
        (6, [0, 4, 9, 12, 16, 20, 24]),
        # second half rounds up
        (7, [0, 4, 9, 16, 20, 24]),
    ],
)
def test_hour_steps_realign_after_hidden_skip(month, expected_hours):
    day = datetime(2020, month, 1)
    ts = TimeStep(
        day,
        day + timedelta(days=1),
        hidden_dates=[(day + timedelta(hours=6), day + timedelta(hours=9))],
        scale="hour",
        step=4,
    )
    assert _walk(ts) == [day + timedelta(hours=h) for h in expected_hours]


@pytest.mark.parametrize(
    "step, expected",
    [
        (3, [datetime(2016, 12, 18), datetime(2017, 1, 1), datetime(2017, 1, 22)]),
        (4, [datetime(2016, 12, 18), datetime(2017, 1, 1), datetime(2017, 1, 29)]),
    ],
)
def test_multi_week_steps_restart_at_first_week(step, expected):
    ts = TimeStep(
        datetime(2016, 12, 18),
        datetime(2017, 2, 1),
        options={"showMajorLabels": False},
        scale="week",
        step=step,
    )
    assert _walk(ts) == expected
