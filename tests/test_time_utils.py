from datetime import time

import pytest
from tutorslots.utils.time_utils import (
    format_12h,
    minutes_to_time,
    parse_12h,
    string_to_time,
    time_to_minutes,
    time_to_string,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        (time(0, 0), "12:00 AM"),
        (time(0, 30), "12:30 AM"),
        (time(9, 5), "9:05 AM"),
        (time(12, 0), "12:00 PM"),
        (time(14, 30), "2:30 PM"),
        (time(23, 30), "11:30 PM"),
    ],
)
def test_format_12h(value, expected):
    assert format_12h(value) == expected
    assert parse_12h(expected) == value


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("9:30", time(9, 30)),
        ("09:30", time(9, 30)),
        ("14:00:00", time(14, 0)),
        ("24:00", time(0, 0)),
        (" 10:15 ", time(10, 15)),
    ],
)
def test_string_to_time(raw, expected):
    assert string_to_time(raw) == expected


def test_string_to_time_rejects_garbage():
    with pytest.raises(ValueError):
        string_to_time("half past nine")


def test_end_of_day_minutes():
    assert time_to_minutes(time(0, 0)) == 0
    assert time_to_minutes(time(0, 0), is_end_time=True) == 1440


def test_minutes_to_time_bounds():
    assert minutes_to_time(1439) == time(23, 59)
    with pytest.raises(ValueError):
        minutes_to_time(1440)
    with pytest.raises(ValueError):
        minutes_to_time(-1)


def test_time_to_string_drops_seconds():
    assert time_to_string(time(8, 5, 59)) == "08:05"
