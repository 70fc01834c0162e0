from datetime import date, datetime

import pytest

from voyage_engine.core.scheduling import (
    DEFAULT_WINDOW,
    convert_to_24h,
    create_datetime_with_hour,
    generate_available_hours,
    has_guaranteed_slot,
    is_valid_schedule_hour,
    parse_hhmm,
    parse_opening_hours,
    parse_osm_opening_hours,
    round_datetime_to_hour,
    round_time_to_hour,
    select_meal_time,
    window_for_day,
    window_minutes,
)
from voyage_engine.core.schemas import ScheduleWindow


def window(opens, closes):
    return ScheduleWindow(opens=opens, closes=closes)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("19:12", "19:00"),
        ("20:42", "21:00"),
        ("08:45", "09:00"),
        ("10:30", "11:00"),
        ("10:29", "10:00"),
        ("23:30", "00:00"),
        ("7:05", "07:00"),
    ],
)
def test_round_time_to_hour(value, expected):
    assert round_time_to_hour(value) == expected


def test_round_time_is_idempotent():
    for value in ("00:00", "12:15", "23:45", "17:30"):
        once = round_time_to_hour(value)
        assert round_time_to_hour(once) == once


@pytest.mark.parametrize("value", ["", "9h30", "12:60", "25:00", "ab:cd", "24:30"])
def test_round_time_rejects_malformed(value):
    with pytest.raises(ValueError):
        round_time_to_hour(value)


def test_parse_hhmm_accepts_midnight_close():
    assert parse_hhmm("24:00") == (24, 0)


def test_round_datetime_rolls_day():
    assert round_datetime_to_hour(datetime(2025, 3, 1, 23, 40)) == datetime(2025, 3, 2, 0, 0)
    assert round_datetime_to_hour(datetime(2025, 3, 1, 9, 10, 30)) == datetime(2025, 3, 1, 9, 0)


def test_is_valid_schedule_hour():
    assert is_valid_schedule_hour(8)
    assert is_valid_schedule_hour(22)
    assert not is_valid_schedule_hour(7)
    assert not is_valid_schedule_hour(23)
    assert not is_valid_schedule_hour(12.0)
    assert not is_valid_schedule_hour(True)
    assert not is_valid_schedule_hour("12")


def test_available_hours_are_half_open():
    assert generate_available_hours(window("12:00", "15:00")) == [12, 13, 14]
    assert generate_available_hours(window("11:30", "14:00")) == [12, 13]


def test_available_hours_across_midnight():
    assert window_minutes(window("18:00", "02:00")) == (1080, 1560)
    assert generate_available_hours(window("18:00", "02:00")) == [18, 19, 20, 21, 22]


def test_available_hours_all_day_and_closed():
    assert generate_available_hours(window("00:00", "23:59")) == list(range(8, 23))
    assert generate_available_hours(window("01:00", "06:00")) == []


def test_every_available_hour_is_valid():
    for opens, closes in [("06:00", "10:00"), ("20:00", "03:00"), ("09:15", "18:45")]:
        assert all(is_valid_schedule_hour(h) for h in generate_available_hours(window(opens, closes)))


def test_meal_uses_preferred_hour_when_open():
    assert select_meal_time(window("11:00", "23:00"), "lunch") == 12
    assert select_meal_time(window("11:00", "23:00"), "dinner") == 19


def test_meal_moves_to_closest_open_hour():
    assert select_meal_time(window("12:00", "15:00"), "dinner") == 14
    assert select_meal_time(window("18:30", "23:00"), "lunch") == 19
    assert select_meal_time(window("10:00", "11:00"), "breakfast") == 10


def test_meal_with_single_open_hour():
    assert select_meal_time(window("11:00", "12:00"), "lunch") == 11
    assert select_meal_time(window("18:00", "19:00"), "dinner") == 18
    assert select_meal_time(window("22:00", "04:00"), "breakfast") == 22


def test_meal_without_open_hours_keeps_preference():
    closed = window("01:00", "05:00")
    assert select_meal_time(closed, "dinner") == 19
    assert not has_guaranteed_slot(closed)
    assert has_guaranteed_slot(window("12:00", "13:00"))


def test_create_datetime_with_hour():
    assert create_datetime_with_hour(date(2025, 6, 1), 9) == datetime(2025, 6, 1, 9)
    assert create_datetime_with_hour("2025-06-01", 21) == datetime(2025, 6, 1, 21)


def test_convert_to_24h():
    assert convert_to_24h(12, 0, "AM") == "00:00"
    assert convert_to_24h(12, 30, "pm") == "12:30"
    assert convert_to_24h(5, 15, "PM") == "17:15"


def test_parse_opening_hours():
    hours = parse_opening_hours(
        [
            "Monday: 9:00 AM – 5:00 PM",
            "Tuesday: Closed",
            "Wednesday: Open 24 hours",
            "Thursday: 11:30 AM – 3:00 PM, 6:00 – 11:00 PM",
            "Friday: by appointment",
        ]
    )
    assert hours["Monday"] == window("09:00", "17:00")
    assert hours["Tuesday"] is None
    assert hours["Wednesday"] == window("00:00", "23:59")
    assert hours["Thursday"] == window("11:30", "23:00")
    assert hours["Friday"] == window("00:00", "23:59")


def test_window_for_day_defaults_when_missing():
    hours = {"Monday": window("10:00", "16:00"), "Sunday": None}
    assert window_for_day(hours, "Monday") == window("10:00", "16:00")
    assert window_for_day(hours, "Sunday") is None
    assert window_for_day(hours, "Friday") == DEFAULT_WINDOW


@pytest.mark.parametrize(
    "tag, expected",
    [
        ("09:00-18:00", window("09:00", "18:00")),
        ("Mo-Su 10:00-22:00", window("10:00", "22:00")),
        ("24/7", window("00:00", "23:59")),
        ("Mo-Fr 09:00-17:00; Sa 10:00-14:00", None),
        ("sunrise-sunset", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_osm_opening_hours(tag, expected):
    assert parse_osm_opening_hours(tag) == expected
