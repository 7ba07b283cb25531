from datetime import datetime
from types import SimpleNamespace

import pytest

from foodhub.services.hours import (
    can_order_from,
    get_restaurant_status,
    is_time_in_range,
    minutes_until,
    weekday_number,
)

SUNDAY = datetime(2026, 10, 18)
MONDAY = datetime(2026, 10, 19)
FRIDAY = datetime(2026, 10, 23)


def restaurant(**overrides):
    values = dict(
        is_open=True,
        is_temporarily_closed=False,
        temporary_close_reason=None,
        opening_time="08:00",
        closing_time="23:00",
        working_days="0,1,2,3,4,5,6",
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def at(day: datetime, hour: int, minute: int = 0) -> datetime:
    return day.replace(hour=hour, minute=minute)


def test_weekday_number_starts_on_sunday():
    assert weekday_number(SUNDAY) == 0
    assert weekday_number(MONDAY) == 1


@pytest.mark.parametrize(
    "current,expected",
    [("12:00", True), ("08:00", True), ("23:00", True), ("07:59", False), ("23:01", False)],
)
def test_daytime_range(current, expected):
    assert is_time_in_range(current, "08:00", "23:00") is expected


@pytest.mark.parametrize(
    "current,expected",
    [("23:30", True), ("01:00", True), ("02:00", True), ("12:00", False)],
)
def test_overnight_range(current, expected):
    assert is_time_in_range(current, "22:00", "02:00") is expected


def test_minutes_until_wraps_midnight():
    assert minutes_until("23:30", "00:15") == 45
    assert minutes_until("10:00", "10:30") == 30


def test_open_and_closing_soon():
    status = get_restaurant_status(restaurant(), at(MONDAY, 12))
    assert status.is_open
    assert status.status_color == "green"
    assert status.message == "Open until 23:00"

    soon = get_restaurant_status(restaurant(), at(MONDAY, 22, 45))
    assert soon.is_open
    assert soon.status_color == "yellow"
    assert soon.close_time == "23:00"


def test_closed_before_opening_and_after_closing():
    early = get_restaurant_status(restaurant(), at(MONDAY, 7))
    assert not early.is_open
    assert early.message == "Closed - opens today at 08:00"

    late = get_restaurant_status(restaurant(), at(MONDAY, 23, 30))
    assert late.message == "Closed - opens tomorrow at 08:00"
    assert late.next_open_time == "Tomorrow 08:00"


def test_weekend_gap_names_next_working_day():
    weekdays = restaurant(working_days="1,2,3,4,5")

    sunday = get_restaurant_status(weekdays, at(SUNDAY, 12))
    assert sunday.message == "Closed today - opens Monday at 08:00"

    friday_night = get_restaurant_status(weekdays, at(FRIDAY, 23, 30))
    assert friday_night.message == "Closed - opens Monday at 08:00"


def test_overnight_restaurant_open_after_midnight():
    late_night = restaurant(opening_time="18:00", closing_time="02:00")
    assert get_restaurant_status(late_night, at(MONDAY, 1)).status_color == "green"
    assert get_restaurant_status(late_night, at(MONDAY, 1, 45)).status_color == "yellow"
    assert not get_restaurant_status(late_night, at(MONDAY, 12)).is_open


def test_manual_switches_win():
    closed = get_restaurant_status(restaurant(is_open=False), at(MONDAY, 12))
    assert (closed.is_open, closed.message) == (False, "Closed")

    paused = get_restaurant_status(
        restaurant(is_temporarily_closed=True, temporary_close_reason="Holiday"), at(MONDAY, 12)
    )
    assert (paused.is_open, paused.message, paused.status_color) == (False, "Holiday", "red")


def test_can_order_from():
    assert can_order_from(restaurant(), at(MONDAY, 12)) == (True, None)
    allowed, reason = can_order_from(restaurant(), at(MONDAY, 7))
    assert not allowed
    assert "opens today" in reason
