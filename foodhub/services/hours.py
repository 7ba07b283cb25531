"""
Restaurant Opening Hours

Computes whether a restaurant is accepting orders right now from its manual
switches (``is_open``, ``is_temporarily_closed``) and its schedule
(``opening_time``/``closing_time`` as "HH:MM", ``working_days`` as weekday
numbers with 0 = Sunday). Overnight ranges such as 22:00-02:00 are supported.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
ALL_DAYS = [0, 1, 2, 3, 4, 5, 6]
CLOSING_SOON_MINUTES = 30


@dataclass
class RestaurantStatus:
    is_open: bool
    message: str
    status_color: str  # green | yellow | red
    next_open_time: Optional[str] = None
    close_time: Optional[str] = None


def time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def is_time_in_range(current: str, start: str, end: str) -> bool:
    current_m = time_to_minutes(current)
    start_m = time_to_minutes(start)
    end_m = time_to_minutes(end)

    if end_m < start_m:
        # Overnight range
        return current_m >= start_m or current_m <= end_m
    return start_m <= current_m <= end_m


def minutes_until(current: str, target: str) -> int:
    current_m = time_to_minutes(current)
    target_m = time_to_minutes(target)
    if target_m < current_m:
        return 24 * 60 - current_m + target_m
    return target_m - current_m


def parse_working_days(value: Optional[str]) -> list[int]:
    if not value:
        return list(ALL_DAYS)
    return [int(d) for d in value.split(",") if d.strip()]


def next_working_day(current_day: int, working_days: list[int]) -> int:
    for offset in range(1, 8):
        day = (current_day + offset) % 7
        if day in working_days:
            return day
    return working_days[0] if working_days else 0


def weekday_number(moment: datetime) -> int:
    """Weekday with 0 = Sunday."""
    return (moment.weekday() + 1) % 7


def get_restaurant_status(restaurant, now: Optional[datetime] = None) -> RestaurantStatus:
    """Opening status of ``restaurant`` at ``now`` (defaults to local time)."""
    now = now or datetime.now()
    current_day = weekday_number(now)
    current_time = now.strftime("%H:%M")

    if restaurant.is_temporarily_closed:
        return RestaurantStatus(
            is_open=False,
            message=restaurant.temporary_close_reason or "Temporarily closed",
            status_color="red",
        )

    if not restaurant.is_open:
        return RestaurantStatus(is_open=False, message="Closed", status_color="red")

    working_days = parse_working_days(restaurant.working_days)
    opening_time = restaurant.opening_time or "08:00"
    closing_time = restaurant.closing_time or "23:00"

    if current_day not in working_days:
        next_day = DAY_NAMES[next_working_day(current_day, working_days)]
        return RestaurantStatus(
            is_open=False,
            next_open_time=f"{next_day} {opening_time}",
            message=f"Closed today - opens {next_day} at {opening_time}",
            status_color="red",
        )

    if is_time_in_range(current_time, opening_time, closing_time):
        if minutes_until(current_time, closing_time) <= CLOSING_SOON_MINUTES:
            return RestaurantStatus(
                is_open=True,
                close_time=closing_time,
                message=f"Open - closes at {closing_time}",
                status_color="yellow",
            )
        return RestaurantStatus(
            is_open=True,
            close_time=closing_time,
            message=f"Open until {closing_time}",
            status_color="green",
        )

    if current_time < opening_time:
        return RestaurantStatus(
            is_open=False,
            next_open_time=f"Today {opening_time}",
            message=f"Closed - opens today at {opening_time}",
            status_color="red",
        )

    next_day_number = next_working_day(current_day, working_days)
    day_text = "Tomorrow" if next_day_number == (current_day + 1) % 7 else DAY_NAMES[next_day_number]
    return RestaurantStatus(
        is_open=False,
        next_open_time=f"{day_text} {opening_time}",
        message=f"Closed - opens {day_text.lower() if day_text == 'Tomorrow' else day_text} at {opening_time}",
        status_color="red",
    )


def can_order_from(restaurant, now: Optional[datetime] = None) -> tuple[bool, Optional[str]]:
    status = get_restaurant_status(restaurant, now)
    if not status.is_open:
        return False, f"Ordering is not possible right now. {status.message}"
    return True, None
