"""
Round-hour scheduling against venue opening hours.

Every time shown to a traveler is a whole hour between 08:00 and 22:00.
Times coming from providers or from a drafted itinerary pass through
round_time_to_hour before display; meal slots are picked with
select_meal_time so they also respect the venue's opening window.
"""

import logging
import re
from datetime import date, datetime, timedelta

from voyage_engine.core.schemas import MealType, ScheduleWindow

logger = logging.getLogger(__name__)

AVAILABLE_HOURS = list(range(8, 23))

MEAL_PREFERENCES: dict[str, int] = {
    "breakfast": 8,
    "lunch": 12,
    "dinner": 19,
}

MINUTES_PER_DAY = 24 * 60

DEFAULT_WINDOW = ScheduleWindow(opens="09:00", closes="18:00")

_HHMM = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def is_valid_schedule_hour(hour: object) -> bool:
    """True for the whole hours 8..22 only."""
    return isinstance(hour, int) and not isinstance(hour, bool) and hour in AVAILABLE_HOURS


def parse_hhmm(time_str: str) -> tuple[int, int]:
    """
    Parse a 24-hour "HH:MM" string.

    "24:00" is accepted as a closing time meaning midnight.

    Raises:
        ValueError: if the string is not a valid 24-hour time
    """
    match = _HHMM.match(time_str or "")
    if not match:
        raise ValueError(f"Invalid time '{time_str}', expected HH:MM")

    hour = int(match.group(1))
    minute = int(match.group(2))
    if minute > 59 or hour > 24 or (hour == 24 and minute != 0):
        raise ValueError(f"Invalid time '{time_str}', expected HH:MM")
    return hour, minute


def round_time_to_hour(time_str: str) -> str:
    """
    Round "HH:MM" to the nearest whole hour.

    Under 30 minutes rounds down, 30 and over rounds up; 23:30 and later
    rolls over to "00:00".

    Examples:
        "19:12" -> "19:00", "20:42" -> "21:00", "08:45" -> "09:00"
    """
    hour, minute = parse_hhmm(time_str)
    if minute >= 30:
        hour += 1
    return format_hour(hour % 24)


def round_datetime_to_hour(value: datetime) -> datetime:
    """Same rounding rule as round_time_to_hour, carrying over into the next day."""
    rounded = value.replace(minute=0, second=0, microsecond=0)
    if value.minute >= 30:
        rounded += timedelta(hours=1)
    return rounded


def format_hour(hour: int) -> str:
    return f"{hour:02d}:00"


def create_datetime_with_hour(day: date | str, hour: int) -> datetime:
    """Build a naive local datetime for the given day at a whole hour."""
    if isinstance(day, str):
        day = date.fromisoformat(day)
    return datetime(day.year, day.month, day.day, hour)


def window_minutes(window: ScheduleWindow) -> tuple[int, int]:
    """
    Opening and closing time as minutes since midnight.

    A closing time earlier than the opening time belongs to the next day
    (e.g. 18:00-02:00 becomes 1080-1560).
    """
    open_hour, open_minute = parse_hhmm(window.opens)
    close_hour, close_minute = parse_hhmm(window.closes)

    open_minutes = open_hour * 60 + open_minute
    close_minutes = close_hour * 60 + close_minute
    if close_minutes < open_minutes:
        close_minutes += MINUTES_PER_DAY
    return open_minutes, close_minutes


def generate_available_hours(window: ScheduleWindow) -> list[int]:
    """
    Whole hours in 8..22 at which the venue is open.

    An hour is available when it starts at or after opening time and
    strictly before closing time.
    """
    open_minutes, close_minutes = window_minutes(window)
    return [
        hour
        for hour in AVAILABLE_HOURS
        if open_minutes <= hour * 60 < close_minutes
    ]


def select_meal_time(window: ScheduleWindow, meal: MealType) -> int:
    """
    Pick the hour for a meal at a venue.

    The preferred hour (breakfast 8, lunch 12, dinner 19) wins when the venue
    is open then. Otherwise the closest open hour is used; on a tie the
    earlier hour wins. When the venue has no open hour in 8..22 the preferred
    hour is returned unchanged and is not guaranteed to be valid (see
    has_guaranteed_slot).
    """
    preferred = MEAL_PREFERENCES[meal]
    available = generate_available_hours(window)

    if not available:
        logger.info(
            f"No open hour between 08:00 and 22:00 for {window.opens}-{window.closes}, "
            f"keeping {meal} at {format_hour(preferred)}"
        )
        return preferred

    if preferred in available:
        return preferred

    closest = available[0]
    min_diff = abs(available[0] - preferred)
    for hour in available:
        diff = abs(hour - preferred)
        if diff < min_diff:
            min_diff = diff
            closest = hour
    return closest


def has_guaranteed_slot(window: ScheduleWindow) -> bool:
    return bool(generate_available_hours(window))


# =============================================================================
# Provider opening-hours parsing
# =============================================================================


def convert_to_24h(hour: int, minute: int, meridiem: str) -> str:
    """
    Convert 12-hour time to 24-hour format string.

    Args:
        hour: Hour (1-12)
        minute: Minute (0-59)
        meridiem: "AM" or "PM"

    Returns:
        Time string in HH:MM format (24-hour)
    """
    meridiem = meridiem.upper()

    if meridiem == "AM":
        if hour == 12:
            hour = 0
    else:  # PM
        if hour != 12:
            hour += 12

    return f"{hour:02d}:{minute:02d}"


def parse_opening_hours(weekday_text: list[str]) -> dict[str, ScheduleWindow | None]:
    """
    Parse Google Places weekday_text into one window per day.

    Args:
        weekday_text: List of strings like ["Monday: 9:00 AM – 5:00 PM", "Tuesday: Closed"]

    Returns:
        Dictionary mapping day name to a ScheduleWindow, or None when closed:
        {
            "Monday": ScheduleWindow(opens="09:00", closes="17:00"),
            "Tuesday": None,
            ...
        }
    """
    hours_map: dict[str, ScheduleWindow | None] = {}

    for entry in weekday_text:
        if ":" not in entry:
            continue

        day, hours_str = entry.split(":", 1)
        day = day.strip()
        hours_str = hours_str.strip()

        if "closed" in hours_str.lower():
            hours_map[day] = None
            continue

        if "24 hours" in hours_str.lower():
            hours_map[day] = ScheduleWindow(opens="00:00", closes="23:59")
            continue

        # Google uses various separators: –, -, to, etc.
        time_pattern = r"(\d{1,2}):(\d{2})\s*(AM|PM|am|pm)"
        matches = re.findall(time_pattern, hours_str)

        if len(matches) >= 2:
            # First match = opening time, last match = closing time
            open_match = matches[0]
            close_match = matches[-1]
            hours_map[day] = ScheduleWindow(
                opens=convert_to_24h(int(open_match[0]), int(open_match[1]), open_match[2]),
                closes=convert_to_24h(int(close_match[0]), int(close_match[1]), close_match[2]),
            )
        else:
            logger.debug(f"Unparseable opening hours '{entry}', assuming open all day")
            hours_map[day] = ScheduleWindow(opens="00:00", closes="23:59")

    return hours_map


def window_for_day(
    opening_hours: dict[str, ScheduleWindow | None], day_name: str
) -> ScheduleWindow | None:
    """Window for a weekday; a day missing from the data counts as open 09:00-18:00."""
    if day_name not in opening_hours:
        return DEFAULT_WINDOW
    return opening_hours[day_name]


_OSM_RANGE = re.compile(r"(\d{1,2}:\d{2})\s*-\s*(\d{1,2}:\d{2})")


def parse_osm_opening_hours(tag: str | None) -> ScheduleWindow | None:
    """
    Read a simple OpenStreetMap opening_hours tag.

    Only tags with a single daily range are understood ("09:00-18:00",
    "Mo-Su 10:00-22:00", "24/7"). Anything richer returns None so the caller
    keeps its default window.
    """
    if not tag:
        return None

    tag = tag.strip()
    if tag == "24/7":
        return ScheduleWindow(opens="00:00", closes="23:59")

    ranges = _OSM_RANGE.findall(tag)
    if len(ranges) != 1 or ";" in tag or "," in tag:
        return None

    opens, closes = ranges[0]
    try:
        parse_hhmm(opens)
        parse_hhmm(closes)
    except ValueError:
        return None
    return ScheduleWindow(opens=opens, closes=closes)
