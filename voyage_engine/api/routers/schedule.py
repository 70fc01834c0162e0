import logging

from fastapi import APIRouter, HTTPException, Query

from voyage_engine.core.scheduling import (
    MEAL_PREFERENCES,
    format_hour,
    generate_available_hours,
    has_guaranteed_slot,
    parse_opening_hours,
    round_time_to_hour,
    select_meal_time,
    window_for_day,
)
from voyage_engine.core.schemas import (
    MealTimeRequest,
    MealTimeResponse,
    OpeningHoursRequest,
    ScheduleWindow,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schedule", tags=["schedule"])


@router.post("/meal-time", response_model=MealTimeResponse)
def meal_time(body: MealTimeRequest) -> MealTimeResponse:
    """Pick the hour for a meal inside a venue's opening window."""
    window = body.window
    if window is None:
        window = window_for_day(parse_opening_hours(body.weekday_text or []), body.day or "")

    if window is None:
        # Venue closed that day
        logger.info(f"Venue closed on {body.day}, keeping the {body.meal} preference")
        hour = MEAL_PREFERENCES[body.meal]
        return MealTimeResponse(hour=hour, time=format_hour(hour), guaranteed=False)

    hour = select_meal_time(window, body.meal)
    return MealTimeResponse(
        hour=hour, time=format_hour(hour), guaranteed=has_guaranteed_slot(window)
    )


@router.post("/opening-hours")
def opening_hours(body: OpeningHoursRequest) -> dict[str, ScheduleWindow | None]:
    """Parse provider weekday text ("Monday: 9:00 AM – 5:00 PM") into windows."""
    return parse_opening_hours(body.weekday_text)


@router.get("/round")
def round_time(time: str = Query(..., description="Time as HH:MM")) -> dict:
    try:
        return {"time": round_time_to_hour(time)}
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/available-hours")
def available_hours(window: ScheduleWindow) -> dict:
    return {"hours": generate_available_hours(window)}
