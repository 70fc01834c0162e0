import logging

from fastapi import APIRouter, Depends

from voyage_engine.core.city_resolver import CityResolver, get_city_resolver
from voyage_engine.core.location_tracker import TransitLocationTracker
from voyage_engine.core.schemas import (
    ActivityCheck,
    ActivityLocation,
    TripValidationRequest,
    TripValidationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trips", tags=["trips"])


@router.post("/validate", response_model=TripValidationResponse)
def validate_trip(
    body: TripValidationRequest,
    resolver: CityResolver = Depends(get_city_resolver),
) -> TripValidationResponse:
    """
    Replay a drafted trip through a fresh location tracker.

    Events are applied in the order given; every activity is checked against
    where the traveler is at that point.
    """
    tracker = TransitLocationTracker(body.origin_city, body.description, resolver=resolver)
    checks: list[ActivityCheck] = []

    for event in body.events:
        if event.action == "airport":
            tracker.go_to_airport(event.name)
        elif event.action == "board":
            tracker.board_flight(event.origin_city, event.destination_city)
        elif event.action == "land":
            tracker.land_flight(event.destination_city, event.arrival_time)
        else:
            result = tracker.validate_activity(ActivityLocation(city=event.city, name=event.name))
            checks.append(
                ActivityCheck(
                    name=event.name,
                    city=event.city,
                    valid=result.valid,
                    reason=result.reason,
                    location=tracker.current_location,
                )
            )

    invalid = sum(1 for check in checks if not check.valid)
    if invalid:
        logger.info(f"Trip from '{body.origin_city}': {invalid}/{len(checks)} activities rejected")

    return TripValidationResponse(
        valid=invalid == 0,
        activities=checks,
        final_location=tracker.current_location,
    )
