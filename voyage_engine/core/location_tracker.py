"""
Tracks where the traveler physically is during a trip.

States: home -> airport -> transit (in the air) -> city -> ... Activities are
only valid in the city the traveler is currently in, and never while in
transit. One tracker per planning session; it is not safe to share between
concurrent callers.
"""

import logging
from datetime import datetime

from voyage_engine.core.city_resolver import CityResolver, get_city_resolver
from voyage_engine.core.schemas import (
    ActivityLocation,
    FlightLeg,
    LocationValidationResult,
    TravelerLocation,
)

logger = logging.getLogger(__name__)


def create_initial_location(
    origin_city: str, description: str, resolver: CityResolver
) -> TravelerLocation:
    """Traveler at home in their origin city."""
    if not origin_city.strip():
        raise ValueError("origin_city is required")
    return TravelerLocation(
        kind="home",
        city_key=resolver.resolve(origin_city).key,
        description=description,
        observed_at=datetime.now(),
    )


def apply_flight_event(
    location: TravelerLocation, leg: FlightLeg, resolver: CityResolver
) -> TravelerLocation:
    """
    Next location after a flight event.

    - boarding / in_flight: transit, no city
    - landed: city, set to the destination
    """
    if leg.status in ("boarding", "in_flight"):
        return TravelerLocation(
            kind="transit",
            city_key="",
            description=f"In flight {leg.origin_city} → {leg.destination_city}",
            observed_at=datetime.now(),
        )

    if not leg.destination_city.strip():
        raise ValueError("a landed flight needs a destination_city")

    arrival = f" at {leg.arrival_time}" if leg.arrival_time else ""
    return TravelerLocation(
        kind="city",
        city_key=resolver.resolve(leg.destination_city).key,
        description=f"Arrived in {leg.destination_city}{arrival}",
        observed_at=datetime.now(),
    )


def validate_activity_location(
    location: TravelerLocation, activity: ActivityLocation, resolver: CityResolver
) -> LocationValidationResult:
    """
    Check an activity against the traveler's current location.

    Rules:
    1. Nothing can happen mid-flight.
    2. Otherwise the activity must be in the traveler's current city.
    """
    if location.kind == "transit":
        return LocationValidationResult(
            valid=False,
            reason=f'"{activity.name}" cannot happen mid-flight ({location.description})',
        )

    activity_key = resolver.resolve(activity.city).key
    if activity_key != location.city_key:
        current = resolver.index.resolve_local(location.city_key).display_name
        return LocationValidationResult(
            valid=False,
            reason=f'"{activity.name}" is in {activity.city}, but the traveler is in {current}',
        )

    return LocationValidationResult(valid=True, reason="")


class TransitLocationTracker:
    """
    Location state machine for a single trip-planning session.

    Usage:
        tracker = TransitLocationTracker("Paris", "Igny, France")
        tracker.board_flight("Paris", "Barcelona")
        tracker.land_flight("Barcelona", "12:30")
        tracker.current_city()  # "barcelona"
    """

    def __init__(
        self,
        origin_city: str,
        description: str = "",
        resolver: CityResolver | None = None,
    ):
        self.resolver = resolver or get_city_resolver()
        self._location = create_initial_location(origin_city, description, self.resolver)

    @property
    def current_location(self) -> TravelerLocation:
        return self._location.model_copy()

    def go_to_airport(self, airport_name: str) -> None:
        if self.is_in_transit():
            # An airport without a city is not a location; wait for the landing.
            logger.warning(f"Ignoring airport '{airport_name}' while in transit")
            return
        self._location = self._location.model_copy(
            update={
                "kind": "airport",
                "description": airport_name,
                "observed_at": datetime.now(),
            }
        )

    def board_flight(self, origin_city: str, destination_city: str) -> None:
        self._apply(
            FlightLeg(
                status="boarding",
                origin_city=origin_city,
                destination_city=destination_city,
            )
        )

    def land_flight(self, destination_city: str, arrival_time: str | None = None) -> None:
        self._apply(
            FlightLeg(
                status="landed",
                destination_city=destination_city,
                arrival_time=arrival_time,
            )
        )

    def handle_flight_event(self, leg: FlightLeg) -> None:
        self._apply(leg)

    def _apply(self, leg: FlightLeg) -> None:
        previous = self._location.kind
        self._location = apply_flight_event(self._location, leg, self.resolver)
        logger.debug(f"Traveler location {previous} -> {self._location.kind} ({leg.status})")

    def validate_activity(self, activity: ActivityLocation | dict) -> LocationValidationResult:
        if isinstance(activity, dict):
            activity = ActivityLocation(**activity)
        return validate_activity_location(self._location, activity, self.resolver)

    def validate_activities(
        self, activities: list[ActivityLocation | dict]
    ) -> list[tuple[ActivityLocation, str]]:
        """Return the activities that are invalid here, with the reason for each."""
        invalid = []
        for activity in activities:
            if isinstance(activity, dict):
                activity = ActivityLocation(**activity)
            result = validate_activity_location(self._location, activity, self.resolver)
            if not result.valid:
                invalid.append((activity, result.reason))
        return invalid

    def is_in_transit(self) -> bool:
        return self._location.kind == "transit"

    def current_city(self) -> str | None:
        """Canonical key of the current city, or None while in the air."""
        if self.is_in_transit() or not self._location.city_key:
            return None
        return self._location.city_key


def create_location_tracker(origin_city: str, description: str = "") -> TransitLocationTracker:
    return TransitLocationTracker(origin_city, description)
