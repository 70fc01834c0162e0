"""
Google Places integration, used as the alternate attraction source when
OpenStreetMap discovery is unavailable.
"""

import logging
from typing import Any
from urllib.parse import quote

import requests

from voyage_engine.core.errors import UpstreamAPIError
from voyage_engine.core.geo_utils import is_valid_coordinate, is_within_radius
from voyage_engine.core.schemas import ActivityType, Attraction, Coordinates
from voyage_engine.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)

PLACES_API_BASE = "https://maps.googleapis.com/maps/api/place"

# Places types that are not attractions (cities, agencies, ...)
EXCLUDED_TYPES = {
    "locality",
    "political",
    "administrative_area_level_1",
    "administrative_area_level_2",
    "administrative_area_level_3",
    "country",
    "colloquial_area",
    "sublocality",
    "travel_agency",
    "real_estate_agency",
    "insurance_agency",
    "lodging",
}

ATTRACTION_TYPES = {
    "tourist_attraction",
    "museum",
    "park",
    "art_gallery",
    "church",
    "place_of_worship",
    "zoo",
    "aquarium",
    "amusement_park",
    "stadium",
    "shopping_mall",
}

RELIGIOUS_TYPES = {"church", "mosque", "synagogue", "hindu_temple", "place_of_worship"}


def is_excluded_place(types: list[str]) -> bool:
    """Excluded when it has a non-attraction type and no genuine attraction type."""
    if any(t in ATTRACTION_TYPES for t in types):
        return False
    return any(t in EXCLUDED_TYPES for t in types)


def map_google_type(types: list[str]) -> ActivityType:
    if "park" in types or "natural_feature" in types:
        return "nature"
    if "amusement_park" in types:
        return "adventure"
    if "shopping_mall" in types:
        return "shopping"
    if "spa" in types:
        return "wellness"
    return "culture"


def estimate_duration(types: list[str]) -> int:
    if "museum" in types:
        return 120
    if "zoo" in types or "aquarium" in types:
        return 180
    if "amusement_park" in types:
        return 240
    if "park" in types:
        return 60
    if "church" in types or "place_of_worship" in types:
        return 30
    return 60


class PlacesService:
    """Service for interacting with Google Places API."""

    def __init__(self, settings: Settings | None = None, session: requests.Session | None = None):
        self.settings = settings or get_settings()
        self.api_key = self.settings.google_maps_api_key
        self.session = session or requests.Session()

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def text_search(self, query: str, lat: float, lng: float, radius: int = 10000) -> list[dict[str, Any]]:
        """
        Run a Places Text Search biased to a location.

        Raises:
            UpstreamAPIError: on network failure or a non-OK API status
        """
        params = {
            "query": query,
            "location": f"{lat},{lng}",
            "radius": radius,
            "key": self.api_key,
        }

        try:
            response = self.session.get(
                f"{PLACES_API_BASE}/textsearch/json",
                params=params,
                timeout=self.settings.http_timeout_seconds,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise UpstreamAPIError("google_places", str(e)) from e

        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            raise UpstreamAPIError(
                "google_places", f"status {status}: {data.get('error_message', '')}"
            )
        return data.get("results", [])

    def get_place_photo_url(self, photo_reference: str, max_width: int = 400) -> str | None:
        if not photo_reference:
            return None

        return (
            f"{PLACES_API_BASE}/photo"
            f"?maxwidth={max_width}"
            f"&photo_reference={quote(photo_reference)}"
            f"&key={self.api_key}"
        )

    def to_attraction(self, place: dict[str, Any]) -> Attraction | None:
        location = (place.get("geometry") or {}).get("location") or {}
        lat = location.get("lat")
        lng = location.get("lng")
        place_id = place.get("place_id")
        name = place.get("name")
        if not place_id or not name or not is_valid_coordinate(lat, lng):
            return None

        types = place.get("types", [])
        reviews = place.get("user_ratings_total") or 0
        photo_reference = (
            place.get("photos", [{}])[0].get("photo_reference") if place.get("photos") else None
        )

        return Attraction(
            id=f"gplaces-{place_id}",
            name=name,
            type=map_google_type(types),
            description=place.get("formatted_address", ""),
            duration_minutes=estimate_duration(types),
            coordinates=Coordinates(lat=lat, lng=lng),
            rating=place.get("rating"),
            # Review count in thousands stands in for the sitelink count.
            popularity_score=reviews // 1000,
            is_must_see=reviews >= 50000,
            image_url=self.get_place_photo_url(photo_reference) if photo_reference else None,
            google_maps_url=(
                f"https://www.google.com/maps/place/?q=place_id:{quote(place_id)}"
            ),
            provider_name="Google Places",
        )

    def search_attractions(
        self, destination: str, lat: float, lng: float, radius_km: float = 10
    ) -> list[tuple[Attraction, bool]]:
        """
        Attractions around a city center, with a religious-site flag for each.

        Raises:
            UpstreamAPIError: when every query failed
        """
        if not self.is_configured:
            raise UpstreamAPIError("google_places", "GOOGLE_MAPS_API_KEY not configured")

        queries = [
            f"top tourist attractions {destination}",
            f"must see landmarks {destination}",
        ]

        results: list[tuple[Attraction, bool]] = []
        seen_place_ids: set[str] = set()
        failures = 0

        for query in queries:
            try:
                places = self.text_search(query, lat, lng, radius=int(radius_km * 1000))
            except UpstreamAPIError as e:
                logger.warning(f"Places search failed for '{query}': {e}")
                failures += 1
                continue

            for place in places:
                place_id = place.get("place_id")
                types = place.get("types", [])
                if not place_id or place_id in seen_place_ids or is_excluded_place(types):
                    continue

                attraction = self.to_attraction(place)
                if attraction is None:
                    continue
                if not is_within_radius(
                    lat, lng, attraction.coordinates.lat, attraction.coordinates.lng, radius_km * 1.5
                ):
                    continue

                seen_place_ids.add(place_id)
                results.append((attraction, any(t in RELIGIOUS_TYPES for t in types)))

        if failures == len(queries):
            raise UpstreamAPIError("google_places", "all queries failed")

        logger.info(f"Google Places found {len(results)} attractions for '{destination}'")
        return results
