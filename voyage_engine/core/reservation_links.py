"""
Reservation and map links for itinerary elements.

- Restaurant: Google Maps (place id, else name + address search)
- Hotel: Booking.com search with dates and guest count
- Flight: Aviasales deep link, Google Flights search when the codes are unusable
- Attraction: official website, else Google Maps

Link generation never fails: every branch ends in a generic search URL.
Dates always use the calendar components of the value as given; nothing is
converted to UTC, which would shift dates near midnight.
"""

import logging
import re
from datetime import date, datetime
from typing import Any
from urllib.parse import quote, urlencode

from pydantic import TypeAdapter, ValidationError

from voyage_engine.core.schemas import (
    AttractionForLink,
    FlightForLink,
    HotelForLink,
    ReservableElement,
    ReservationContext,
    RestaurantForLink,
)

logger = logging.getLogger(__name__)

GOOGLE_MAPS_SEARCH = "https://www.google.com/maps/search/?api=1&query="
GOOGLE_MAPS_PLACE = "https://www.google.com/maps/place/?q=place_id:"
BOOKING_SEARCH = "https://www.booking.com/searchresults.html"
GOOGLE_HOTELS = "https://www.google.com/travel/hotels"
GOOGLE_FLIGHTS = "https://www.google.com/travel/flights"
AVIASALES_SEARCH = "https://www.aviasales.com/search/"
GOOGLE_SEARCH = "https://www.google.com/search?q="

DEFAULT_HOTEL_GUESTS = 2
DEFAULT_FLIGHT_PASSENGERS = 1

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_FLIGHT_CODE = re.compile(r"^[A-Za-z0-9]+$")

_element_adapter = TypeAdapter(ReservableElement)


def format_date_for_url(value: date | datetime | str | None) -> str:
    """
    Format a date as YYYY-MM-DD for query strings.

    date/datetime values use their own year/month/day. "YYYY-MM-DD" strings pass
    through; other ISO strings are parsed and keep the date as written.
    Anything unparseable gives "".
    """
    if not value:
        return ""

    if isinstance(value, (date, datetime)):
        return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"

    if isinstance(value, str):
        text = value.strip()
        if _ISO_DATE.match(text):
            return text
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return ""
        return f"{parsed.year:04d}-{parsed.month:02d}-{parsed.day:02d}"

    return ""


def _aviasales_date(iso_date: str) -> str:
    """YYYY-MM-DD -> DDMM"""
    _, month, day = iso_date.split("-")
    return f"{day}{month}"


def maps_place_url(place_id: str) -> str:
    return f"{GOOGLE_MAPS_PLACE}{quote(place_id, safe='')}"


def maps_search_link(*parts: str) -> str:
    query = ", ".join(p.strip() for p in parts if p and p.strip())
    return f"{GOOGLE_MAPS_SEARCH}{quote(query, safe='')}"


def generate_restaurant_link(restaurant: RestaurantForLink) -> str:
    if restaurant.place_id:
        return maps_place_url(restaurant.place_id)
    return maps_search_link(restaurant.name, restaurant.address)


def generate_hotel_link(hotel: HotelForLink, context: ReservationContext) -> str:
    params = {"ss": " ".join(p for p in (hotel.name.strip(), hotel.city.strip()) if p)}

    check_in = format_date_for_url(context.check_in)
    check_out = format_date_for_url(context.check_out)
    if check_in:
        params["checkin"] = check_in
    if check_out:
        params["checkout"] = check_out

    params["group_adults"] = str(context.passengers or DEFAULT_HOTEL_GUESTS)
    params["no_rooms"] = "1"
    return f"{BOOKING_SEARCH}?{urlencode(params)}"


def generic_flight_link(origin: str, destination: str) -> str:
    origin = origin.strip()
    destination = destination.strip()
    if not origin and not destination:
        return GOOGLE_FLIGHTS

    query = "Flights"
    if destination:
        query += f" to {destination}"
    if origin:
        query += f" from {origin}"
    return f"{GOOGLE_FLIGHTS}?{urlencode({'q': query})}"


def generate_flight_link(flight: FlightForLink, context: ReservationContext) -> str:
    """
    Aviasales search link.

    Path grammar: ORIGIN[DDMM]DESTINATION[DDMM]PASSENGERS, e.g.
    CDG2302BCN1 (one way, 23 Feb) or CDG2302BCN01031 (return on 1 Mar).
    """
    origin = flight.origin.strip().upper()
    destination = flight.destination.strip().upper()
    outbound = format_date_for_url(context.date)
    inbound = format_date_for_url(context.return_date)

    if not _FLIGHT_CODE.match(origin) or not _FLIGHT_CODE.match(destination):
        return generic_flight_link(flight.origin, flight.destination)
    if inbound and not outbound:
        return generic_flight_link(flight.origin, flight.destination)

    path = origin
    if outbound:
        path += _aviasales_date(outbound)
    path += destination
    if inbound:
        path += _aviasales_date(inbound)
    path += str(context.passengers or DEFAULT_FLIGHT_PASSENGERS)

    return f"{AVIASALES_SEARCH}{path}?currency=eur"


def generate_attraction_link(attraction: AttractionForLink) -> str:
    website = (attraction.website or "").strip()
    if website.lower().startswith(("http://", "https://")):
        return website
    if attraction.place_id:
        return maps_place_url(attraction.place_id)
    return maps_search_link(attraction.name, attraction.address)


def _fallback_link(element: Any) -> str:
    name = ""
    if isinstance(element, dict):
        name = str(element.get("name") or element.get("destination") or "")
    else:
        name = str(getattr(element, "name", "") or "")
    return f"{GOOGLE_SEARCH}{quote(name.strip() or 'travel', safe='')}"


def generate_reservation_link(
    element: ReservableElement | dict[str, Any],
    context: ReservationContext | dict[str, Any] | None = None,
) -> str:
    """
    Link for any reservable element.

    Accepts the typed models or plain dicts. Never raises and never returns an
    empty string; unknown or malformed elements get a Google search URL.
    """
    try:
        if isinstance(context, dict):
            context = ReservationContext.model_validate(context)
        context = context or ReservationContext()
    except ValidationError as e:
        logger.warning(f"Ignoring invalid reservation context: {e.error_count()} error(s)")
        context = ReservationContext()

    try:
        if isinstance(element, dict):
            element = _element_adapter.validate_python(element)
    except ValidationError as e:
        logger.warning(f"Unknown reservable element, using search fallback: {e.error_count()} error(s)")
        return _fallback_link(element)

    if isinstance(element, RestaurantForLink):
        return generate_restaurant_link(element)
    if isinstance(element, HotelForLink):
        return generate_hotel_link(element, context)
    if isinstance(element, FlightForLink):
        return generate_flight_link(element, context)
    if isinstance(element, AttractionForLink):
        return generate_attraction_link(element)

    logger.warning(f"Unsupported reservable element {type(element).__name__}")
    return _fallback_link(element)


def generate_hotel_search_links(
    destination: str,
    check_in: date | datetime | str | None,
    check_out: date | datetime | str | None,
    guests: int = DEFAULT_HOTEL_GUESTS,
) -> dict[str, str]:
    """Availability searches on Google Hotels and Booking.com for a destination."""
    check_in_str = format_date_for_url(check_in)
    check_out_str = format_date_for_url(check_out)

    google_params = {"q": f"hotels {destination}"}
    booking_params = {
        "ss": destination,
        "group_adults": str(guests),
        "no_rooms": "1",
        "group_children": "0",
    }
    if check_in_str:
        google_params["checkin"] = check_in_str
        booking_params["checkin"] = check_in_str
    if check_out_str:
        google_params["checkout"] = check_out_str
        booking_params["checkout"] = check_out_str
    google_params["guests"] = str(guests)

    return {
        "google_hotels": f"{GOOGLE_HOTELS}?{urlencode(google_params)}",
        "booking": f"{BOOKING_SEARCH}?{urlencode(booking_params)}",
    }
