from datetime import date

from fastapi import APIRouter, Query

from voyage_engine.core.reservation_links import (
    generate_hotel_search_links,
    generate_reservation_link,
)
from voyage_engine.core.schemas import ReservationLinkRequest

router = APIRouter(prefix="/links", tags=["links"])


@router.post("/reservation")
def reservation_link(body: ReservationLinkRequest) -> dict:
    return {"url": generate_reservation_link(body.element, body.context)}


@router.get("/hotels")
def hotel_search_links(
    destination: str = Query(..., min_length=1, max_length=120),
    check_in: date | None = Query(None),
    check_out: date | None = Query(None),
    guests: int = Query(2, ge=1, le=9),
) -> dict:
    """Google Hotels and Booking.com availability searches."""
    return generate_hotel_search_links(destination, check_in, check_out, guests)
