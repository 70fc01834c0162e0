import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from voyage_engine.core.attractions_service import AttractionsService, get_attractions_service
from voyage_engine.core.city_resolver import CityResolver, get_city_resolver
from voyage_engine.core.errors import AttractionSourcesUnavailable
from voyage_engine.core.schemas import Attraction, Coordinates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/attractions", tags=["attractions"])


@router.get("/search", response_model=list[Attraction])
def search(
    destination: str = Query(..., min_length=1, max_length=120),
    lat: float | None = Query(None, ge=-90, le=90),
    lng: float | None = Query(None, ge=-180, le=180),
    limit: int = Query(50, ge=1, le=200),
    min_popularity: int = Query(40, ge=0),
    service: AttractionsService = Depends(get_attractions_service),
    resolver: CityResolver = Depends(get_city_resolver),
) -> list[Attraction]:
    """
    Ranked attractions around a destination.

    Without lat/lng the destination is resolved to its city center first.
    """
    if lat is not None and lng is not None:
        center = Coordinates(lat=lat, lng=lng)
    else:
        center = resolver.resolve(destination).coordinates
        if center is None:
            raise HTTPException(
                status_code=404, detail=f"Unknown destination '{destination}', pass lat and lng"
            )

    try:
        return service.search_or_raise(destination, center, limit, min_popularity)
    except AttractionSourcesUnavailable as e:
        logger.error(f"Attraction search failed: {e}")
        raise HTTPException(status_code=502, detail="Attraction sources unavailable")
