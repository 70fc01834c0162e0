from fastapi import APIRouter, Depends, Query

from voyage_engine.core.city_resolver import CityResolver, get_city_resolver
from voyage_engine.core.schemas import CanonicalCity

router = APIRouter(prefix="/cities", tags=["cities"])


@router.get("/resolve", response_model=CanonicalCity)
def resolve(
    name: str = Query(..., max_length=120, description="City name in any language or script"),
    resolver: CityResolver = Depends(get_city_resolver),
) -> CanonicalCity:
    """Canonical identity for a free-text city name."""
    return resolver.resolve(name)


@router.get("/supported")
def supported_cities(resolver: CityResolver = Depends(get_city_resolver)) -> list[str]:
    """Keys of the cities known without a geocoder call."""
    return resolver.index.supported_cities()
