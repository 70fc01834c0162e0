"""
Attraction sourcing: OpenStreetMap discovery + Wikidata enrichment.

Pipeline:
1. Cache check (coarse geo-cell, 30 day TTL)
2. Overpass discovery of named POIs linked to Wikidata
3. Exclusion filtering (type and name blocklists), dedupe by QID
4. Batched Wikidata enrichment (names, descriptions, popularity, coords)
5. Popularity threshold
6. Religious-site diversification
7. Rank by popularity and cap
8. Persist the full ranked list (never an empty one)

When Overpass or Wikidata is down the Google Places provider is tried, then
a stale cache entry. An empty list means "try another source", not "no attractions".
"""

import logging
from typing import Any
from urllib.parse import quote

from voyage_engine.core.attraction_cache import AttractionCache, build_attraction_cache
from voyage_engine.core.attraction_filters import (
    ExclusionRules,
    diversify_religious_sites,
    estimate_duration,
    map_osm_type_to_activity_type,
)
from voyage_engine.core.errors import AttractionSourcesUnavailable, UpstreamAPIError
from voyage_engine.core.geo_utils import coarse_cell, is_valid_coordinate
from voyage_engine.core.overpass_client import OverpassClient, element_coordinates
from voyage_engine.core.places_service import PlacesService
from voyage_engine.core.scheduling import DEFAULT_WINDOW, parse_osm_opening_hours
from voyage_engine.core.schemas import Attraction, Coordinates
from voyage_engine.core.settings import Settings, get_settings
from voyage_engine.core.wikidata_client import WikidataClient, commons_image_url

logger = logging.getLogger(__name__)

SEARCH_RADIUS_KM = 10
MUST_SEE_POPULARITY = 80


def attraction_cache_key(lat: float, lng: float) -> str:
    return f"overpass-{coarse_cell(lat, lng)}"


def popularity_to_rating(popularity: int) -> float:
    """Sitelink count mapped onto a 3-5 star scale."""
    return round(min(5.0, 3 + popularity / 50), 2)


def maps_search_url(name: str) -> str:
    return f"https://www.google.com/maps/search/?api=1&query={quote(name)}"


class AttractionsService:
    """Finds, filters and ranks points of interest for a destination."""

    def __init__(
        self,
        overpass: OverpassClient | None = None,
        wikidata: WikidataClient | None = None,
        cache: AttractionCache | None = None,
        rules: ExclusionRules | None = None,
        places: PlacesService | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.overpass = overpass or OverpassClient(self.settings)
        self.wikidata = wikidata or WikidataClient(self.settings)
        self.cache = cache or build_attraction_cache(self.settings)
        self.rules = rules or ExclusionRules.load(self.settings.attraction_blocklist_path or None)
        self.places = places

    def search(
        self,
        destination: str,
        city_center: Coordinates,
        limit: int = 50,
        min_popularity: int = 40,
    ) -> list[Attraction]:
        """
        Ranked attractions around a city center.

        Args:
            destination: City name, used for logging and the fallback provider
            city_center: Coordinates the search box is centered on
            limit: Maximum number of attractions returned
            min_popularity: Minimum Wikidata sitelink count

        Returns:
            Attractions sorted by popularity (highest first), no duplicate ids.
            Empty when every source failed and nothing is cached.
        """
        try:
            return self.search_or_raise(destination, city_center, limit, min_popularity)
        except AttractionSourcesUnavailable as e:
            logger.warning(str(e))
            return []

    def search_or_raise(
        self,
        destination: str,
        city_center: Coordinates,
        limit: int = 50,
        min_popularity: int = 40,
    ) -> list[Attraction]:
        """Same as search, but raises when no source answered and no cache exists."""
        key = attraction_cache_key(city_center.lat, city_center.lng)

        cached = self.cache.get(key)
        if cached is not None:
            logger.info(f"Attraction cache hit for '{destination}' ({key})")
            return cached.attractions[:limit]

        try:
            elements = self.overpass.query(city_center.lat, city_center.lng, SEARCH_RADIUS_KM)
            ranked = self._rank(elements, min_popularity)
        except UpstreamAPIError as e:
            logger.warning(f"Attraction discovery failed for '{destination}': {e}")
            return self._fallback(key, destination, city_center, limit, e)

        if not ranked:
            # An empty list would shadow an older entry for the whole TTL
            logger.info(f"No attractions ranked for '{destination}', cache left untouched")
            return []

        self.cache.put(key, ranked, destination=destination)
        logger.info(f"Ranked {len(ranked)} attractions for '{destination}'")
        return ranked[:limit]

    def _collect_pois(self, elements: list[dict[str, Any]]) -> list[dict[str, Any]]:
        seen: set[str] = set()
        pois = []
        for element in elements:
            tags = element.get("tags") or {}
            qid = tags.get("wikidata", "").strip()
            name = tags.get("name") or tags.get("name:en") or ""

            if not qid or not name or qid in seen:
                continue
            if self.rules.should_exclude(name, tags):
                continue

            seen.add(qid)
            lat, lng = element_coordinates(element)
            pois.append({"qid": qid, "name": name, "lat": lat, "lng": lng, "tags": tags})
        return pois

    def _rank(self, elements: list[dict[str, Any]], min_popularity: int) -> list[Attraction]:
        pois = self._collect_pois(elements)
        entities = self.wikidata.get_entities([poi["qid"] for poi in pois])

        candidates: list[tuple[Attraction, int, bool]] = []
        for poi in pois:
            entity = entities.get(poi["qid"])
            popularity = entity.popularity if entity else 0
            if popularity < min_popularity:
                continue

            lat, lng = poi["lat"], poi["lng"]
            if not is_valid_coordinate(lat, lng) and entity is not None:
                lat, lng = entity.latitude, entity.longitude
            if not is_valid_coordinate(lat, lng):
                continue

            name = (entity.name if entity else "") or poi["name"]
            tags = poi["tags"]
            attraction = Attraction(
                id=f"osm-{poi['qid']}",
                name=name,
                type=map_osm_type_to_activity_type(tags),
                description=(entity.description if entity else "") or f"Discover {name}",
                duration_minutes=estimate_duration(tags),
                estimated_cost=0,
                coordinates=Coordinates(lat=lat, lng=lng),
                rating=popularity_to_rating(popularity),
                is_must_see=popularity >= MUST_SEE_POPULARITY,
                booking_required=False,
                booking_url=entity.official_website if entity else None,
                opening_hours=parse_osm_opening_hours(tags.get("opening_hours")) or DEFAULT_WINDOW,
                popularity_score=popularity,
                image_url=(
                    commons_image_url(entity.image_filename)
                    if entity and entity.image_filename
                    else None
                ),
                google_maps_url=maps_search_url(name),
                provider_name="OpenStreetMap + Wikidata",
            )
            candidates.append((attraction, popularity, self.rules.is_religious(name, tags)))

        candidates.sort(key=lambda item: item[1], reverse=True)
        return diversify_religious_sites(candidates, self.rules)

    def _fallback(
        self,
        key: str,
        destination: str,
        city_center: Coordinates,
        limit: int,
        cause: Exception,
    ) -> list[Attraction]:
        if self.places is not None and self.places.is_configured:
            try:
                found = self.places.search_attractions(
                    destination, city_center.lat, city_center.lng, SEARCH_RADIUS_KM
                )
            except UpstreamAPIError as e:
                logger.warning(f"Google Places fallback failed for '{destination}': {e}")
            else:
                found.sort(key=lambda item: item[0].popularity_score, reverse=True)
                # Review counts are not sitelink counts, so only the cap applies
                ranked = diversify_religious_sites(
                    [(a, a.popularity_score, religious) for a, religious in found],
                    self.rules,
                    apply_floor=False,
                )
                if ranked:
                    logger.info(f"Using {len(ranked)} Google Places attractions for '{destination}'")
                    return ranked[:limit]

        stale = self.cache.get_stale(key)
        if stale is not None and stale.attractions:
            logger.warning(f"Serving stale attractions for '{destination}' ({key})")
            return stale.attractions[:limit]

        raise AttractionSourcesUnavailable(
            f"No attraction source available for '{destination}': {cause}"
        )


_default_service: AttractionsService | None = None


def get_attractions_service() -> AttractionsService:
    global _default_service
    if _default_service is None:
        settings = get_settings()
        _default_service = AttractionsService(settings=settings, places=PlacesService(settings))
    return _default_service


def search_attractions(
    destination: str,
    city_center: Coordinates,
    limit: int = 50,
    min_popularity: int = 40,
) -> list[Attraction]:
    return get_attractions_service().search(destination, city_center, limit, min_popularity)
