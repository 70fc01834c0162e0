"""
City resolution: static dictionary first, geocoder fallback for unknown names.
"""

import logging
import threading

import requests

from voyage_engine.core.city_index import CityIndex, fallback_key, get_city_index
from voyage_engine.core.schemas import CanonicalCity, Coordinates
from voyage_engine.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class GeocodeCache:
    """
    In-memory map of raw lowercased input -> resolved city.

    Entries never expire within the process; the set of distinct city strings
    seen while planning trips stays small.
    """

    def __init__(self):
        self._entries: dict[str, CanonicalCity] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(text: str) -> str:
        return text.strip().lower()

    def get(self, text: str) -> CanonicalCity | None:
        with self._lock:
            return self._entries.get(self.make_key(text))

    def put(self, text: str, city: CanonicalCity) -> None:
        with self._lock:
            self._entries[self.make_key(text)] = city

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class NominatimGeocoder:
    """Free-text geocoding through the OpenStreetMap Nominatim search API."""

    def __init__(self, settings: Settings | None = None, session: requests.Session | None = None):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()

    def geocode(self, text: str) -> tuple[str, Coordinates] | None:
        """
        Look up a place name.

        Args:
            text: Free text in any language (e.g. "Lisboa", "ميلانو")

        Returns:
            (city name, coordinates) from the first result, or None when the
            geocoder has no match or cannot be reached
        """
        params = {"q": text, "format": "json", "limit": 1, "accept-language": "en"}
        headers = {"User-Agent": self.settings.http_user_agent}

        try:
            response = self.session.get(
                self.settings.geocoder_url,
                params=params,
                headers=headers,
                timeout=self.settings.http_timeout_seconds,
            )
            response.raise_for_status()
            results = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Geocoding failed for '{text}': {e}")
            return None

        if not results:
            logger.info(f"Geocoder has no match for '{text}'")
            return None

        first = results[0]
        try:
            city_name = first["display_name"].split(",")[0].strip()
            coords = Coordinates(lat=float(first["lat"]), lng=float(first["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Unexpected geocoder payload for '{text}': {e}")
            return None

        if not city_name:
            return None
        return city_name, coords


class CityResolver:
    """Resolves free-text city names to a canonical identity. Never raises."""

    def __init__(
        self,
        index: CityIndex | None = None,
        geocoder: NominatimGeocoder | None = None,
        cache: GeocodeCache | None = None,
    ):
        self.index = index if index is not None else get_city_index()
        self.geocoder = geocoder
        self.cache = cache if cache is not None else GeocodeCache()

    def resolve(self, text: str) -> CanonicalCity:
        local = self.index.resolve_local(text)
        if local.confidence == "high" or not text.strip():
            return local

        cached = self.cache.get(text)
        if cached is not None:
            return cached.model_copy(update={"original": text})

        resolved = local
        if self.geocoder is not None:
            found = self.geocoder.geocode(text.strip())
            if found is not None:
                city_name, coords = found
                known = self.index.lookup(city_name)
                resolved = CanonicalCity(
                    key=known.key if known else fallback_key(city_name),
                    display_name=city_name,
                    original=text,
                    coordinates=coords,
                    confidence="medium",
                )
                logger.info(f"Geocoded '{text}' -> '{resolved.key}'")

        # Low-confidence results are cached too, so an unreachable geocoder is
        # asked at most once per name.
        self.cache.put(text, resolved)
        return resolved


_default_resolver: CityResolver | None = None


def get_city_resolver() -> CityResolver:
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = CityResolver(geocoder=NominatimGeocoder())
    return _default_resolver


def resolve_city(text: str) -> CanonicalCity:
    return get_city_resolver().resolve(text)
