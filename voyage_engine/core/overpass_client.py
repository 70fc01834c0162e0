"""
OpenStreetMap POI discovery through the Overpass API.
"""

import logging
from typing import Any

import requests

from voyage_engine.core.errors import UpstreamAPIError
from voyage_engine.core.geo_utils import bounding_box
from voyage_engine.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# Tag families worth visiting; each selector is emitted for nodes and ways and
# only matches elements that link to Wikidata, so every result can be enriched.
POI_SELECTORS = [
    '["tourism"]',
    '["historic"]',
    '["leisure"="park"]',
    '["leisure"="garden"]',
    '["amenity"="theatre"]',
    '["amenity"="marketplace"]',
]
WAY_ONLY_SELECTORS = ['["bridge"="yes"]']


def build_overpass_query(lat: float, lng: float, radius_km: float = 10, timeout: int = 30) -> str:
    """Overpass QL query for linked, named POIs in a box around a point."""
    south, west, north, east = bounding_box(lat, lng, radius_km)
    bbox = f"{south:.6f},{west:.6f},{north:.6f},{east:.6f}"

    lines = []
    for selector in POI_SELECTORS:
        for element in ("node", "way"):
            lines.append(f'  {element}{selector}["wikidata"]["name"]({bbox});')
    for selector in WAY_ONLY_SELECTORS:
        lines.append(f'  way{selector}["wikidata"]["name"]({bbox});')

    body = "\n".join(lines)
    return f"[out:json][timeout:{timeout}];\n(\n{body}\n);\nout center body;"


def element_coordinates(element: dict[str, Any]) -> tuple[float | None, float | None]:
    """Nodes carry lat/lon directly; ways carry a computed center."""
    if element.get("lat") is not None and element.get("lon") is not None:
        return element["lat"], element["lon"]
    center = element.get("center") or {}
    return center.get("lat"), center.get("lon")


class OverpassClient:
    """Client for the Overpass interpreter endpoint."""

    def __init__(self, settings: Settings | None = None, session: requests.Session | None = None):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()

    def query(self, lat: float, lng: float, radius_km: float = 10) -> list[dict[str, Any]]:
        """
        Fetch POI elements around a city center.

        Args:
            lat: Latitude of the city center
            lng: Longitude of the city center
            radius_km: Half-width of the search box in kilometers

        Returns:
            Raw Overpass elements (each with lat/lon or center, and tags)

        Raises:
            UpstreamAPIError: if Overpass cannot be reached or answers with an error
        """
        query = build_overpass_query(lat, lng, radius_km)

        try:
            response = self.session.post(
                self.settings.overpass_api_url,
                data={"data": query},
                headers={"User-Agent": self.settings.http_user_agent},
                timeout=self.settings.overpass_timeout_seconds,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise UpstreamAPIError("overpass", str(e)) from e

        if not isinstance(data, dict) or not isinstance(data.get("elements", []), list):
            raise UpstreamAPIError("overpass", "unexpected response body")

        elements = data.get("elements", [])
        logger.info(f"Overpass returned {len(elements)} elements around ({lat:.4f}, {lng:.4f})")
        return elements
