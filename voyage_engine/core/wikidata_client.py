"""
Wikidata enrichment: localized names, descriptions and a popularity proxy.
"""

import hashlib
import logging
import time
from typing import Any, Callable
from urllib.parse import quote

import requests
from pydantic import BaseModel

from voyage_engine.core.errors import UpstreamAPIError
from voyage_engine.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)

MAX_IDS_PER_REQUEST = 50

COORDINATE_CLAIM = "P625"
IMAGE_CLAIM = "P18"
OFFICIAL_WEBSITE_CLAIM = "P856"


class WikidataEntity(BaseModel):
    qid: str
    name: str = ""
    name_en: str = ""
    name_fr: str = ""
    description: str = ""
    popularity: int = 0  # number of sitelinks (language editions)
    image_filename: str | None = None
    official_website: str | None = None
    latitude: float | None = None
    longitude: float | None = None


def _first_claim_value(entity: dict[str, Any], prop: str) -> Any:
    claims = entity.get("claims") or {}
    try:
        return claims[prop][0]["mainsnak"]["datavalue"]["value"]
    except (KeyError, IndexError, TypeError):
        return None


def parse_entity(qid: str, entity: dict[str, Any]) -> WikidataEntity | None:
    """Flatten a wbgetentities record; missing entities return None."""
    if "missing" in entity:
        return None

    labels = entity.get("labels") or {}
    descriptions = entity.get("descriptions") or {}
    name_en = (labels.get("en") or {}).get("value", "")
    name_fr = (labels.get("fr") or {}).get("value", "")
    desc_en = (descriptions.get("en") or {}).get("value", "")
    desc_fr = (descriptions.get("fr") or {}).get("value", "")

    coords = _first_claim_value(entity, COORDINATE_CLAIM)
    latitude = longitude = None
    if isinstance(coords, dict):
        latitude = coords.get("latitude")
        longitude = coords.get("longitude")

    image = _first_claim_value(entity, IMAGE_CLAIM)
    website = _first_claim_value(entity, OFFICIAL_WEBSITE_CLAIM)

    return WikidataEntity(
        qid=qid,
        name=name_en or name_fr,
        name_en=name_en,
        name_fr=name_fr,
        description=desc_en or desc_fr,
        popularity=len(entity.get("sitelinks") or {}),
        image_filename=image if isinstance(image, str) else None,
        official_website=website if isinstance(website, str) else None,
        latitude=latitude,
        longitude=longitude,
    )


def commons_image_url(filename: str, width: int = 400) -> str:
    """Thumbnail URL on Wikimedia Commons for a P18 file name."""
    normalized = filename.replace(" ", "_")
    digest = hashlib.md5(normalized.encode("utf-8")).hexdigest()
    encoded = quote(normalized)
    return (
        "https://upload.wikimedia.org/wikipedia/commons/thumb/"
        f"{digest[0]}/{digest[:2]}/{encoded}/{width}px-{encoded}"
    )


class WikidataClient:
    """Batched wbgetentities lookups, rate limited between batches."""

    def __init__(
        self,
        settings: Settings | None = None,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self.sleep = sleep
        self.batch_size = max(1, min(self.settings.wikidata_batch_size, MAX_IDS_PER_REQUEST))

    def _fetch_batch(self, batch: list[str]) -> dict[str, Any]:
        params = {
            "action": "wbgetentities",
            "ids": "|".join(batch),
            "format": "json",
            "languages": "en|fr",
            "props": "labels|descriptions|sitelinks|claims",
        }
        response = self.session.get(
            self.settings.wikidata_api_url,
            params=params,
            headers={"User-Agent": self.settings.http_user_agent},
            timeout=self.settings.http_timeout_seconds,
        )
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError("unexpected response body")
        return data.get("entities") or {}

    def get_entities(self, qids: list[str]) -> dict[str, WikidataEntity]:
        """
        Look up entities in batches of at most 50 ids.

        A failed batch is logged and skipped; its ids are simply absent from
        the result.

        Args:
            qids: Wikidata ids such as ["Q243", "Q90"]

        Returns:
            Mapping of QID to parsed entity

        Raises:
            UpstreamAPIError: every batch failed
        """
        result: dict[str, WikidataEntity] = {}
        unique = list(dict.fromkeys(q for q in qids if q))
        batches = failed = 0

        for offset in range(0, len(unique), self.batch_size):
            batch = unique[offset : offset + self.batch_size]
            batches += 1
            try:
                entities = self._fetch_batch(batch)
            except (requests.RequestException, ValueError) as e:
                logger.warning(f"Wikidata batch failed (offset {offset}, {len(batch)} ids): {e}")
                failed += 1
                entities = {}

            for qid, entity in entities.items():
                parsed = parse_entity(qid, entity)
                if parsed is not None:
                    result[qid] = parsed

            if offset + self.batch_size < len(unique):
                self.sleep(self.settings.wikidata_batch_delay_seconds)

        if batches and failed == batches:
            raise UpstreamAPIError("wikidata", f"all {batches} batches failed")

        logger.info(f"Wikidata enriched {len(result)}/{len(unique)} entities")
        return result
