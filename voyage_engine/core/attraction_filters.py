"""
Noise filtering, categorization and diversification for discovered POIs.

The blocklists live in a JSON file (bundled default, or one named by
ATTRACTION_BLOCKLIST_PATH) so false positives can be fixed without a release.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from voyage_engine.core.schemas import ActivityType

logger = logging.getLogger(__name__)

DEFAULT_BLOCKLIST = Path(__file__).resolve().parent.parent / "data" / "attraction_blocklist.json"


@dataclass
class ExclusionRules:
    excluded_osm_types: set[str] = field(default_factory=set)
    name_patterns: list[re.Pattern] = field(default_factory=list)
    minor_memorial_types: set[str] = field(default_factory=set)
    memorial_keep_pattern: re.Pattern | None = None
    religious_building_pattern: re.Pattern | None = None
    religious_amenity_pattern: re.Pattern | None = None
    religious_name_pattern: re.Pattern | None = None
    max_religious_sites: int = 3
    min_religious_popularity: int = 80

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExclusionRules":
        def compile_optional(pattern: str | None) -> re.Pattern | None:
            return re.compile(pattern, re.IGNORECASE) if pattern else None

        return cls(
            excluded_osm_types=set(data.get("excluded_osm_types", [])),
            name_patterns=[
                re.compile(p, re.IGNORECASE) for p in data.get("excluded_name_patterns", [])
            ],
            minor_memorial_types=set(data.get("minor_memorial_types", [])),
            memorial_keep_pattern=compile_optional(data.get("memorial_keep_pattern")),
            religious_building_pattern=compile_optional(data.get("religious_building_pattern")),
            religious_amenity_pattern=compile_optional(data.get("religious_amenity_pattern")),
            religious_name_pattern=compile_optional(data.get("religious_name_pattern")),
            max_religious_sites=int(data.get("max_religious_sites", 3)),
            min_religious_popularity=int(data.get("min_religious_popularity", 80)),
        )

    @classmethod
    def load(cls, path: str | Path | None = None) -> "ExclusionRules":
        """Load rules from a JSON file; the bundled list is used when no path is given."""
        path = Path(path) if path else DEFAULT_BLOCKLIST
        with open(path, encoding="utf-8") as fh:
            rules = cls.from_dict(json.load(fh))
        logger.debug(f"Loaded {len(rules.name_patterns)} name patterns from {path}")
        return rules

    def should_exclude(self, name: str, tags: dict[str, str]) -> bool:
        tourism = tags.get("tourism", "")
        historic = tags.get("historic", "")

        if tourism in self.excluded_osm_types or historic in self.excluded_osm_types:
            return True

        # Minor person memorials and street art, unless the name marks a real site
        if historic in self.minor_memorial_types and not tourism:
            keep = self.memorial_keep_pattern and self.memorial_keep_pattern.search(name)
            if not keep:
                return True

        return any(pattern.search(name) for pattern in self.name_patterns)

    def is_religious(self, name: str, tags: dict[str, str]) -> bool:
        building = tags.get("building", "")
        amenity = tags.get("amenity", "")
        checks = (
            (self.religious_building_pattern, building),
            (self.religious_amenity_pattern, amenity),
            (self.religious_name_pattern, name),
        )
        return any(pattern is not None and value and pattern.search(value) for pattern, value in checks)


def map_osm_type_to_activity_type(tags: dict[str, str]) -> ActivityType:
    tourism = tags.get("tourism", "")
    leisure = tags.get("leisure", "")
    amenity = tags.get("amenity", "")

    if tourism in ("museum", "gallery"):
        return "culture"
    if tourism == "viewpoint":
        return "nature"
    if tourism == "theme_park":
        return "adventure"
    if tourism == "attraction" or tags.get("historic"):
        return "culture"
    if leisure in ("park", "garden", "nature_reserve"):
        return "nature"
    if leisure == "beach_resort" or tags.get("natural") == "beach":
        return "beach"
    if amenity == "marketplace":
        return "shopping"
    return "culture"


def estimate_duration(tags: dict[str, str]) -> int:
    """Visit duration in minutes from OSM tags."""
    tourism = tags.get("tourism", "")
    historic = tags.get("historic", "")
    leisure = tags.get("leisure", "")
    building = tags.get("building", "")

    if tourism == "museum":
        return 120
    if building in ("cathedral", "basilica"):
        return 60
    if building == "church":
        return 30
    if tourism == "viewpoint":
        return 30
    if leisure == "park":
        return 90
    if historic == "castle":
        return 90
    if historic == "monument":
        return 20
    return 60


def diversify_religious_sites(
    ranked: list[tuple[Any, int, bool]], rules: ExclusionRules, *, apply_floor: bool = True
) -> list[Any]:
    """
    Keep at most max_religious_sites religious sites, each above the higher
    popularity floor.

    Args:
        ranked: (item, popularity, is_religious) tuples sorted by popularity
        apply_floor: False when popularity is not a sitelink count; only the
            cap is enforced then

    Returns:
        The items that survive, in the same order
    """
    kept = []
    religious_count = 0
    for item, popularity, religious in ranked:
        if religious:
            if apply_floor and popularity < rules.min_religious_popularity:
                continue
            religious_count += 1
            if religious_count > rules.max_religious_sites:
                continue
        kept.append(item)
    return kept
