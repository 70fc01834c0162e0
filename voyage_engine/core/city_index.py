"""
Static multilingual city dictionary and its inverted index.

The table maps a canonical ascii key (e.g. "london") to a display name,
coordinates and the city's name in a dozen locales and scripts. Every
variant points back to the same key, so "伦敦", "Londres" and "London"
compare equal once resolved.
"""

import json
import re
import unicodedata
from pathlib import Path
from typing import Any

from voyage_engine.core.schemas import CanonicalCity, Coordinates

DEFAULT_CITY_TABLE = Path(__file__).resolve().parent.parent / "data" / "cities.json"

# Combining diacritical marks block only, so Hangul, kana and Devanagari
# survive normalization untouched.
_DIACRITICS = re.compile("[\u0300-\u036f]")
_WHITESPACE = re.compile(r"\s+")


def normalize_city_text(text: str) -> str:
    """Trim, lowercase and strip Latin diacritics ("París" -> "paris")."""
    decomposed = unicodedata.normalize("NFD", text.strip().lower())
    return unicodedata.normalize("NFC", _DIACRITICS.sub("", decomposed))


def fallback_key(text: str) -> str:
    """Key used for cities missing from the table: normalized, no whitespace."""
    return _WHITESPACE.sub("", normalize_city_text(text))


def capitalize_city(text: str) -> str:
    trimmed = text.strip()
    if not trimmed:
        return ""
    return trimmed[0].upper() + trimmed[1:].lower()


class CityIndex:
    """Immutable lookup structure built once at startup."""

    def __init__(self, table: dict[str, dict[str, Any]]):
        self._table = table
        index: dict[str, str] = {}
        for key, data in table.items():
            index[key] = key
            for variants in data.get("translations", {}).values():
                for variant in variants:
                    index[variant.strip().lower()] = key
                    index[normalize_city_text(variant)] = key
        self._index = index

    @classmethod
    def from_file(cls, path: str | Path = DEFAULT_CITY_TABLE) -> "CityIndex":
        with open(path, encoding="utf-8") as fh:
            return cls(json.load(fh))

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, text: str) -> bool:
        return self.lookup(text) is not None

    def lookup(self, text: str) -> CanonicalCity | None:
        """Return a high-confidence match from the table, or None."""
        if not text or not text.strip():
            return None

        key = self._index.get(normalize_city_text(text)) or self._index.get(
            text.strip().lower()
        )
        if key is None:
            return None

        data = self._table[key]
        coords = data.get("coordinates")
        return CanonicalCity(
            key=key,
            display_name=data["display_name"],
            original=text,
            coordinates=Coordinates(**coords) if coords else None,
            confidence="high",
        )

    def resolve_local(self, text: str) -> CanonicalCity:
        """Resolve without any network access; misses degrade to low confidence."""
        match = self.lookup(text)
        if match is not None:
            return match

        return CanonicalCity(
            key=fallback_key(text),
            display_name=capitalize_city(text),
            original=text,
            confidence="low",
        )

    def is_known(self, text: str) -> bool:
        return self.lookup(text) is not None

    def coordinates_for(self, text: str) -> Coordinates | None:
        match = self.lookup(text)
        return match.coordinates if match else None

    def supported_cities(self) -> list[str]:
        return list(self._table.keys())

    def translations_for(self, text: str) -> dict[str, list[str]] | None:
        match = self.lookup(text)
        if match is None:
            return None
        return {
            locale: list(variants)
            for locale, variants in self._table[match.key].get("translations", {}).items()
        }


_default_index: CityIndex | None = None


def get_city_index() -> CityIndex:
    """Process-wide index loaded from the bundled table on first use."""
    global _default_index
    if _default_index is None:
        _default_index = CityIndex.from_file()
    return _default_index
