"""
Time-bounded cache for ranked attraction lists.

One document per key (a coarse geo-cell such as "overpass-48.86-2.35"),
holding the full ranked list and the time it was fetched. Entries older than
the TTL are misses for normal reads but can still be served when every
upstream source fails.
"""

import json
import logging
import os
import re
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Protocol

from pydantic import ValidationError
from pymongo import MongoClient

from voyage_engine.core.schemas import Attraction, AttractionCacheEntry
from voyage_engine.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class CacheStore(Protocol):
    def read(self, key: str) -> dict[str, Any] | None: ...

    def write(self, key: str, document: dict[str, Any]) -> None: ...


class FileCacheStore:
    """One JSON file per key, replaced atomically on write."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def read(self, key: str) -> dict[str, Any] | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as fh:
            return json.load(fh)

    def write(self, key: str, document: dict[str, Any]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)

        # Readers only ever see the old file or the complete new one.
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


class MongoCacheStore:
    """Cache documents in a MongoDB collection, upserted per key."""

    def __init__(self, collection: Any):
        self.collection = collection

    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoCacheStore":
        if not settings.mongodb_uri:
            raise ValueError("MONGODB_URI environment variable is required for the mongo cache")

        client = MongoClient(
            settings.mongodb_uri,
            serverSelectionTimeoutMS=5000,  # 5 second timeout
            connectTimeoutMS=10000,  # 10 second connection timeout
            socketTimeoutMS=20000,  # 20 second socket timeout
            retryWrites=True,
            retryReads=True,
        )
        collection = client[settings.database_name].attraction_cache
        return cls(collection)

    def read(self, key: str) -> dict[str, Any] | None:
        doc = self.collection.find_one({"key": key})
        if doc:
            doc.pop("_id", None)  # Remove MongoDB ObjectId
        return doc

    def write(self, key: str, document: dict[str, Any]) -> None:
        self.collection.update_one({"key": key}, {"$set": document}, upsert=True)


class AttractionCache:
    """Attraction lists with a TTL and stale reads for the error path."""

    def __init__(
        self,
        store: CacheStore,
        ttl: timedelta = timedelta(days=30),
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.ttl = ttl
        self.clock = clock

    def _load(self, key: str) -> AttractionCacheEntry | None:
        try:
            document = self.store.read(key)
        except (OSError, ValueError) as e:
            logger.warning(f"Cache read failed for '{key}': {e}")
            return None
        except Exception as e:
            logger.warning(f"Cache store unavailable for '{key}': {e}")
            return None

        if document is None:
            return None

        try:
            return AttractionCacheEntry.model_validate(document)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed cache entry '{key}': {e.error_count()} errors")
            return None

    def is_fresh(self, entry: AttractionCacheEntry) -> bool:
        age = self.clock() - entry.fetched_at
        return timedelta(0) <= age < self.ttl

    def get(self, key: str) -> AttractionCacheEntry | None:
        """Fresh entry for a key, or None when missing, expired or unreadable."""
        entry = self._load(key)
        if entry is None or not self.is_fresh(entry):
            return None
        return entry

    def get_stale(self, key: str) -> AttractionCacheEntry | None:
        """Entry regardless of age, for use when no upstream source answered."""
        return self._load(key)

    def put(self, key: str, attractions: list[Attraction], destination: str = "") -> bool:
        entry = AttractionCacheEntry(
            key=key,
            destination=destination,
            fetched_at=self.clock(),
            attractions=attractions,
        )
        try:
            self.store.write(key, entry.model_dump(mode="json"))
            return True
        except Exception as e:
            logger.warning(f"Cache write failed for '{key}': {e}")
            return False


def build_attraction_cache(settings: Settings | None = None) -> AttractionCache:
    settings = settings or get_settings()
    ttl = timedelta(days=settings.attraction_cache_ttl_days)

    if settings.attraction_cache_backend == "mongo":
        return AttractionCache(MongoCacheStore.from_settings(settings), ttl=ttl)
    return AttractionCache(FileCacheStore(settings.attraction_cache_dir), ttl=ttl)
