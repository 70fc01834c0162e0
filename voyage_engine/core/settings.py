import os

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Settings(BaseModel):
    geocoder_url: str = os.getenv(
        "GEOCODER_URL", "https://nominatim.openstreetmap.org/search"
    )
    overpass_api_url: str = os.getenv(
        "OVERPASS_API_URL", "https://overpass-api.de/api/interpreter"
    )
    wikidata_api_url: str = os.getenv(
        "WIKIDATA_API_URL", "https://www.wikidata.org/w/api.php"
    )
    http_user_agent: str = os.getenv(
        "HTTP_USER_AGENT", "VoyageEngine/1.0 (travel planner)"
    )
    http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))
    overpass_timeout_seconds: float = float(os.getenv("OVERPASS_TIMEOUT_SECONDS", "35"))

    attraction_cache_backend: str = os.getenv("ATTRACTION_CACHE_BACKEND", "file")
    attraction_cache_dir: str = os.getenv(
        "ATTRACTION_CACHE_DIR", os.path.join(os.getcwd(), ".cache", "overpass-attractions")
    )
    attraction_cache_ttl_days: int = int(os.getenv("ATTRACTION_CACHE_TTL_DAYS", "30"))
    mongodb_uri: str = os.getenv("MONGODB_URI", "")
    database_name: str = os.getenv("DATABASE_NAME", "voyage_engine")

    wikidata_batch_size: int = int(os.getenv("WIKIDATA_BATCH_SIZE", "50"))
    wikidata_batch_delay_seconds: float = float(
        os.getenv("WIKIDATA_BATCH_DELAY_SECONDS", "0.2")
    )
    attraction_blocklist_path: str = os.getenv("ATTRACTION_BLOCKLIST_PATH", "")

    google_maps_api_key: str = os.getenv("GOOGLE_MAPS_API_KEY", "")
    allowed_origins: str = os.getenv("ALLOWED_ORIGINS", "")


def get_settings() -> Settings:
    return Settings()
