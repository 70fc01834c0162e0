import requests

from voyage_engine.core.city_index import (
    CityIndex,
    capitalize_city,
    fallback_key,
    normalize_city_text,
)
from voyage_engine.core.city_resolver import CityResolver, GeocodeCache, NominatimGeocoder
from voyage_engine.core.settings import Settings


def test_normalize_strips_diacritics_only():
    assert normalize_city_text("  Málaga ") == "malaga"
    assert normalize_city_text("São Paulo") == "sao paulo"
    assert normalize_city_text("東京") == "東京"


def test_fallback_key_removes_whitespace():
    assert fallback_key("Saint  Malo ") == "saintmalo"
    assert capitalize_city("saint MALO") == "Saint malo"


def test_translations_share_one_key(city_index):
    variants = ["Milan", "Milano", "Mailand", "milán", "米兰"]
    keys = {city_index.resolve_local(v).key for v in variants}
    assert keys == {"milan"}


def test_lookup_hit_is_high_confidence(city_index):
    city = city_index.lookup("Lisboa")
    assert city.key == "lisbon"
    assert city.display_name == "Lisbon"
    assert city.original == "Lisboa"
    assert city.confidence == "high"
    assert city.coordinates is not None


def test_resolve_local_miss_is_low_confidence(city_index):
    city = city_index.resolve_local("saint malo")
    assert city.key == "saintmalo"
    assert city.display_name == "Saint malo"
    assert city.confidence == "low"
    assert city.coordinates is None


def test_empty_input_is_empty_low_result(city_index):
    city = city_index.resolve_local("   ")
    assert city.key == ""
    assert city.confidence == "low"


def test_index_helpers(city_index):
    assert len(city_index) == 45
    assert "Parigi" in city_index
    assert city_index.is_known("nueva york")
    assert city_index.coordinates_for("Unknownville") is None
    assert "paris" in city_index.supported_cities()
    assert "londres" in city_index.translations_for("London")["fr"]


def test_index_built_from_explicit_table():
    index = CityIndex(
        {"caen": {"display_name": "Caen", "translations": {"fr": ["Caen"]}}}
    )
    assert index.lookup("CAEN").key == "caen"
    assert index.lookup("paris") is None


def test_local_hit_never_calls_geocoder(resolver, geocoder):
    city = resolver.resolve("Barcelone")
    assert city.key == "barcelona"
    assert city.confidence == "high"
    assert geocoder.calls == []


def test_geocoder_result_is_medium_and_cached(resolver, geocoder):
    first = resolver.resolve("Sintra")
    second = resolver.resolve("  sintra ")

    assert first.confidence == "medium"
    assert first.key == "sintra"
    assert first.coordinates.lat == 38.8029
    assert second.key == "sintra"
    assert second.original == "  sintra "
    assert geocoder.calls == ["Sintra"]


def test_geocoded_name_maps_to_known_key(resolver):
    city = resolver.resolve("Capital of Catalonia")
    assert city.key == "barcelona"
    assert city.confidence == "medium"


def test_geocoder_miss_is_cached_as_low(resolver, geocoder):
    assert resolver.resolve("Atlantis").confidence == "low"
    assert resolver.resolve("atlantis").key == "atlantis"
    assert geocoder.calls == ["Atlantis"]


def test_resolver_without_geocoder(city_index):
    resolver = CityResolver(index=city_index, cache=GeocodeCache())
    assert resolver.resolve("Sintra").confidence == "low"
    assert len(resolver.cache) == 1


class _Response:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


class _Session:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.requests.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        if self.error:
            raise self.error
        return self.response


def test_nominatim_parses_first_result():
    session = _Session(
        _Response([{"display_name": "Sintra, Lisbon, Portugal", "lat": "38.80", "lon": "-9.38"}])
    )
    geocoder = NominatimGeocoder(Settings(), session=session)

    name, coords = geocoder.geocode("Sintra")

    assert name == "Sintra"
    assert coords.lng == -9.38
    sent = session.requests[0]
    assert sent["params"]["limit"] == 1
    assert sent["headers"]["User-Agent"]
    assert sent["timeout"] == Settings().http_timeout_seconds


def test_nominatim_network_error_returns_none():
    session = _Session(error=requests.ConnectionError("down"))
    assert NominatimGeocoder(Settings(), session=session).geocode("Sintra") is None


def test_nominatim_empty_or_bad_payload_returns_none():
    assert NominatimGeocoder(Settings(), session=_Session(_Response([]))).geocode("x") is None
    bad = _Session(_Response([{"display_name": "X"}]))
    assert NominatimGeocoder(Settings(), session=bad).geocode("x") is None
    failed = _Session(_Response({}, status=503))
    assert NominatimGeocoder(Settings(), session=failed).geocode("x") is None
