import hashlib

import pytest
import requests

from voyage_engine.core.errors import UpstreamAPIError
from voyage_engine.core.overpass_client import (
    OverpassClient,
    build_overpass_query,
    element_coordinates,
)
from voyage_engine.core.settings import Settings
from voyage_engine.core.wikidata_client import WikidataClient, commons_image_url, parse_entity


def wikidata_entity(qid, sitelinks=3, label_en=None, label_fr=None, claims=None):
    labels = {}
    if label_en:
        labels["en"] = {"language": "en", "value": label_en}
    if label_fr:
        labels["fr"] = {"language": "fr", "value": label_fr}
    return {
        "id": qid,
        "labels": labels,
        "descriptions": {"en": {"value": f"description of {qid}"}},
        "sitelinks": {f"wiki{i}": {} for i in range(sitelinks)},
        "claims": claims or {},
    }


class _Response:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


class WikidataSession:
    """Serves entities for requested ids; listed batch numbers fail."""

    def __init__(self, failing_batches=()):
        self.failing_batches = set(failing_batches)
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append(params)
        if len(self.calls) - 1 in self.failing_batches:
            raise requests.Timeout("slow")
        ids = params["ids"].split("|")
        return _Response(
            {"entities": {qid: wikidata_entity(qid, label_en=f"Name {qid}") for qid in ids}}
        )


def test_parse_entity_prefers_english():
    entity = wikidata_entity(
        "Q243",
        sitelinks=180,
        label_en="Eiffel Tower",
        label_fr="tour Eiffel",
        claims={
            "P625": [{"mainsnak": {"datavalue": {"value": {"latitude": 48.858, "longitude": 2.294}}}}],
            "P18": [{"mainsnak": {"datavalue": {"value": "Tour Eiffel.jpg"}}}],
            "P856": [{"mainsnak": {"datavalue": {"value": "https://www.toureiffel.paris"}}}],
        },
    )
    parsed = parse_entity("Q243", entity)

    assert parsed.name == "Eiffel Tower"
    assert parsed.name_fr == "tour Eiffel"
    assert parsed.popularity == 180
    assert parsed.latitude == 48.858
    assert parsed.image_filename == "Tour Eiffel.jpg"
    assert parsed.official_website == "https://www.toureiffel.paris"


def test_parse_entity_french_fallback_and_missing():
    parsed = parse_entity("Q1", wikidata_entity("Q1", label_fr="Pont Neuf"))
    assert parsed.name == "Pont Neuf"
    assert parsed.latitude is None
    assert parse_entity("Q404", {"id": "Q404", "missing": ""}) is None


def test_commons_image_url_uses_md5_path():
    digest = hashlib.md5(b"Tour_Eiffel.jpg").hexdigest()
    url = commons_image_url("Tour Eiffel.jpg")
    assert f"/thumb/{digest[0]}/{digest[:2]}/Tour_Eiffel.jpg/400px-Tour_Eiffel.jpg" in url


def test_entities_fetched_in_batches_of_fifty():
    session = WikidataSession()
    sleeps = []
    client = WikidataClient(Settings(), session=session, sleep=sleeps.append)

    qids = [f"Q{i}" for i in range(1, 121)]
    result = client.get_entities(qids + ["Q1", ""])

    assert len(result) == 120
    assert [len(call["ids"].split("|")) for call in session.calls] == [50, 50, 20]
    assert session.calls[0]["languages"] == "en|fr"
    assert len(sleeps) == 2


def test_failed_batch_is_skipped():
    session = WikidataSession(failing_batches={0})
    client = WikidataClient(Settings(), session=session, sleep=lambda _: None)

    result = client.get_entities([f"Q{i}" for i in range(1, 61)])

    assert "Q1" not in result
    assert "Q51" in result
    assert len(result) == 10


def test_every_batch_failing_raises():
    session = WikidataSession(failing_batches={0, 1})
    client = WikidataClient(Settings(), session=session, sleep=lambda _: None)

    with pytest.raises(UpstreamAPIError) as exc:
        client.get_entities([f"Q{i}" for i in range(1, 61)])
    assert exc.value.provider == "wikidata"
    assert len(session.calls) == 2


def test_no_ids_means_no_requests():
    session = WikidataSession()
    assert WikidataClient(Settings(), session=session).get_entities([]) == {}
    assert session.calls == []


def test_batch_size_is_capped():
    client = WikidataClient(Settings(wikidata_batch_size=500), session=WikidataSession())
    assert client.batch_size == 50


def test_overpass_query_covers_box_and_tags():
    query = build_overpass_query(48.8566, 2.3522, radius_km=10)

    assert query.startswith("[out:json][timeout:30];")
    assert "(48.766600,2.262200,48.946600,2.442200)" in query
    assert 'node["tourism"]["wikidata"]["name"]' in query
    assert 'way["bridge"="yes"]["wikidata"]["name"]' in query
    assert 'node["bridge"' not in query
    assert query.rstrip().endswith("out center body;")


def test_element_coordinates_for_nodes_and_ways():
    assert element_coordinates({"lat": 1.5, "lon": 2.5}) == (1.5, 2.5)
    assert element_coordinates({"center": {"lat": 3.0, "lon": 4.0}}) == (3.0, 4.0)
    assert element_coordinates({"tags": {}}) == (None, None)


class OverpassSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.posted = []

    def post(self, url, data=None, headers=None, timeout=None):
        self.posted.append(data)
        if self.error:
            raise self.error
        return self.response


def test_overpass_client_returns_elements():
    session = OverpassSession(_Response({"elements": [{"type": "node", "id": 1}]}))
    elements = OverpassClient(Settings(), session=session).query(41.39, 2.17)
    assert elements == [{"type": "node", "id": 1}]
    assert "[out:json]" in session.posted[0]["data"]


@pytest.mark.parametrize(
    "session",
    [
        OverpassSession(error=requests.ConnectionError("refused")),
        OverpassSession(_Response({}, status=504)),
        OverpassSession(_Response([1, 2])),
        OverpassSession(_Response({"elements": "none"})),
    ],
)
def test_overpass_failures_raise_upstream_error(session):
    with pytest.raises(UpstreamAPIError) as exc:
        OverpassClient(Settings(), session=session).query(41.39, 2.17)
    assert exc.value.provider == "overpass"
