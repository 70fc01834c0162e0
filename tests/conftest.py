import pytest

from voyage_engine.core.city_index import CityIndex
from voyage_engine.core.city_resolver import CityResolver, GeocodeCache
from voyage_engine.core.schemas import Coordinates


class FakeGeocoder:
    """Answers from a fixed table and records every lookup."""

    def __init__(self, answers=None):
        self.answers = answers or {}
        self.calls = []

    def geocode(self, text):
        self.calls.append(text)
        return self.answers.get(text)


@pytest.fixture(scope="session")
def city_index():
    return CityIndex.from_file()


@pytest.fixture
def geocoder():
    return FakeGeocoder(
        {
            "Sintra": ("Sintra", Coordinates(lat=38.8029, lng=-9.3817)),
            "Capital of Catalonia": ("Barcelona", Coordinates(lat=41.38, lng=2.17)),
        }
    )


@pytest.fixture
def resolver(city_index, geocoder):
    return CityResolver(index=city_index, geocoder=geocoder, cache=GeocodeCache())
