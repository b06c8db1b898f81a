"""Pytest configuration and shared fixtures."""

from unittest.mock import Mock

import pytest

from models.place import Place
from services.place_service import PlaceService, assign_geohash
from utils.cache import PointLookupCache
from utils.storage import InMemoryStorage

TEST_TABLE = "workbru-places-test"

# San Francisco City Hall area
SF_LAT = 37.7749
SF_LNG = -122.4194


class FakeClock:
    """Manually advanced clock for cache TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_place_item(place_id: str, name: str, latitude: float, longitude: float, **extra):
    """Build a stored place item with a correct geohash."""
    place = Place(
        id=place_id,
        name=name,
        address=f"{name} address",
        location={"latitude": latitude, "longitude": longitude},
        attributes={"noise_level": "moderate"},
        **extra,
    )
    return assign_geohash(place).to_item()


@pytest.fixture
def fake_clock():
    """Create a fake clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture
def place_cache(fake_clock):
    """Create a lookup cache with a 60s TTL driven by the fake clock."""
    return PointLookupCache(ttl_seconds=60, timer=fake_clock)


@pytest.fixture
def memory_storage():
    """Create an empty in-memory store."""
    return InMemoryStorage()


@pytest.fixture
def place_service(memory_storage, place_cache):
    """Create a PlaceService over the in-memory store."""
    service = PlaceService(memory_storage, place_cache, table_name=TEST_TABLE)
    yield service
    service.close()


@pytest.fixture
def sample_place_data():
    """Create a sample place payload for testing."""
    return {
        "name": "Test Place",
        "address": "123 Test St",
        "description": "A test place",
        "location": {"latitude": SF_LAT, "longitude": SF_LNG},
        "amenities": {"wifi": True, "coffee": True, "outlets": True},
        "attributes": {
            "noise_level": "moderate",
            "parking": "lot",
            "capacity": "small",
            "rating": 3.0,
            "open_late": True,
            "seating_comfort": 2,
            "coffee_rating": 3.75,
        },
        "opening_hours": [{"day": "monday", "open": "08:00", "close": "18:00"}],
    }


@pytest.fixture
def sf_places(memory_storage):
    """Seed the in-memory store with places around San Francisco.

    Distances from (SF_LAT, SF_LNG): city-hall ~0.5km, mission ~1.7km,
    oakland ~13.4km, san-jose ~67.5km.
    """
    items = [
        make_place_item("city-hall", "City Hall Cafe", 37.7793, -122.4193),
        make_place_item("mission", "Mission Coworking", 37.7599, -122.4148),
        make_place_item("oakland", "Oakland Roasters", 37.8044, -122.2712),
        make_place_item("san-jose", "San Jose Commons", 37.3382, -121.8863),
    ]
    for item in items:
        memory_storage.put(TEST_TABLE, item)
    return items


@pytest.fixture
def mock_storage():
    """Create a mock storage collaborator for testing."""
    storage = Mock()
    storage.get.return_value = None
    storage.put.return_value = None
    storage.delete.return_value = None
    storage.query_by_index.return_value = []
    storage.scan.return_value = []
    return storage
