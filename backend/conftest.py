import pytest

from catalog import ParkingCatalog
from models import ParkingLocation


@pytest.fixture
def make_location():
    """Factory for ParkingLocation records with sensible defaults"""
    def _make(**overrides) -> ParkingLocation:
        record = {
            "id": "test-lot",
            "name": "Test Lot",
            "kind": "lot",
            "total_spots": 10,
            "available_spots": 5,
            "coordinates": {"latitude": 44.2312, "longitude": -76.4860},
        }
        record.update(overrides)
        return ParkingLocation.model_validate(record)
    return _make


@pytest.fixture
def seeded_catalog():
    """Fresh downtown Kingston catalog; mutations don't leak between tests"""
    return ParkingCatalog.seeded()
