"""
In-memory location catalog.

The catalog is an explicitly owned object: the service builds one at startup
and hands it to every evaluator, merge and chat call. Entries are never
removed; only available_spots changes at runtime.
"""
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from logging_config import get_logger
from models import ParkingLocation

logger = get_logger(__name__)


class ParkingCatalog:
    """Ordered set of parking locations keyed by id"""

    def __init__(self, locations: Iterable[ParkingLocation]):
        self._locations: List[ParkingLocation] = []
        self._by_id: Dict[str, ParkingLocation] = {}

        for location in locations:
            if location.id in self._by_id:
                raise ValueError(f"Duplicate parking location id: {location.id}")
            self._locations.append(location)
            self._by_id[location.id] = location

    @classmethod
    def seeded(cls) -> "ParkingCatalog":
        """Fresh catalog built from the downtown Kingston seed data"""
        from parking_data import build_seed_locations

        catalog = cls(build_seed_locations())
        logger.info(f"Seeded parking catalog with {len(catalog)} locations")
        return catalog

    def __iter__(self) -> Iterator[ParkingLocation]:
        return iter(self._locations)

    def __len__(self) -> int:
        return len(self._locations)

    def __contains__(self, location_id: str) -> bool:
        return location_id in self._by_id

    def get(self, location_id: str) -> Optional[ParkingLocation]:
        return self._by_id.get(location_id)

    @property
    def locations(self) -> List[ParkingLocation]:
        """Catalog order is the tie-break order for every ranking"""
        return list(self._locations)

    def totals(self) -> Tuple[int, int]:
        """(available, total) summed over every location"""
        available = sum(loc.available_spots for loc in self._locations)
        total = sum(loc.total_spots for loc in self._locations)
        return available, total
