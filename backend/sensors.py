"""
Sensor ingestion: merging observations into the catalog, the relay store,
feed polling and simulated drift for locations without sensors.
"""
import asyncio
import math
import random
from typing import Any, Collection, Dict, Mapping, Optional

from catalog import ParkingCatalog
from logging_config import get_logger
from monitoring import drift_ticks, sensor_updates
from services import SensorFeedClient

logger = get_logger(__name__)


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _as_count(value: Any) -> Optional[int]:
    """Integer spot count, or None for bools, NaN, infinities and non-numbers"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return None


def apply_sensor_update(catalog: ParkingCatalog, lot_id: str, observed_available: int) -> ParkingCatalog:
    """
    Merge one (lot_id, available) observation into the catalog.

    Unknown ids are ignored so an unexpected sensor can't take the service
    down, and so are readings that aren't finite numbers. Out-of-range
    values are clamped to [0, total_spots]. Applying the same observation
    again leaves the state unchanged.
    """
    location = catalog.get(lot_id)
    if location is None:
        logger.debug(f"Ignoring sensor update for unknown lot {lot_id}", extra={"lot_id": lot_id})
        sensor_updates.labels(result='ignored').inc()
        return catalog

    observed = _as_count(observed_available)
    if observed is None:
        logger.warning(f"Ignoring non-numeric sensor reading for {lot_id}: {observed_available!r}", extra={"lot_id": lot_id})
        sensor_updates.labels(result='ignored').inc()
        return catalog

    location.available_spots = clamp(observed, 0, location.total_spots)
    sensor_updates.labels(result='applied').inc()
    return catalog


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def apply_sensor_readings(
    catalog: ParkingCatalog,
    readings: Mapping[str, Any],
    only_ids: Optional[Collection[str]] = None
) -> int:
    """
    Apply a lotId -> availableSpots mapping. Each reading is independent.

    When only_ids is given, readings for other lots are skipped. Values
    that aren't integers are skipped. Returns how many readings were applied.
    """
    applied = 0
    for lot_id, value in readings.items():
        if only_ids is not None and lot_id not in only_ids:
            continue
        if not _is_count(value):
            logger.warning(f"Skipping non-integer sensor reading for {lot_id}: {value!r}", extra={"lot_id": lot_id})
            continue
        if lot_id in catalog:
            applied += 1
        apply_sensor_update(catalog, lot_id, value)
    return applied


class SensorRelay:
    """Latest reading per sensor lot, as posted by the boards"""

    def __init__(self):
        self._readings: Dict[str, int] = {}

    def record(self, lot_id: str, available_spots: int) -> int:
        stored = max(0, int(available_spots))
        self._readings[lot_id] = stored
        logger.info(f"[sensor] {lot_id} -> {stored} available", extra={"lot_id": lot_id})
        return stored

    def snapshot(self) -> Dict[str, int]:
        return dict(self._readings)


def simulate_drift(
    catalog: ParkingCatalog,
    rng: random.Random,
    skip_ids: Collection[str] = (),
    change_probability: float = 0.3,
    max_step: int = 3
) -> int:
    """
    Random-walk availability for locations without live sensors.

    Each location changes with probability change_probability by an integer
    step in [-max_step, max_step], clamped to capacity. Returns the number
    of locations touched.
    """
    changed = 0
    for location in catalog:
        if location.id in skip_ids:
            continue
        if rng.random() > change_probability:
            continue
        step = rng.randint(-max_step, max_step)
        location.available_spots = clamp(location.available_spots + step, 0, location.total_spots)
        changed += 1

    drift_ticks.inc()
    return changed


async def poll_sensor_feed(
    catalog: ParkingCatalog,
    client: SensorFeedClient,
    sensor_ids: Optional[Collection[str]] = None
) -> int:
    """
    Fetch the feed once and merge it.

    A failed fetch keeps the last known state; the next poll tries again.
    """
    try:
        readings = await client.fetch_readings()
    except Exception as e:
        logger.warning(f"Sensor feed fetch failed, keeping last known state: {e}")
        return 0

    return apply_sensor_readings(catalog, readings, only_ids=sensor_ids)


async def run_sensor_polling(
    catalog: ParkingCatalog,
    base_url: str,
    interval: float,
    sensor_ids: Collection[str],
    timeout: int = 10
) -> None:
    """Poll the sensor feed every `interval` seconds until cancelled"""
    logger.info(f"Polling sensor feed at {base_url} every {interval}s")
    async with SensorFeedClient(base_url, timeout=timeout) as client:
        while True:
            await poll_sensor_feed(catalog, client, sensor_ids)
            await asyncio.sleep(interval)


async def run_drift(
    catalog: ParkingCatalog,
    interval: float,
    skip_ids: Collection[str],
    rng: Optional[random.Random] = None
) -> None:
    """Apply simulated drift every `interval` seconds until cancelled"""
    rng = rng or random.Random()
    while True:
        await asyncio.sleep(interval)
        simulate_drift(catalog, rng, skip_ids)
