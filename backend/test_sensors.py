"""
Unit tests for sensor merging, the relay store, feed polling and drift
"""
import random

import httpx
import pytest
from unittest.mock import AsyncMock

from exceptions import ExternalAPIException
from sensors import (
    SensorRelay, apply_sensor_readings, apply_sensor_update, poll_sensor_feed, simulate_drift
)
from services import SensorFeedClient


class TestApplySensorUpdate:
    """Merging one observation into the catalog"""

    def test_sets_available_spots(self, seeded_catalog):
        apply_sensor_update(seeded_catalog, "beamish-munro-hall", 3)
        assert seeded_catalog.get("beamish-munro-hall").available_spots == 3

    @pytest.mark.parametrize("observed,expected", [(-5, 0), (0, 0), (4, 4), (99, 4)])
    def test_clamps_to_capacity(self, seeded_catalog, observed, expected):
        # Clergy Street West has 4 spots
        apply_sensor_update(seeded_catalog, "clergy-st-w", observed)
        assert seeded_catalog.get("clergy-st-w").available_spots == expected

    @pytest.mark.parametrize("observed", ["3", None, True, float("nan"), float("inf"), float("-inf"), [1]])
    def test_non_numeric_reading_is_ignored(self, seeded_catalog, observed):
        result = apply_sensor_update(seeded_catalog, "clergy-st-w", observed)
        assert result is seeded_catalog
        assert seeded_catalog.get("clergy-st-w").available_spots == 2

    def test_float_reading_truncated(self, seeded_catalog):
        apply_sensor_update(seeded_catalog, "clergy-st-w", 3.0)
        assert seeded_catalog.get("clergy-st-w").available_spots == 3

    def test_unknown_lot_is_ignored(self, seeded_catalog):
        before = {loc.id: loc.available_spots for loc in seeded_catalog}
        result = apply_sensor_update(seeded_catalog, "no-such-lot", 3)

        assert result is seeded_catalog
        assert {loc.id: loc.available_spots for loc in seeded_catalog} == before

    def test_repeated_updates_settle_on_last_value(self, seeded_catalog):
        apply_sensor_update(seeded_catalog, "clergy-st-w", 1)
        apply_sensor_update(seeded_catalog, "clergy-st-w", 0)
        assert seeded_catalog.get("clergy-st-w").available_spots == 0

        apply_sensor_update(seeded_catalog, "clergy-st-w", 0)
        assert seeded_catalog.get("clergy-st-w").available_spots == 0

    def test_does_not_touch_other_locations(self, seeded_catalog):
        princess_before = seeded_catalog.get("princess-st").available_spots
        apply_sensor_update(seeded_catalog, "clergy-st-w", 0)
        assert seeded_catalog.get("princess-st").available_spots == princess_before


class TestApplySensorReadings:
    """Batch readings from the feed"""

    def test_applies_each_reading(self, seeded_catalog):
        applied = apply_sensor_readings(seeded_catalog, {"clergy-st-w": 1, "beamish-munro-hall": 0})
        assert applied == 2
        assert seeded_catalog.get("clergy-st-w").available_spots == 1
        assert seeded_catalog.get("beamish-munro-hall").available_spots == 0

    def test_restricts_to_sensor_ids(self, seeded_catalog):
        princess_before = seeded_catalog.get("princess-st").available_spots
        applied = apply_sensor_readings(
            seeded_catalog,
            {"clergy-st-w": 1, "princess-st": 0},
            only_ids={"clergy-st-w"}
        )
        assert applied == 1
        assert seeded_catalog.get("princess-st").available_spots == princess_before

    def test_skips_non_integer_and_unknown_readings(self, seeded_catalog):
        applied = apply_sensor_readings(
            seeded_catalog,
            {"clergy-st-w": "3", "beamish-munro-hall": True, "ghost-lot": 2}
        )
        assert applied == 0
        assert seeded_catalog.get("clergy-st-w").available_spots == 2
        assert seeded_catalog.get("beamish-munro-hall").available_spots == 2


class TestSensorRelay:
    """Latest-reading store behind /api/parking"""

    def test_records_latest_and_floors_negative(self):
        relay = SensorRelay()
        relay.record("clergy-st-w", 3)
        relay.record("clergy-st-w", 1)
        relay.record("beamish-munro-hall", -2)
        assert relay.snapshot() == {"clergy-st-w": 1, "beamish-munro-hall": 0}

    def test_snapshot_is_a_copy(self):
        relay = SensorRelay()
        relay.record("clergy-st-w", 3)
        relay.snapshot()["clergy-st-w"] = 99
        assert relay.snapshot() == {"clergy-st-w": 3}


class TestSimulateDrift:
    """Random walk for locations without sensors"""

    def test_stays_within_capacity(self, seeded_catalog):
        rng = random.Random(42)
        for _ in range(200):
            simulate_drift(seeded_catalog, rng, change_probability=1.0)
        for loc in seeded_catalog:
            assert 0 <= loc.available_spots <= loc.total_spots

    def test_sensor_backed_locations_untouched(self, seeded_catalog):
        rng = random.Random(7)
        sensor_ids = {"clergy-st-w", "beamish-munro-hall"}
        for _ in range(50):
            simulate_drift(seeded_catalog, rng, skip_ids=sensor_ids, change_probability=1.0)
        assert seeded_catalog.get("clergy-st-w").available_spots == 2
        assert seeded_catalog.get("beamish-munro-hall").available_spots == 2

    def test_zero_probability_changes_nothing(self, seeded_catalog):
        before = {loc.id: loc.available_spots for loc in seeded_catalog}
        changed = simulate_drift(seeded_catalog, random.Random(1), change_probability=0.0)
        assert changed == 0
        assert {loc.id: loc.available_spots for loc in seeded_catalog} == before


class TestSensorFeed:
    """Polling the remote sensor relay"""

    @pytest.mark.asyncio
    async def test_fetch_readings(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/parking"
            return httpx.Response(200, json={"clergy-st-w": 1})

        async with SensorFeedClient("http://feed.test/", transport=httpx.MockTransport(handler)) as client:
            readings = await client.fetch_readings()

        assert readings == {"clergy-st-w": 1}

    @pytest.mark.asyncio
    async def test_fetch_non_mapping_returns_empty(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=[1, 2, 3]))
        async with SensorFeedClient("http://feed.test", transport=transport) as client:
            assert await client.fetch_readings() == {}

    @pytest.mark.asyncio
    async def test_http_error_raises_external_api_exception(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))
        async with SensorFeedClient("http://feed.test", transport=transport) as client:
            with pytest.raises(ExternalAPIException):
                await client.fetch_readings()

    @pytest.mark.asyncio
    async def test_poll_merges_sensor_lots(self, seeded_catalog):
        client = AsyncMock()
        client.fetch_readings.return_value = {"clergy-st-w": 0, "princess-st": 0}

        applied = await poll_sensor_feed(seeded_catalog, client, {"clergy-st-w", "beamish-munro-hall"})

        assert applied == 1
        assert seeded_catalog.get("clergy-st-w").available_spots == 0
        assert seeded_catalog.get("princess-st").available_spots == 3

    @pytest.mark.asyncio
    async def test_poll_failure_keeps_last_state(self, seeded_catalog):
        client = AsyncMock()
        client.fetch_readings.side_effect = ExternalAPIException("SensorFeedClient", "HTTP 503")

        applied = await poll_sensor_feed(seeded_catalog, client, {"clergy-st-w"})

        assert applied == 0
        assert seeded_catalog.get("clergy-st-w").available_spots == 2
