"""Tests for TerrainIntersector."""

import math
from datetime import datetime, timedelta, timezone

import pytest

from conftest import MOUNT_HOOD, MOUNT_HOOD_ELEVATION, FakeTerrain, tower_terrain
from line_of_sight.core.astronomy import position
from line_of_sight.core.geodesy import GeoCoordinate, az_alt_to_enu
from line_of_sight.core.intersector import TerrainIntersector
from line_of_sight.core.sun_path import _azimuth_gap

PLAIN = GeoCoordinate(45.0, -121.0)


# ===================================================================
# intersect_ray
# ===================================================================


class TestIntersectRay:
    async def test_steep_downward_ray_rejected(self, flat_terrain):
        hit = await TerrainIntersector(flat_terrain).intersect_ray(
            PLAIN, 100.0, az_alt_to_enu(90.0, -30.0)
        )
        assert hit is None
        assert flat_terrain.calls == 0

    async def test_no_coverage_gives_up(self, no_data_terrain):
        hit = await TerrainIntersector(no_data_terrain).intersect_ray(
            PLAIN, 100.0, az_alt_to_enu(90.0, 0.0)
        )
        assert hit is None
        assert no_data_terrain.calls == 10

    async def test_upward_ray_never_lands(self, flat_terrain):
        hit = await TerrainIntersector(flat_terrain).intersect_ray(
            PLAIN, 100.0, az_alt_to_enu(0.0, 5.0), max_distance=5000.0
        )
        assert hit is None

    async def test_flat_plane_descent(self, flat_terrain):
        hit = await TerrainIntersector(flat_terrain).intersect_ray(
            PLAIN, 100.0, az_alt_to_enu(90.0, -5.0)
        )
        expected = 100.0 / math.tan(math.radians(5.0))
        assert PLAIN.distance_to(hit) == pytest.approx(expected, abs=2.0)
        assert PLAIN.bearing_to(hit) == pytest.approx(90.0, abs=0.1)

    async def test_direction_length_ignored(self, flat_terrain):
        intersector = TerrainIntersector(flat_terrain)
        unit = await intersector.intersect_ray(PLAIN, 100.0, az_alt_to_enu(90.0, -5.0))
        scaled = await intersector.intersect_ray(PLAIN, 100.0, az_alt_to_enu(90.0, -5.0) * 7.0)
        assert unit.distance_to(scaled) < 1e-6

    async def test_refinement_stops_on_missing_data(self):
        # first four coarse samples answer, everything after is missing
        terrain = FakeTerrain(lambda c: 0.0, fail_after=4)
        hit = await TerrainIntersector(terrain).intersect_ray_detailed(
            PLAIN, 100.0, az_alt_to_enu(90.0, -5.0)
        )
        assert hit.distance == pytest.approx(1600.0 * math.cos(math.radians(5.0)), abs=1e-6)

    async def test_sparse_coverage_keeps_marching(self):
        # only every tenth coarse sample has data; a cliff rises at 24 km
        def sparse_cliff(c):
            d = PLAIN.distance_to(c)
            step = (d - 100.0) / 500.0
            if abs(step - round(step)) < 0.01 and round(step) % 10 != 9:
                return None
            return 2000.0 if d > 24000.0 else 0.0

        terrain = FakeTerrain(sparse_cliff)
        hit = await TerrainIntersector(terrain).intersect_ray_detailed(
            PLAIN, 100.0, az_alt_to_enu(90.0, 0.0)
        )

        assert hit is not None
        assert 24000.0 < hit.distance <= 24601.0
        assert hit.elevation == 2000.0
        assert terrain.calls > 40


class TestIntersectRayDetailed:
    async def test_flat_plane_details(self, flat_terrain):
        hit = await TerrainIntersector(flat_terrain).intersect_ray_detailed(
            PLAIN, 100.0, az_alt_to_enu(90.0, -5.0)
        )
        expected = 100.0 / math.tan(math.radians(5.0))
        assert hit.elevation == 0.0
        assert hit.distance == pytest.approx(expected, abs=2.0)

    async def test_mountain_slope(self, mountain_terrain):
        # standing on the plateau 10 km west of the summit, looking up the slope
        origin = MOUNT_HOOD.destination(270.0, 10000.0)
        intersector = TerrainIntersector(mountain_terrain)
        direction = az_alt_to_enu(90.0, 5.0)

        hit = await intersector.intersect_ray_detailed(origin, 1000.0, direction)

        assert hit is not None
        assert 300.0 < hit.distance < 600.0
        ray_elevation = 1000.0 + hit.distance * math.tan(math.radians(5.0))
        assert hit.elevation == pytest.approx(ray_elevation, abs=2.0)

    async def test_misses_beyond_max_distance(self, mountain_terrain):
        origin = MOUNT_HOOD.destination(270.0, 30000.0)
        hit = await TerrainIntersector(mountain_terrain).intersect_ray_detailed(
            origin, 1000.0, az_alt_to_enu(90.0, 5.0), max_distance=10000.0
        )
        assert hit is None


# ===================================================================
# photographer_position
# ===================================================================


class TestPhotographerPosition:
    async def test_clear_view_of_tower(self):
        terrain = tower_terrain(PLAIN)
        spot = await TerrainIntersector(terrain).photographer_position(PLAIN, 300.0, 90.0, 10.0)

        assert PLAIN.distance_to(spot) == pytest.approx(100.0, abs=1.0)
        assert PLAIN.bearing_to(spot) == pytest.approx(270.0, abs=0.5)
        assert spot.bearing_to(PLAIN) == pytest.approx(90.0, abs=0.5)

    async def test_fully_blocked_falls_back(self):
        terrain = FakeTerrain(lambda c: 5000.0)
        spot = await TerrainIntersector(terrain).photographer_position(PLAIN, 100.0, 90.0, 10.0)

        assert PLAIN.distance_to(spot) == pytest.approx(1000.0, abs=0.5)
        assert PLAIN.bearing_to(spot) == pytest.approx(270.0, abs=0.5)

    async def test_search_capped_at_ten_km(self):
        terrain = FakeTerrain(lambda c: 5000.0)
        await TerrainIntersector(terrain).photographer_position(
            PLAIN, 100.0, 90.0, 10.0, max_distance=50000.0
        )
        # walking the full 50km would take roughly 250k lookups
        assert terrain.calls < 20000


class TestSunThroughSummit:
    async def test_low_sun_line_lands_on_the_mountain(self, mountain_terrain):
        start = datetime(2024, 6, 21, tzinfo=timezone.utc)
        when = next(
            start + timedelta(minutes=m)
            for m in range(0, 24 * 60, 5)
            if 4.0 < position("sun", start + timedelta(minutes=m), MOUNT_HOOD).elevation < 10.0
        )
        sun = position("sun", when, MOUNT_HOOD)

        hit = await TerrainIntersector(mountain_terrain).intersect_ray(
            MOUNT_HOOD, MOUNT_HOOD_ELEVATION, -sun.direction, max_distance=50000.0
        )

        assert hit is not None
        assert MOUNT_HOOD.distance_to(hit) < 50000.0
        assert _azimuth_gap(MOUNT_HOOD.bearing_to(hit), sun.azimuth + 180.0) < 0.5
