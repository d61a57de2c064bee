"""Tests for ElevationService."""

import pytest

from conftest import MAPZEN_TEMPLATE, MOUNT_HOOD, CountingFetcher
from line_of_sight.core.elevation_service import ElevationService
from line_of_sight.core.tile_cache import TileCache


class SelectiveFetcher(CountingFetcher):
    """Fails for a chosen set of tiles, serves the rest."""

    def __init__(self, failing):
        super().__init__()
        self.failing = set(failing)

    async def __call__(self, tile) -> bytes:
        if tile in self.failing:
            self.requests.append(tile)
            raise ConnectionError(f"refused {tile}")
        return await super().__call__(tile)


@pytest.fixture
def service(tile_cache):
    return ElevationService(tile_cache)


class TestElevation:
    async def test_constant_tile(self, service):
        assert await service.elevation(MOUNT_HOOD) == pytest.approx(250.0)

    async def test_unavailable_tile_is_none(self, tmp_path):
        cache = TileCache(tmp_path, MAPZEN_TEMPLATE, fetcher=CountingFetcher(error=OSError("x")))
        assert await ElevationService(cache).elevation(MOUNT_HOOD) is None


class TestElevations:
    """Tests for the batch query."""

    async def test_empty(self, service, fetcher):
        assert await service.elevations([]) == []
        assert fetcher.requests == []

    async def test_one_load_per_tile(self, service, fetcher):
        points = [MOUNT_HOOD.destination(45.0, d) for d in (0.0, 50.0, 100.0)]
        heights = await service.elevations(points)
        assert heights == [pytest.approx(250.0)] * 3
        assert len(fetcher.requests) == 1

    async def test_partial_failure_keeps_order(self, tmp_path):
        probe = TileCache(tmp_path, MAPZEN_TEMPLATE)
        east = MOUNT_HOOD.destination(90.0, 5000.0)
        west = MOUNT_HOOD.destination(270.0, 5000.0)
        failing_tile = probe.tile_for(east)

        cache = TileCache(tmp_path, MAPZEN_TEMPLATE, fetcher=SelectiveFetcher([failing_tile]))
        heights = await ElevationService(cache).elevations([west, east, MOUNT_HOOD, east])

        assert heights[0] == pytest.approx(250.0)
        assert heights[1] is None
        assert heights[2] == pytest.approx(250.0)
        assert heights[3] is None


class TestElevationProfile:
    async def test_too_few_samples(self, service):
        with pytest.raises(ValueError, match="samples"):
            await service.elevation_profile(MOUNT_HOOD, MOUNT_HOOD.destination(0.0, 1000.0), 1)

    async def test_samples_and_distances(self, service):
        end = MOUNT_HOOD.destination(0.0, 1000.0)
        profile = await service.elevation_profile(MOUNT_HOOD, end, samples=5)

        assert len(profile) == 5
        assert profile[0].distance_m == 0.0
        assert profile[-1].distance_m == pytest.approx(1000.0, abs=0.5)
        assert [s.distance_m for s in profile] == sorted(s.distance_m for s in profile)
        assert all(s.elevation_m == pytest.approx(250.0) for s in profile)
        assert profile[0].coordinate.latitude == MOUNT_HOOD.latitude


class TestPreloadArea:
    async def test_delegates_to_cache(self, service, fetcher):
        loaded = await service.preload_area(MOUNT_HOOD, 1.0)
        assert loaded == 9
        assert len(fetcher.requests) == 9
