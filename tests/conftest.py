"""Shared test fixtures for line-of-sight."""

import asyncio

import numpy as np
import pytest

from line_of_sight.config import Settings
from line_of_sight.core.geodesy import GeoCoordinate
from line_of_sight.core.tile_cache import TileCache

MOUNT_HOOD = GeoCoordinate(45.3736, -121.6960)
MOUNT_HOOD_ELEVATION = 3429.0

MAPZEN_TEMPLATE = "https://example.com/geotiff/{z}/{x}/{y}.tif"


# ---------------------------------------------------------------------------
# Raster helpers
# ---------------------------------------------------------------------------


def make_geotiff(array: np.ndarray, nodata: float | None = None) -> bytes:
    """Encode a 2-D array as an in-memory single-band GeoTIFF."""
    from rasterio.io import MemoryFile
    from rasterio.transform import from_origin

    height, width = array.shape
    with MemoryFile() as memfile:
        with memfile.open(
            driver="GTiff",
            height=height,
            width=width,
            count=1,
            dtype=array.dtype,
            transform=from_origin(7.0, 47.0, 0.01, 0.01),
            nodata=nodata,
        ) as dst:
            dst.write(array, 1)
        return memfile.read()


@pytest.fixture
def sample_elevation():
    """16x16 int16 elevation array with values 100-500m."""
    rng = np.random.default_rng(42)
    return rng.integers(100, 500, (16, 16)).astype(np.int16)


# ---------------------------------------------------------------------------
# Terrain doubles
# ---------------------------------------------------------------------------


class FakeTerrain:
    """Elevation service double driven by a plain function of the coordinate."""

    def __init__(self, func, fail_after: int | None = None):
        self.func = func
        self.fail_after = fail_after
        self.calls = 0
        self.preloaded: list[tuple[GeoCoordinate, float]] = []

    async def elevation(self, coordinate: GeoCoordinate) -> float | None:
        self.calls += 1
        if self.fail_after is not None and self.calls > self.fail_after:
            return None
        return self.func(coordinate)

    async def elevations(self, coordinates: list[GeoCoordinate]) -> list[float | None]:
        return [await self.elevation(c) for c in coordinates]

    async def elevation_profile(self, start, end, samples=100):
        from line_of_sight.core.elevation_service import ElevationService

        # reuse the real interpolation, routed through this double
        return await ElevationService.elevation_profile(self, start, end, samples)

    async def preload_area(self, center: GeoCoordinate, radius_km: float) -> int:
        self.preloaded.append((center, radius_km))
        return 0


@pytest.fixture
def flat_terrain():
    """Sea-level plain everywhere."""
    return FakeTerrain(lambda c: 0.0)


@pytest.fixture
def no_data_terrain():
    """Terrain with no coverage at all."""
    return FakeTerrain(lambda c: None)


@pytest.fixture
def mountain_terrain():
    """A cone peaking at the Mount Hood summit over a 1000m plateau."""

    def cone(c: GeoCoordinate) -> float:
        d = MOUNT_HOOD.distance_to(c)
        return max(1000.0, MOUNT_HOOD_ELEVATION - 0.25 * d)

    return FakeTerrain(cone)


def tower_terrain(poi: GeoCoordinate, height: float = 300.0, radius_m: float = 20.0):
    """Flat plain at 0m with a narrow tower standing on the POI."""
    return FakeTerrain(lambda c: height if poi.distance_to(c) < radius_m else 0.0)


# ---------------------------------------------------------------------------
# Tile cache
# ---------------------------------------------------------------------------


class CountingFetcher:
    """Async fetcher double returning a constant-elevation GeoTIFF per tile."""

    def __init__(self, value: int = 250, delay: float = 0.01, error: Exception | None = None):
        self.value = value
        self.delay = delay
        self.error = error
        self.requests = []

    async def __call__(self, tile) -> bytes:
        self.requests.append(tile)
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return make_geotiff(np.full((16, 16), self.value, dtype=np.int16))


@pytest.fixture
def fetcher():
    return CountingFetcher()


@pytest.fixture
def tile_cache(tmp_path, fetcher):
    return TileCache(cache_dir=tmp_path / "tiles", url_template=MAPZEN_TEMPLATE, fetcher=fetcher)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        tile_source="mapzen",
        cache_dir=tmp_path / "dem" / "mapzen",
        memory_cache_tiles=4,
        request_timeout_s=5.0,
        resource_timeout_s=10.0,
        log_level="DEBUG",
    )
