"""
Line-of-sight manager: central facade over the terrain and sky components.

Wires one TileCache, ElevationService and TerrainIntersector together from
Settings and exposes the full query surface. Every query is read-only with
respect to the caller's objects.
"""

import logging
from datetime import date, datetime

from ..config import Settings, load_settings
from ..constants import (
    DEFAULT_MAX_RAY_DISTANCE_M,
    DEFAULT_PROFILE_SAMPLES,
    DEFAULT_PROJECTION_DISTANCE_KM,
    TILE_SOURCES,
    ErrorMessages,
)
from ..models import (
    ElevationSample,
    HorizonCalculationResult,
    PhotographerPosition,
    SunAlignmentPoint,
)
from .astronomy import CelestialObject, ObjectPosition, position, projected_line
from .elevation_service import ElevationService
from .geodesy import GeoCoordinate, Observer
from .horizon import HorizonCalculator, ProgressCallback
from .intersector import RayIntersection, TerrainIntersector
from .sun_path import SunPathService
from .tile_cache import Fetcher, TileCache

logger = logging.getLogger(__name__)


class LineOfSightManager:
    """Central entry point for elevation, ray, horizon and sun path queries."""

    def __init__(
        self,
        settings: Settings | None = None,
        fetcher: Fetcher | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        src = self._get_source(self.settings.tile_source)

        self.cache = TileCache(
            cache_dir=self.settings.cache_dir,
            url_template=src["url_template"],
            scheme=src["scheme"],
            zoom=src["zoom"],
            max_tiles=self.settings.memory_cache_tiles,
            request_timeout_s=self.settings.request_timeout_s,
            resource_timeout_s=self.settings.resource_timeout_s,
            fetcher=fetcher,
        )
        self.elevation_service = ElevationService(self.cache)
        self.intersector = TerrainIntersector(self.elevation_service)
        self.horizon = HorizonCalculator(self.elevation_service, self.intersector)
        self.sun_path = SunPathService(self.elevation_service, self.intersector)

        logger.info(f"Using tile source {src['id']} (cache: {self.settings.cache_dir})")

    # ------------------------------------------------------------------
    # Discovery (sync, no I/O)
    # ------------------------------------------------------------------

    def list_sources(self) -> list[dict]:
        """List all available tile sources."""
        return [
            {
                "id": src["id"],
                "name": src["name"],
                "scheme": src["scheme"],
                "resolution_m": src["resolution_m"],
                "coverage": src["coverage"],
                "active": src["id"] == self.settings.tile_source,
            }
            for src in TILE_SOURCES.values()
        ]

    def describe_source(self, source: str) -> dict:
        """Get full metadata for a tile source."""
        return dict(self._get_source(source))

    # ------------------------------------------------------------------
    # Elevation
    # ------------------------------------------------------------------

    async def elevation(self, coordinate: GeoCoordinate) -> float | None:
        return await self.elevation_service.elevation(coordinate)

    async def elevations(self, coordinates: list[GeoCoordinate]) -> list[float | None]:
        return await self.elevation_service.elevations(coordinates)

    async def elevation_profile(
        self,
        start: GeoCoordinate,
        end: GeoCoordinate,
        samples: int = DEFAULT_PROFILE_SAMPLES,
    ) -> list[ElevationSample]:
        return await self.elevation_service.elevation_profile(start, end, samples)

    async def preload_area(self, center: GeoCoordinate, radius_km: float) -> int:
        return await self.elevation_service.preload_area(center, radius_km)

    # ------------------------------------------------------------------
    # Rays
    # ------------------------------------------------------------------

    async def intersect_ray(
        self,
        poi: GeoCoordinate,
        poi_elevation: float,
        direction,
        max_distance: float = DEFAULT_MAX_RAY_DISTANCE_M,
    ) -> GeoCoordinate | None:
        return await self.intersector.intersect_ray(poi, poi_elevation, direction, max_distance)

    async def intersect_ray_detailed(
        self,
        poi: GeoCoordinate,
        poi_elevation: float,
        direction,
        max_distance: float = DEFAULT_MAX_RAY_DISTANCE_M,
    ) -> RayIntersection | None:
        return await self.intersector.intersect_ray_detailed(
            poi, poi_elevation, direction, max_distance
        )

    async def photographer_position(
        self,
        poi: GeoCoordinate,
        poi_elevation: float,
        azimuth: float,
        altitude: float,
        max_distance: float = DEFAULT_MAX_RAY_DISTANCE_M,
    ) -> GeoCoordinate:
        return await self.intersector.photographer_position(
            poi, poi_elevation, azimuth, altitude, max_distance
        )

    # ------------------------------------------------------------------
    # Sky
    # ------------------------------------------------------------------

    def position(
        self, obj: CelestialObject | str, when: datetime, coordinate: GeoCoordinate
    ) -> ObjectPosition:
        return position(obj, when, coordinate)

    def projected_line(
        self,
        poi: GeoCoordinate,
        obj: CelestialObject | str,
        when: datetime,
        distance_km: float = DEFAULT_PROJECTION_DISTANCE_KM,
    ) -> tuple[GeoCoordinate, GeoCoordinate]:
        return projected_line(poi, obj, when, distance_km)

    async def calculate_horizon_events(
        self,
        observer: Observer,
        day: date | datetime | str,
        obj: CelestialObject | str = CelestialObject.SUN,
        tz: str = "UTC",
        progress_callback: ProgressCallback | None = None,
    ) -> HorizonCalculationResult:
        return await self.horizon.calculate_horizon_events(
            observer, day, obj, tz, progress_callback
        )

    # ------------------------------------------------------------------
    # Sun path
    # ------------------------------------------------------------------

    async def compute_sun_alignment_path(
        self, poi: GeoCoordinate, day: date | datetime | str, tz: str = "UTC"
    ) -> list[SunAlignmentPoint]:
        return await self.sun_path.compute_sun_alignment_path(poi, day, tz)

    async def compute_photographer_positions(
        self,
        poi: GeoCoordinate,
        day: date | datetime | str,
        tz: str = "UTC",
        hours: list[int] | None = None,
    ) -> list[PhotographerPosition]:
        return await self.sun_path.compute_photographer_positions(poi, day, tz, hours)

    async def find_best_alignment_time(
        self,
        poi: GeoCoordinate,
        day: date | datetime | str,
        tz: str = "UTC",
        preferred_azimuth: float | None = None,
    ) -> SunAlignmentPoint | None:
        return await self.sun_path.find_best_alignment_time(poi, day, tz, preferred_azimuth)

    async def alignment_elevation_profile(
        self,
        poi: GeoCoordinate,
        alignment_point: SunAlignmentPoint,
        samples: int = DEFAULT_PROFILE_SAMPLES,
    ) -> list[ElevationSample]:
        return await self.sun_path.elevation_profile(poi, alignment_point, samples)

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def cache_status(self) -> dict:
        """Snapshot of memory and disk cache usage."""
        return {
            "source": self.settings.tile_source,
            "memory_tiles": len(self.cache),
            "memory_limit": self.cache.max_tiles,
            "disk_dir": str(self.cache.cache_dir),
            "disk_bytes": self.cache.disk_cache_size(),
        }

    def clear_memory_cache(self) -> None:
        self.cache.clear_memory_cache()

    def clear_disk_cache(self) -> int:
        return self.cache.clear_disk_cache()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_source(self, source: str) -> dict:
        """Get source metadata, raising ValueError if unknown."""
        if source not in TILE_SOURCES:
            raise ValueError(
                ErrorMessages.UNKNOWN_SOURCE.format(source, ", ".join(TILE_SOURCES.keys()))
            )
        return TILE_SOURCES[source]
