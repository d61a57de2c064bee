"""
Elevation queries on top of the tile cache.

A tile that cannot be loaded yields None for the coordinates it owns; it
never fails the whole query.
"""

import asyncio
import logging

from ..constants import DEFAULT_PROFILE_SAMPLES, ErrorMessages
from ..errors import TileUnavailable
from ..models import Coordinate, ElevationSample
from .geodesy import GeoCoordinate, distance
from .tile_cache import TileCache
from .tiles import TileId

logger = logging.getLogger(__name__)


class ElevationService:
    """Bilinear terrain elevation lookups backed by a TileCache."""

    def __init__(self, cache: TileCache) -> None:
        self.cache = cache

    async def elevation(self, coordinate: GeoCoordinate) -> float | None:
        """
        Terrain elevation in metres at a single point.

        Returns:
            Interpolated elevation, or None if the tile is unavailable or the
            point falls on nodata
        """
        tile_id = self.cache.tile_for(coordinate)
        try:
            tile = await self.cache.get_tile(tile_id)
        except TileUnavailable as e:
            logger.debug(f"No elevation at {coordinate}: {e}")
            return None
        return tile.elevation_at(coordinate)

    async def elevations(self, coordinates: list[GeoCoordinate]) -> list[float | None]:
        """
        Terrain elevations for many points, in input order.

        Each distinct tile is loaded once and distinct tiles load concurrently.
        """
        if not coordinates:
            return []

        groups: dict[TileId, list[int]] = {}
        for index, coordinate in enumerate(coordinates):
            groups.setdefault(self.cache.tile_for(coordinate), []).append(index)

        tile_ids = list(groups)
        loaded = await asyncio.gather(
            *(self.cache.get_tile(t) for t in tile_ids), return_exceptions=True
        )

        results: list[float | None] = [None] * len(coordinates)
        failed = 0
        for tile_id, tile in zip(tile_ids, loaded):
            if isinstance(tile, TileUnavailable):
                failed += 1
                continue
            if isinstance(tile, BaseException):
                raise tile
            for index in groups[tile_id]:
                results[index] = tile.elevation_at(coordinates[index])

        if failed:
            logger.warning(
                f"{failed}/{len(tile_ids)} tiles unavailable for batch of {len(coordinates)} points"
            )
        return results

    async def elevation_profile(
        self,
        start: GeoCoordinate,
        end: GeoCoordinate,
        samples: int = DEFAULT_PROFILE_SAMPLES,
    ) -> list[ElevationSample]:
        """
        Sample terrain along the straight lat/lon path from start to end.

        Args:
            start: First sample location
            end: Last sample location
            samples: Number of samples including both ends (>= 2)

        Returns:
            One ElevationSample per point, distance measured from start
        """
        if samples < 2:
            raise ValueError(ErrorMessages.INVALID_SAMPLES.format(samples))

        points = []
        for i in range(samples):
            f = i / (samples - 1)
            points.append(
                GeoCoordinate(
                    start.latitude + (end.latitude - start.latitude) * f,
                    start.longitude + (end.longitude - start.longitude) * f,
                )
            )

        heights = await self.elevations(points)
        return [
            ElevationSample(
                distance_m=distance(start, point),
                coordinate=Coordinate.from_geo(point),
                elevation_m=height,
            )
            for point, height in zip(points, heights)
        ]

    async def preload_area(self, center: GeoCoordinate, radius_km: float) -> int:
        """Warm the cache around a point. Returns the number of tiles loaded."""
        return await self.cache.preload_tiles(center, radius_km)
