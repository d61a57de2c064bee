"""
Tile cache: memory map, disk directory and network fetch for DEM tiles.

Lookups go memory -> disk -> network. Concurrent requests for one tile share
a single in-flight load; callers that give up (cancel) never interrupt it.
Failed loads are not remembered, so a later request tries again.
"""

import asyncio
import logging
import math
import os
import uuid
from collections.abc import Awaitable, Callable
from functools import partial
from pathlib import Path

import httpx

from ..constants import (
    EARTH_RADIUS_M,
    REQUEST_TIMEOUT_S,
    RESOURCE_TIMEOUT_S,
    TILE_CACHE_MAX_ENTRIES,
    ErrorMessages,
    TileScheme,
)
from ..errors import InvalidRasterData, TileUnavailable
from .geodesy import GeoCoordinate
from .raster_io import decode_tile
from .tiles import ElevationTile, TileId, corner_span, neighbors, tile_filename, tile_for, tile_url

logger = logging.getLogger(__name__)

Fetcher = Callable[[TileId], Awaitable[bytes]]

KM_PER_DEGREE = 2 * math.pi * EARTH_RADIUS_M / 360.0 / 1000.0


class TileCache:
    """
    Bounded cache of decoded ElevationTiles.

    The memory map holds at most `max_tiles` entries and evicts the oldest
    insertion first. Every fetched tile is also written to `cache_dir`, one
    file per TileId.
    """

    def __init__(
        self,
        cache_dir: Path | str,
        url_template: str,
        scheme: str = TileScheme.MERCATOR,
        zoom: int = 14,
        max_tiles: int = TILE_CACHE_MAX_ENTRIES,
        request_timeout_s: float = REQUEST_TIMEOUT_S,
        resource_timeout_s: float = RESOURCE_TIMEOUT_S,
        fetcher: Fetcher | None = None,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.url_template = url_template
        self.scheme = scheme
        self.zoom = zoom
        self.max_tiles = max(1, max_tiles)
        self.request_timeout_s = request_timeout_s
        self.resource_timeout_s = resource_timeout_s
        self._fetcher = fetcher or self._download

        self._tiles: dict[TileId, ElevationTile] = {}
        self._in_flight: dict[TileId, asyncio.Task] = {}

        # Number of disk/network loads started (memory hits not counted)
        self.load_count = 0

    def __len__(self) -> int:
        return len(self._tiles)

    def __contains__(self, tile: object) -> bool:
        return tile in self._tiles

    @property
    def cached_tile_ids(self) -> list[TileId]:
        """Tiles currently held in memory, oldest first."""
        return list(self._tiles)

    def tile_for(self, coordinate: GeoCoordinate) -> TileId:
        """TileId owning a coordinate under this cache's scheme and zoom."""
        return tile_for(coordinate, self.zoom, self.scheme)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def get_tile(self, tile: TileId) -> ElevationTile:
        """
        Return a decoded tile, loading it if necessary.

        Raises:
            TileUnavailable: if the tile could not be read, fetched or decoded
        """
        cached = self._tiles.get(tile)
        if cached is not None:
            return cached

        task = self._in_flight.get(tile)
        if task is None:
            task = asyncio.create_task(self._load(tile), name=f"load-tile-{tile}")
            self._in_flight[tile] = task
            task.add_done_callback(partial(self._load_finished, tile))

        return await asyncio.shield(task)

    def _load_finished(self, tile: TileId, task: asyncio.Task) -> None:
        if self._in_flight.get(tile) is task:
            del self._in_flight[tile]
        # mark the failure retrieved; waiters (if any) re-raise it themselves
        if not task.cancelled():
            task.exception()

    async def _load(self, tile: TileId) -> ElevationTile:
        self.load_count += 1
        try:
            decoded = await self._load_from_disk(tile)
            if decoded is None:
                data = await asyncio.wait_for(self._fetcher(tile), self.resource_timeout_s)
                decoded = await asyncio.to_thread(decode_tile, data, tile)
                await asyncio.to_thread(self._write_disk, tile, data)
        except TileUnavailable as e:
            logger.warning(str(e))
            raise
        except Exception as e:
            logger.warning(ErrorMessages.TILE_UNAVAILABLE.format(tile, e))
            raise TileUnavailable(tile, e) from e

        self._remember(tile, decoded)
        logger.debug(f"Loaded tile {tile} ({decoded.width}x{decoded.height})")
        return decoded

    async def _load_from_disk(self, tile: TileId) -> ElevationTile | None:
        data = await asyncio.to_thread(self._read_disk, tile)
        if data is None:
            return None
        try:
            return await asyncio.to_thread(decode_tile, data, tile)
        except InvalidRasterData as e:
            logger.warning(f"Discarding corrupt cached tile {tile}: {e}")
            await asyncio.to_thread(self._tile_path(tile).unlink, missing_ok=True)
            return None

    async def _download(self, tile: TileId) -> bytes:
        """Fetch raw tile bytes over HTTP."""
        url = tile_url(tile, self.url_template)
        timeout = httpx.Timeout(self.request_timeout_s)

        logger.debug(f"Downloading {url}")
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.get(url)

        if response.status_code != 200:
            raise TileUnavailable(
                tile, ErrorMessages.DOWNLOAD_FAILED.format(response.status_code, url)
            )
        return response.content

    def _remember(self, tile: TileId, decoded: ElevationTile) -> None:
        """Insert into the memory map, evicting the oldest insertions."""
        self._tiles.pop(tile, None)
        while len(self._tiles) >= self.max_tiles:
            oldest = next(iter(self._tiles))
            del self._tiles[oldest]
            logger.debug(f"Evicted tile {oldest} from memory cache")
        self._tiles[tile] = decoded

    # ------------------------------------------------------------------
    # Preloading
    # ------------------------------------------------------------------

    async def preload_tiles(self, center: GeoCoordinate, radius_km: float) -> int:
        """
        Load every tile within roughly `radius_km` of a point.

        Args:
            center: Centre of the area
            radius_km: Radius in kilometres

        Returns:
            Number of tiles that loaded successfully
        """
        center_tile = self.tile_for(center)
        lat_span, lon_span = corner_span(center_tile)
        edge_km = KM_PER_DEGREE * min(
            lat_span, lon_span * math.cos(math.radians(center.latitude))
        )
        radius = max(0, math.ceil(radius_km / edge_km)) if edge_km > 0 else 0

        wanted = neighbors(center_tile, radius)
        results = await asyncio.gather(
            *(self.get_tile(t) for t in wanted), return_exceptions=True
        )

        loaded = 0
        for result in results:
            if isinstance(result, TileUnavailable):
                continue
            if isinstance(result, BaseException):
                raise result
            loaded += 1

        logger.info(f"Preloaded {loaded}/{len(wanted)} tiles around {center}")
        return loaded

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def clear_memory_cache(self) -> None:
        """Drop every decoded tile from memory. In-flight loads are unaffected."""
        count = len(self._tiles)
        self._tiles.clear()
        logger.info(f"Cleared {count} tiles from memory cache")

    def clear_disk_cache(self) -> int:
        """Delete all cached tile files. Returns the number removed."""
        removed = 0
        if not self.cache_dir.exists():
            return removed
        for path in self.cache_dir.glob("*.tif"):
            path.unlink(missing_ok=True)
            removed += 1
        logger.info(f"Removed {removed} tiles from {self.cache_dir}")
        return removed

    def disk_cache_size(self) -> int:
        """Total bytes of cached tile files."""
        if not self.cache_dir.exists():
            return 0
        return sum(p.stat().st_size for p in self.cache_dir.glob("*.tif"))

    # ------------------------------------------------------------------
    # Disk I/O (sync, run via asyncio.to_thread)
    # ------------------------------------------------------------------

    def _tile_path(self, tile: TileId) -> Path:
        return self.cache_dir / tile_filename(tile)

    def _read_disk(self, tile: TileId) -> bytes | None:
        path = self._tile_path(tile)
        if not path.is_file():
            return None
        return path.read_bytes()

    def _write_disk(self, tile: TileId, data: bytes) -> None:
        path = self._tile_path(tile)
        tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex[:8]}.tmp")
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(data)
            os.replace(tmp, path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            logger.warning(f"Could not write {path} to disk cache: {e}")
