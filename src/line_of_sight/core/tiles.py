"""
Tile coordinate system and the decoded elevation tile.

Two tiling schemes are supported:
    mercator  - Web-Mercator XYZ tiles (Mapzen/Tilezen terrain tiles)
    degree    - one-degree geographic cells (USGS 3DEP, SRTM style)

A TileId is the cache key for both; the scheme is part of its identity.
"""

import math
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..constants import TileScheme, ErrorMessages
from .geodesy import GeoCoordinate, bilinear_interpolate

FloatArray = NDArray[np.floating[Any]]

MAX_MERCATOR_LAT = 85.05112878


@dataclass(frozen=True, order=True)
class TileId:
    """Identifier of one raster tile."""

    x: int
    y: int
    zoom: int
    scheme: str = TileScheme.MERCATOR

    def __str__(self) -> str:
        return tile_filename(self)


# ---------------------------------------------------------------------------
# Coordinate <-> tile
# ---------------------------------------------------------------------------


def tile_for(
    coordinate: GeoCoordinate,
    zoom: int = 14,
    scheme: str = TileScheme.MERCATOR,
) -> TileId:
    """
    Tile containing a coordinate.

    Args:
        coordinate: Any point inside the wanted tile
        zoom: Zoom level (ignored for the degree scheme)
        scheme: "mercator" or "degree"

    Returns:
        The owning TileId
    """
    if scheme == TileScheme.DEGREE:
        return TileId(
            x=int(math.floor(coordinate.longitude)),
            y=int(math.floor(coordinate.latitude)),
            zoom=0,
            scheme=TileScheme.DEGREE,
        )
    if scheme != TileScheme.MERCATOR:
        raise ValueError(ErrorMessages.UNKNOWN_SCHEME.format(scheme))

    n = 1 << zoom
    lat = max(-MAX_MERCATOR_LAT, min(MAX_MERCATOR_LAT, coordinate.latitude))
    lat_rad = math.radians(lat)

    x = int(math.floor((coordinate.longitude + 180.0) / 360.0 * n))
    y_f = (1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi) / 2.0 * n
    y = int(math.floor(y_f))

    return TileId(x=min(max(x, 0), n - 1), y=min(max(y, 0), n - 1), zoom=zoom)


def northwest_corner(tile: TileId) -> GeoCoordinate:
    """North-west corner of a tile."""
    if tile.scheme == TileScheme.DEGREE:
        return GeoCoordinate(float(tile.y + 1), float(tile.x))

    n = float(1 << tile.zoom)
    lon = tile.x / n * 360.0 - 180.0
    lat = math.degrees(math.atan(math.sinh(math.pi * (1.0 - 2.0 * tile.y / n))))
    return GeoCoordinate(lat, lon)


def corner_span(tile: TileId) -> tuple[float, float]:
    """(lat_span, lon_span) in degrees between this tile's NW corner and its neighbours'."""
    if tile.scheme == TileScheme.DEGREE:
        return 1.0, 1.0

    n = 1 << tile.zoom
    corner = northwest_corner(tile)
    # computed directly so the last column does not wrap to -180
    lon_east = (tile.x + 1) / n * 360.0 - 180.0
    south = northwest_corner(TileId(tile.x, tile.y + 1, tile.zoom, tile.scheme))
    return corner.latitude - south.latitude, lon_east - corner.longitude


def neighbors(tile: TileId, radius: int) -> list[TileId]:
    """All tiles within `radius` tiles of `tile` (inclusive), centre first."""
    out = [tile]
    for dy in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            if dx == 0 and dy == 0:
                continue
            out.append(TileId(tile.x + dx, tile.y + dy, tile.zoom, tile.scheme))

    if tile.scheme == TileScheme.MERCATOR:
        n = 1 << tile.zoom
        out = [t for t in out if 0 <= t.x < n and 0 <= t.y < n]
    else:
        out = [t for t in out if -90 <= t.y < 90 and -180 <= t.x < 180]
    return out


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------


def _degree_name(tile: TileId) -> str:
    """USGS-style name from the NW corner, e.g. n46w122."""
    top = tile.y + 1
    ns = "n" if top >= 0 else "s"
    ew = "e" if tile.x >= 0 else "w"
    return f"{ns}{abs(top):02d}{ew}{abs(tile.x):03d}"


def tile_filename(tile: TileId) -> str:
    """Deterministic on-disk filename for a tile."""
    if tile.scheme == TileScheme.DEGREE:
        return f"{_degree_name(tile).upper()}.tif"
    return f"{tile.zoom}_{tile.x}_{tile.y}.tif"


def tile_url(tile: TileId, template: str) -> str:
    """Remote URL for a tile from a template with {z} {x} {y} {name} fields."""
    return template.format(z=tile.zoom, x=tile.x, y=tile.y, name=_degree_name(tile))


# ---------------------------------------------------------------------------
# Decoded tile
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class ElevationTile:
    """
    Decoded elevation raster for one tile.

    samples is a read-only (height, width) float32 array in metres with NaN
    for nodata. Row 0 is the northern edge, column 0 the western edge.
    """

    tile: TileId
    samples: FloatArray = field(repr=False)
    origin: GeoCoordinate
    cell_size_lat: float
    cell_size_lon: float

    def __post_init__(self) -> None:
        self.samples.flags.writeable = False

    @property
    def height(self) -> int:
        return int(self.samples.shape[0])

    @property
    def width(self) -> int:
        return int(self.samples.shape[1])

    @property
    def nbytes(self) -> int:
        return int(self.samples.nbytes)

    def contains(self, coordinate: GeoCoordinate) -> bool:
        min_lat = self.origin.latitude - self.height * self.cell_size_lat
        max_lon = self.origin.longitude + self.width * self.cell_size_lon
        return (
            min_lat <= coordinate.latitude <= self.origin.latitude
            and self.origin.longitude <= coordinate.longitude <= max_lon
        )

    def elevation_at(self, coordinate: GeoCoordinate) -> float | None:
        """
        Bilinearly interpolated elevation, or None outside the tile or over nodata.

        The last row/column extends flat to the tile edge so that adjacent
        tiles leave no gap between them.
        """
        x = (coordinate.longitude - self.origin.longitude) / self.cell_size_lon
        y = (self.origin.latitude - coordinate.latitude) / self.cell_size_lat
        w, h = self.width, self.height

        if x < 0 or y < 0 or x >= w or y >= h or w < 2 or h < 2:
            return None

        x0 = min(int(math.floor(x)), w - 2)
        y0 = min(int(math.floor(y)), h - 2)
        fx = min(x - x0, 1.0)
        fy = min(y - y0, 1.0)

        s = self.samples
        z00 = float(s[y0, x0])
        z10 = float(s[y0, x0 + 1])
        z01 = float(s[y0 + 1, x0])
        z11 = float(s[y0 + 1, x0 + 1])

        # nodata only matters where it carries weight
        weights = ((1 - fx) * (1 - fy), fx * (1 - fy), (1 - fx) * fy, fx * fy)
        values = []
        for weight, v in zip(weights, (z00, z10, z01, z11)):
            if math.isnan(v):
                if weight > 0:
                    return None
                v = 0.0
            values.append(v)

        return bilinear_interpolate(*values, fx, fy)
