"""
Raster decoding for DEM tiles.

All functions are synchronous; callers wrap them in asyncio.to_thread().
GeoTIFF bytes are opened in memory with rasterio; anything rasterio cannot
read falls back to Pillow. Samples are interpreted directly as metres.
"""

import io
import logging
from typing import Any

import numpy as np
from numpy.typing import NDArray
from PIL import Image, UnidentifiedImageError

from ..constants import DEGREE_TILE_WIDTHS, ErrorMessages
from ..errors import InvalidRasterData
from .tiles import ElevationTile, TileId, corner_span, northwest_corner

logger = logging.getLogger(__name__)

# Type aliases
FloatArray = NDArray[np.floating[Any]]


# ---------------------------------------------------------------------------
# Tile decoding
# ---------------------------------------------------------------------------


def decode_tile(data: bytes, tile: TileId) -> ElevationTile:
    """
    Decode raster bytes into an ElevationTile.

    Args:
        data: Raw raster file contents (GeoTIFF, PNG, ...)
        tile: The tile these bytes belong to

    Returns:
        ElevationTile with origin at the tile's NW corner

    Raises:
        InvalidRasterData: if the bytes cannot be decoded or the sample
            count does not match the raster dimensions
    """
    flat, width, height = read_samples(data)

    if flat.size != width * height:
        raise InvalidRasterData(
            ErrorMessages.INVALID_RASTER_SIZE.format(flat.size, width, height, width * height)
        )

    cell_lat, cell_lon = cell_size(tile, width, height)

    return ElevationTile(
        tile=tile,
        samples=flat.reshape(height, width),
        origin=northwest_corner(tile),
        cell_size_lat=cell_lat,
        cell_size_lon=cell_lon,
    )


def cell_size(tile: TileId, width: int, height: int) -> tuple[float, float]:
    """
    Per-cell angular size (lat, lon) in degrees.

    Rasters whose width matches a known one-degree product span exactly one
    degree corner-to-corner. Everything else takes its span from the distance
    to the adjacent east/south tile corners.
    """
    if width in DEGREE_TILE_WIDTHS:
        return 1.0 / (height - 1), 1.0 / (width - 1)

    lat_span, lon_span = corner_span(tile)
    return lat_span / height, lon_span / width


def read_samples(data: bytes) -> tuple[FloatArray, int, int]:
    """
    Read band 1 as a flat float32 array.

    Returns:
        Tuple of (samples, width, height); nodata is NaN
    """
    from rasterio.errors import RasterioIOError

    try:
        return _read_with_rasterio(data)
    except RasterioIOError as e:
        logger.debug(f"rasterio could not open raster, trying Pillow: {e}")

    try:
        return _read_with_pillow(data)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise InvalidRasterData(ErrorMessages.UNREADABLE_RASTER.format(e)) from e


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_with_rasterio(data: bytes) -> tuple[FloatArray, int, int]:
    """Decode via GDAL, dispatching on the band's dtype."""
    from rasterio.io import MemoryFile

    with MemoryFile(data) as memfile:
        with memfile.open() as src:
            width, height = src.width, src.height
            dtype = src.dtypes[0]
            nodata = src.nodata

            if dtype == "float32":
                band = src.read(1)
            elif dtype == "int16":
                band = src.read(1).astype(np.float32)
            elif dtype == "uint8":
                band = src.read(1).astype(np.float32)
            else:
                logger.debug(f"Unusual raster dtype {dtype}, re-rastering to float32")
                band = src.read(1, out_dtype="float32")

    # Replace nodata with NaN
    if nodata is not None:
        band[band == np.float32(nodata)] = np.nan

    return band.ravel(), width, height


def _read_with_pillow(data: bytes) -> tuple[FloatArray, int, int]:
    """Decode via Pillow, dispatching on the image mode."""
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        width, height = img.size
        mode = img.mode

        if mode == "F":
            band = np.asarray(img, dtype=np.float32)
        elif mode.startswith("I;16"):
            raw = np.asarray(img)
            # unsigned 16-bit modes carry signed elevations
            if raw.dtype.kind == "u":
                raw = raw.astype(np.uint16).view(np.int16)
            band = raw.astype(np.float32)
        elif mode == "L":
            band = np.asarray(img, dtype=np.uint8).astype(np.float32)
        else:
            logger.debug(f"Unusual image mode {mode}, re-rastering to float32")
            band = np.asarray(img.convert("F"), dtype=np.float32)

    return band.ravel(), width, height
