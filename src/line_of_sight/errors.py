"""Exception types raised by line-of-sight components."""

from .constants import ErrorMessages


class LineOfSightError(Exception):
    """Base class for all library errors."""


class TileUnavailable(LineOfSightError):
    """A DEM tile could not be fetched or decoded."""

    def __init__(self, tile: object, reason: object) -> None:
        self.tile = tile
        self.reason = reason
        super().__init__(ErrorMessages.TILE_UNAVAILABLE.format(tile, reason))


class InvalidRasterData(LineOfSightError):
    """Raster bytes decoded to the wrong number of samples, or not at all."""


class InvalidDate(LineOfSightError):
    """Day boundaries could not be computed for a horizon request."""
