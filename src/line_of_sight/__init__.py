"""
line-of-sight: Terrain Line-of-Sight, Sun Alignment & Horizon Rise/Set Calculations

Finds where a ray from a point of interest first meets the ground, using
cached DEM tiles (Mapzen terrain tiles or USGS 3DEP), and builds on it to
answer photography-planning questions: where the sun-POI line lands at a
given hour, and when the sun rises and sets over the local terrain horizon.
"""

from .constants import PackageConfig
from .core.astronomy import CelestialObject, ObjectPosition
from .core.geodesy import GeoCoordinate, Observer
from .core.manager import LineOfSightManager
from .errors import InvalidDate, InvalidRasterData, LineOfSightError, TileUnavailable

__version__ = PackageConfig.VERSION

__all__ = [
    "LineOfSightManager",
    "GeoCoordinate",
    "Observer",
    "CelestialObject",
    "ObjectPosition",
    "LineOfSightError",
    "TileUnavailable",
    "InvalidRasterData",
    "InvalidDate",
]
