"""
Constants for line-of-sight.

All magic strings, tile source metadata, and algorithm defaults live here.
"""


class PackageConfig:
    NAME = "line-of-sight"
    VERSION = "0.1.0"


class EnvVar:
    TILE_SOURCE = "LOS_TILE_SOURCE"
    CACHE_DIR = "LOS_CACHE_DIR"
    MEMORY_CACHE_TILES = "LOS_MEMORY_CACHE_TILES"
    REQUEST_TIMEOUT = "LOS_REQUEST_TIMEOUT"
    RESOURCE_TIMEOUT = "LOS_RESOURCE_TIMEOUT"
    LOG_LEVEL = "LOS_LOG_LEVEL"


class TileScheme:
    MERCATOR = "mercator"
    DEGREE = "degree"


class TileSource:
    MAPZEN = "mapzen"
    TDEP = "3dep"


DEFAULT_SOURCE = TileSource.MAPZEN

# Full tile source metadata
TILE_SOURCES: dict[str, dict] = {
    TileSource.MAPZEN: {
        "id": TileSource.MAPZEN,
        "name": "Mapzen Terrain Tiles (GeoTIFF)",
        "scheme": TileScheme.MERCATOR,
        "zoom": 14,
        "resolution_m": 10,
        "coverage": "global",
        "dtype": "int16",
        "url_template": "https://s3.amazonaws.com/elevation-tiles-prod/geotiff/{z}/{x}/{y}.tif",
        "license": "Various (see tilezen/joerd attribution)",
    },
    TileSource.TDEP: {
        "id": TileSource.TDEP,
        "name": "USGS 3DEP 1 arc-second",
        "scheme": TileScheme.DEGREE,
        "zoom": 0,
        "resolution_m": 30,
        "coverage": "USA",
        "dtype": "float32",
        "url_template": (
            "https://prd-tnm.s3.amazonaws.com/StagedProducts/Elevation/1/TIFF/current/"
            "{name}/USGS_1_{name}.tif"
        ),
        "license": "Public Domain",
    },
}

ALL_SOURCE_IDS = list(TILE_SOURCES.keys())

# Geodesy
EARTH_RADIUS_M = 6371000.0

# Raster widths of products that cover exactly one degree
DEGREE_TILE_WIDTHS = (3601, 3612, 10812)

# Tile cache
TILE_CACHE_MAX_ENTRIES = 20
REQUEST_TIMEOUT_S = 60.0
RESOURCE_TIMEOUT_S = 300.0

# Ray marching
UNDERGROUND_TOLERANCE = -0.2
MIN_RAY_OFFSET_M = 100.0
COARSE_STEP_M = 500.0
BINARY_SEARCH_TOLERANCE_M = 1.0
MAX_CONSECUTIVE_FAILURES = 10
DEFAULT_MAX_RAY_DISTANCE_M = 30000.0

# Photographer position search
PHOTOGRAPHER_STEP_M = 100.0
PHOTOGRAPHER_MAX_DISTANCE_M = 10000.0
PHOTOGRAPHER_FALLBACK_DISTANCE_M = 1000.0
EYE_HEIGHT_M = 1.7
LOS_SAMPLE_SPACING_M = 50.0
LOS_CLEARANCE_M = 2.0

# Horizon events
SAMPLING_INTERVAL_S = 300.0
HORIZON_BAND_MIN_DEG = -5.0
HORIZON_BAND_MAX_DEG = 10.0
MAX_TERRAIN_DISTANCE_M = 30000.0
TIME_REFINEMENT_TOLERANCE_S = 1.0
FALLBACK_INTERSECTION_DISTANCE_M = 10000.0

# Sun path
DEFAULT_PROFILE_SAMPLES = 100
DEFAULT_PROJECTION_DISTANCE_KM = 10.0


class ErrorMessages:
    UNKNOWN_SOURCE = "Unknown tile source '{}'. Available: {}"
    UNKNOWN_SCHEME = "Unknown tiling scheme '{}'"
    UNKNOWN_OBJECT = "Unsupported celestial object '{}'"
    INVALID_LATITUDE = "Latitude {} outside [-90, 90]"
    INVALID_SAMPLES = "samples must be >= 2, got {}"
    INVALID_DATE = "Cannot compute day boundaries for {} ({}): {}"
    TILE_UNAVAILABLE = "DEM tile {} unavailable: {}"
    DOWNLOAD_FAILED = "HTTP {} fetching {}"
    INVALID_RASTER_SIZE = "Decoded {} samples, expected {}x{}={}"
    UNREADABLE_RASTER = "Raster bytes could not be decoded: {}"


class SuccessMessages:
    INTERSECTION = "Ray meets terrain {:.0f}m from origin at {:.1f}m elevation"
    NO_INTERSECTION = "No terrain intersection within {:.0f}m"
    HORIZON_EVENTS = "{} horizon events for {} ({} rise, {} set)"
    ALWAYS_VISIBLE = "{} stays above the terrain horizon all day"
    NEVER_VISIBLE = "{} never clears the terrain horizon"
    ALIGNMENT_PATH = "{} sun alignment points"
    PHOTOGRAPHER_POSITIONS = "{} photographer positions"
