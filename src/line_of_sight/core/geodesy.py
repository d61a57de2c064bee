"""
Spherical-Earth geodesy and local East-North-Up (ENU) transforms.

All angles are degrees at the API boundary; trig runs in radians.
ENU vectors are numpy arrays of shape (3,) ordered (east, north, up).
"""

import math
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..constants import EARTH_RADIUS_M, ErrorMessages

Vector = NDArray[np.float64]


def normalize_azimuth(angle: float) -> float:
    """Wrap an angle into [0, 360)."""
    wrapped = math.fmod(angle, 360.0)
    if wrapped < 0:
        wrapped += 360.0
    # fmod of a tiny negative can round up to exactly 360
    return 0.0 if wrapped >= 360.0 else wrapped


def normalize_longitude(lon: float) -> float:
    """Wrap a longitude into [-180, 180)."""
    return normalize_azimuth(lon + 180.0) - 180.0


@dataclass(frozen=True)
class GeoCoordinate:
    """A latitude/longitude pair in degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(ErrorMessages.INVALID_LATITUDE.format(self.latitude))
        object.__setattr__(self, "longitude", normalize_longitude(self.longitude))

    def distance_to(self, other: "GeoCoordinate") -> float:
        return distance(self, other)

    def bearing_to(self, other: "GeoCoordinate") -> float:
        return bearing(self, other)

    def destination(self, bearing_deg: float, distance_m: float) -> "GeoCoordinate":
        return destination(self, bearing_deg, distance_m)


@dataclass(frozen=True)
class Observer:
    """A viewing location: where the observer stands and at what elevation (m)."""

    coordinate: GeoCoordinate
    elevation: float
    name: str | None = None


# ---------------------------------------------------------------------------
# Great-circle math
# ---------------------------------------------------------------------------


def distance(a: GeoCoordinate, b: GeoCoordinate) -> float:
    """Great-circle distance between two points in metres (Haversine)."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    dphi = math.radians(b.latitude - a.latitude)
    dlam = math.radians(b.longitude - a.longitude)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def bearing(a: GeoCoordinate, b: GeoCoordinate) -> float:
    """Initial bearing from a to b in degrees, clockwise from north, in [0, 360)."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    dlam = math.radians(b.longitude - a.longitude)

    y = math.sin(dlam) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlam)
    return normalize_azimuth(math.degrees(math.atan2(y, x)))


def destination(origin: GeoCoordinate, bearing_deg: float, distance_m: float) -> GeoCoordinate:
    """
    Point reached by travelling a great-circle arc from origin.

    Args:
        origin: Starting coordinate
        bearing_deg: Initial bearing in degrees from north
        distance_m: Arc length in metres

    Returns:
        Destination coordinate (longitude normalized)
    """
    phi1 = math.radians(origin.latitude)
    lam1 = math.radians(origin.longitude)
    theta = math.radians(bearing_deg)
    delta = distance_m / EARTH_RADIUS_M

    sin_phi2 = math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(
        theta
    )
    phi2 = math.asin(max(-1.0, min(1.0, sin_phi2)))
    lam2 = lam1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )
    return GeoCoordinate(math.degrees(phi2), math.degrees(lam2))


# ---------------------------------------------------------------------------
# ENU vectors
# ---------------------------------------------------------------------------


def normalize_vector(vector: Any) -> Vector:
    """Unit vector in the same direction; zero vectors are returned unchanged."""
    v = np.asarray(vector, dtype=np.float64)
    length = float(np.linalg.norm(v))
    return v / length if length > 0 else v


def az_alt_to_enu(azimuth: float, altitude: float) -> Vector:
    """
    Convert a direction to an ENU unit vector.

    Args:
        azimuth: Degrees clockwise from north
        altitude: Degrees above the horizontal plane

    Returns:
        Array (east, north, up)
    """
    az = math.radians(azimuth)
    alt = math.radians(altitude)
    cos_alt = math.cos(alt)
    return np.array([math.sin(az) * cos_alt, math.cos(az) * cos_alt, math.sin(alt)])


def enu_to_az_alt(enu: Any) -> tuple[float, float]:
    """Convert an ENU direction to (azimuth, altitude) in degrees."""
    east, north, up = normalize_vector(enu)
    altitude = math.degrees(math.asin(max(-1.0, min(1.0, up))))
    azimuth = normalize_azimuth(math.degrees(math.atan2(east, north)))
    return azimuth, altitude


def enu_offset_to_coordinate(offset: Any, origin: GeoCoordinate) -> GeoCoordinate:
    """Project the horizontal part of an ENU offset (metres) onto the sphere."""
    east, north = float(offset[0]), float(offset[1])
    dist = math.hypot(east, north)
    if dist == 0:
        return origin
    brng = math.degrees(math.atan2(east, north))
    return destination(origin, brng, dist)


def coordinate_to_enu(
    coordinate: GeoCoordinate,
    origin: GeoCoordinate,
    elevation_diff: float = 0.0,
) -> Vector:
    """ENU offset in metres of coordinate relative to origin."""
    dist = distance(origin, coordinate)
    brng = math.radians(bearing(origin, coordinate))
    return np.array([dist * math.sin(brng), dist * math.cos(brng), elevation_diff])


# ---------------------------------------------------------------------------
# Interpolation
# ---------------------------------------------------------------------------


def bilinear_interpolate(
    v00: float, v10: float, v01: float, v11: float, fx: float, fy: float
) -> float:
    """
    Bilinear interpolation of four corner values.

    v00 is at (0, 0), v10 at (1, 0), v01 at (0, 1), v11 at (1, 1);
    fx and fy are fractional positions in [0, 1].
    """
    v0 = v00 * (1 - fx) + v10 * fx
    v1 = v01 * (1 - fx) + v11 * fx
    return v0 * (1 - fy) + v1 * fy
