"""
Celestial positions for a ground observer.

Solar coordinates follow the low-precision theory in Meeus, "Astronomical
Algorithms" (ch. 25 and 12): roughly 0.01 degree accuracy, which is far
below the resolution of the terrain data it is compared with.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from ..constants import DEFAULT_PROJECTION_DISTANCE_KM, ErrorMessages
from .geodesy import GeoCoordinate, Vector, az_alt_to_enu, normalize_azimuth

J2000 = 2451545.0
UNIX_EPOCH_JD = 2440587.5


class CelestialObject(str, Enum):
    SUN = "sun"


@dataclass(frozen=True)
class ObjectPosition:
    """Horizontal coordinates of an object: azimuth from true north, elevation above the horizon."""

    azimuth: float
    elevation: float

    @property
    def direction(self) -> Vector:
        """ENU unit vector pointing at the object."""
        return az_alt_to_enu(self.azimuth, self.elevation)


def as_utc(when: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to be UTC already."""
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc)


def julian_day(when: datetime) -> float:
    return as_utc(when).timestamp() / 86400.0 + UNIX_EPOCH_JD


def resolve_object(obj: CelestialObject | str) -> CelestialObject:
    try:
        return CelestialObject(obj)
    except ValueError:
        raise ValueError(ErrorMessages.UNKNOWN_OBJECT.format(obj)) from None


# ---------------------------------------------------------------------------
# Sun
# ---------------------------------------------------------------------------


def sun_equatorial(jd: float) -> tuple[float, float]:
    """
    Apparent right ascension and declination of the Sun.

    Args:
        jd: Julian day (UT)

    Returns:
        Tuple of (right_ascension, declination) in degrees
    """
    t = (jd - J2000) / 36525.0

    l0 = 280.46646 + 36000.76983 * t + 0.0003032 * t * t
    m = math.radians(357.52911 + 35999.05029 * t - 0.0001537 * t * t)
    c = (
        (1.914602 - 0.004817 * t - 0.000014 * t * t) * math.sin(m)
        + (0.019993 - 0.000101 * t) * math.sin(2 * m)
        + 0.000289 * math.sin(3 * m)
    )
    omega = math.radians(125.04 - 1934.136 * t)
    apparent_lon = math.radians(l0 + c - 0.00569 - 0.00478 * math.sin(omega))

    # Mean obliquity (Meeus 22.2) plus the nutation correction
    eps0 = 23.0 + (26.0 + (21.448 - t * (46.8150 + t * (0.00059 - t * 0.001813))) / 60.0) / 60.0
    eps = math.radians(eps0 + 0.00256 * math.cos(omega))

    ra = math.atan2(math.cos(eps) * math.sin(apparent_lon), math.cos(apparent_lon))
    dec = math.asin(math.sin(eps) * math.sin(apparent_lon))
    return normalize_azimuth(math.degrees(ra)), math.degrees(dec)


def greenwich_sidereal_time(jd: float) -> float:
    """Greenwich mean sidereal time in degrees (Meeus 12.4)."""
    t = (jd - J2000) / 36525.0
    gmst = (
        280.46061837
        + 360.98564736629 * (jd - J2000)
        + 0.000387933 * t * t
        - t * t * t / 38710000.0
    )
    return normalize_azimuth(gmst)


def equatorial_to_horizontal(
    ra: float, dec: float, jd: float, coordinate: GeoCoordinate
) -> ObjectPosition:
    """Convert RA/Dec (degrees) to azimuth/elevation for an observer."""
    lst = greenwich_sidereal_time(jd) + coordinate.longitude
    h = math.radians(lst - ra)
    phi = math.radians(coordinate.latitude)
    delta = math.radians(dec)

    sin_alt = math.sin(phi) * math.sin(delta) + math.cos(phi) * math.cos(delta) * math.cos(h)
    altitude = math.degrees(math.asin(max(-1.0, min(1.0, sin_alt))))

    # Meeus measures azimuth westward from south
    az_south = math.atan2(
        math.sin(h), math.cos(h) * math.sin(phi) - math.tan(delta) * math.cos(phi)
    )
    azimuth = normalize_azimuth(math.degrees(az_south) + 180.0)
    return ObjectPosition(azimuth=azimuth, elevation=altitude)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def position(
    obj: CelestialObject | str, when: datetime, coordinate: GeoCoordinate
) -> ObjectPosition:
    """
    Where an object appears in the sky.

    Args:
        obj: Object to locate (only the Sun is modelled)
        when: Instant; naive datetimes are treated as UTC
        coordinate: Observer location

    Returns:
        ObjectPosition with azimuth in [0, 360) and elevation in [-90, 90]

    Raises:
        ValueError: for an unsupported object
    """
    resolve_object(obj)
    jd = julian_day(when)
    ra, dec = sun_equatorial(jd)
    return equatorial_to_horizontal(ra, dec, jd, coordinate)


def projected_line(
    poi: GeoCoordinate,
    obj: CelestialObject | str,
    when: datetime,
    distance_km: float = DEFAULT_PROJECTION_DISTANCE_KM,
) -> tuple[GeoCoordinate, GeoCoordinate]:
    """Ground segment from the POI toward the object's azimuth."""
    pos = position(obj, when, poi)
    return poi, poi.destination(pos.azimuth, distance_km * 1000.0)
