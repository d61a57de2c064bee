"""
Sun-POI alignment over a day.

The alignment line runs from the sun through the POI and on into the
ground; where it lands is the spot from which the sun sits exactly behind
the POI at that hour.
"""

import logging
import math
from datetime import date, datetime, timedelta

from ..constants import (
    DEFAULT_MAX_RAY_DISTANCE_M,
    DEFAULT_PROFILE_SAMPLES,
    PHOTOGRAPHER_MAX_DISTANCE_M,
    SuccessMessages,
)
from ..models import Coordinate, ElevationSample, PhotographerPosition, SunAlignmentPoint
from .astronomy import CelestialObject, position
from .elevation_service import ElevationService
from .geodesy import GeoCoordinate
from .horizon import day_window
from .intersector import TerrainIntersector

logger = logging.getLogger(__name__)

ALL_HOURS = list(range(24))


class SunPathService:
    """Hourly sun alignment points and photographer positions for a POI."""

    def __init__(
        self,
        elevation_service: ElevationService,
        intersector: TerrainIntersector | None = None,
        preload_radius_km: float | None = None,
    ) -> None:
        self.elevation_service = elevation_service
        self.intersector = intersector or TerrainIntersector(elevation_service)
        self.preload_radius_km = preload_radius_km

    async def alignment_at(
        self,
        poi: GeoCoordinate,
        when: datetime,
        poi_elevation: float | None = None,
    ) -> SunAlignmentPoint | None:
        """
        Where the sun-POI line meets terrain at one instant.

        Returns:
            The alignment point, or None when the sun is not above the
            horizon, the POI elevation is unknown, or the line never lands
        """
        sun = position(CelestialObject.SUN, when, poi)
        if sun.elevation <= 0:
            return None

        if poi_elevation is None:
            poi_elevation = await self.elevation_service.elevation(poi)
            if poi_elevation is None:
                return None

        hit = await self.intersector.intersect_ray_detailed(
            poi, poi_elevation, -sun.direction, DEFAULT_MAX_RAY_DISTANCE_M
        )
        if hit is None:
            return None

        return SunAlignmentPoint(
            time=when,
            sun_azimuth=sun.azimuth,
            sun_elevation=sun.elevation,
            intersection=Coordinate.from_geo(hit.coordinate),
            intersection_elevation_m=hit.elevation,
            distance_m=poi.distance_to(hit.coordinate),
        )

    async def compute_sun_alignment_path(
        self,
        poi: GeoCoordinate,
        day: date | datetime | str,
        tz: str = "UTC",
    ) -> list[SunAlignmentPoint]:
        """One alignment point per local hour (0-23) with the sun up and a terrain hit."""
        poi_elevation = await self._poi_elevation(poi)
        if poi_elevation is None:
            return []

        points = []
        for when in self._hours(day, tz, ALL_HOURS):
            point = await self.alignment_at(poi, when, poi_elevation)
            if point is not None:
                points.append(point)

        logger.info(SuccessMessages.ALIGNMENT_PATH.format(len(points)))
        return points

    async def compute_photographer_positions(
        self,
        poi: GeoCoordinate,
        day: date | datetime | str,
        tz: str = "UTC",
        hours: list[int] | None = None,
    ) -> list[PhotographerPosition]:
        """
        Where to stand at each hour to see the sun directly behind the POI.

        Args:
            poi: Point of interest
            day: Local calendar day
            tz: IANA time zone for the hours
            hours: Local hours to evaluate (default all 24)

        Returns:
            One position per hour with the sun above the horizon
        """
        poi_elevation = await self._poi_elevation(poi)
        if poi_elevation is None:
            return []

        positions = []
        for when in self._hours(day, tz, hours if hours is not None else ALL_HOURS):
            sun = position(CelestialObject.SUN, when, poi)
            if sun.elevation <= 0:
                continue

            spot = await self.intersector.photographer_position(
                poi, poi_elevation, sun.azimuth, sun.elevation, PHOTOGRAPHER_MAX_DISTANCE_M
            )
            positions.append(
                PhotographerPosition(
                    time=when,
                    coordinate=Coordinate.from_geo(spot),
                    elevation_m=await self.elevation_service.elevation(spot),
                    distance_m=spot.distance_to(poi),
                    bearing_to_poi=spot.bearing_to(poi),
                    sun_azimuth=sun.azimuth,
                    sun_elevation=sun.elevation,
                )
            )

        logger.info(SuccessMessages.PHOTOGRAPHER_POSITIONS.format(len(positions)))
        return positions

    async def find_best_alignment_time(
        self,
        poi: GeoCoordinate,
        day: date | datetime | str,
        tz: str = "UTC",
        preferred_azimuth: float | None = None,
    ) -> SunAlignmentPoint | None:
        """Alignment whose sun azimuth is closest to the preference, else the highest sun."""
        points = await self.compute_sun_alignment_path(poi, day, tz)
        if not points:
            return None

        if preferred_azimuth is not None:
            return min(points, key=lambda p: _azimuth_gap(p.sun_azimuth, preferred_azimuth))
        return max(points, key=lambda p: p.sun_elevation)

    async def elevation_profile(
        self,
        poi: GeoCoordinate,
        alignment_point: SunAlignmentPoint,
        samples: int = DEFAULT_PROFILE_SAMPLES,
    ) -> list[ElevationSample]:
        """Terrain from the alignment's intersection back to the POI."""
        start = GeoCoordinate(
            alignment_point.intersection.latitude, alignment_point.intersection.longitude
        )
        return await self.elevation_service.elevation_profile(start, poi, samples)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _poi_elevation(self, poi: GeoCoordinate) -> float | None:
        poi_elevation = await self.elevation_service.elevation(poi)
        if poi_elevation is None:
            logger.warning(f"No terrain elevation at POI {poi}")
            return None
        if self.preload_radius_km:
            await self.elevation_service.preload_area(poi, self.preload_radius_km)
        return poi_elevation

    @staticmethod
    def _hours(day: date | datetime | str, tz: str, hours: list[int]) -> list[datetime]:
        start, _, zone = day_window(day, tz)
        return [(start + timedelta(hours=h)).astimezone(zone) for h in hours]


def _azimuth_gap(a: float, b: float) -> float:
    gap = math.fmod(abs(a - b), 360.0)
    return min(gap, 360.0 - gap)
