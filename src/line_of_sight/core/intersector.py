"""
Ray-terrain intersection by ray marching.

A ray leaves the POI along an ENU direction; it is stepped coarsely until it
passes at or below the terrain, then the crossing is bisected to metre
precision. Missing terrain is tolerated for a few consecutive steps before
the ray is considered to have left data coverage.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Protocol

import numpy as np

from ..constants import (
    BINARY_SEARCH_TOLERANCE_M,
    COARSE_STEP_M,
    DEFAULT_MAX_RAY_DISTANCE_M,
    EYE_HEIGHT_M,
    LOS_CLEARANCE_M,
    LOS_SAMPLE_SPACING_M,
    MAX_CONSECUTIVE_FAILURES,
    MIN_RAY_OFFSET_M,
    PHOTOGRAPHER_FALLBACK_DISTANCE_M,
    PHOTOGRAPHER_MAX_DISTANCE_M,
    PHOTOGRAPHER_STEP_M,
    UNDERGROUND_TOLERANCE,
    SuccessMessages,
)
from .geodesy import (
    GeoCoordinate,
    Vector,
    az_alt_to_enu,
    destination,
    enu_offset_to_coordinate,
    normalize_azimuth,
    normalize_vector,
)

logger = logging.getLogger(__name__)


class TerrainSource(Protocol):
    """Anything that answers elevation queries (ElevationService or a test double)."""

    async def elevation(self, coordinate: GeoCoordinate) -> float | None: ...

    async def elevations(self, coordinates: list[GeoCoordinate]) -> list[float | None]: ...


@dataclass
class RayState:
    """Marching state for one intersection call."""

    origin: GeoCoordinate
    origin_elevation: float
    direction: Vector
    distance: float = MIN_RAY_OFFSET_M
    last_above: float | None = None
    consecutive_failures: int = 0

    def point_at(self, t: float) -> tuple[GeoCoordinate, float]:
        """Coordinate under the ray and the ray's elevation at distance t."""
        offset = self.direction * t
        return (
            enu_offset_to_coordinate(offset, self.origin),
            self.origin_elevation + float(offset[2]),
        )

    def ground_distance(self, t: float) -> float:
        return t * math.hypot(float(self.direction[0]), float(self.direction[1]))


@dataclass(frozen=True)
class RayIntersection:
    """Where a ray meets terrain."""

    coordinate: GeoCoordinate
    elevation: float
    distance: float


class TerrainIntersector:
    """Finds where rays from a point first strike the ground."""

    def __init__(self, terrain: TerrainSource) -> None:
        self.terrain = terrain

    async def intersect_ray(
        self,
        poi: GeoCoordinate,
        poi_elevation: float,
        direction: Any,
        max_distance: float = DEFAULT_MAX_RAY_DISTANCE_M,
    ) -> GeoCoordinate | None:
        """
        First terrain crossing of a ray leaving the POI.

        Args:
            poi: Ray origin
            poi_elevation: Origin elevation in metres
            direction: ENU direction (any length)
            max_distance: Give up beyond this distance along the ray (m)

        Returns:
            Coordinate of the crossing, or None if the ray points too far
            down, leaves data coverage, or never meets terrain
        """
        hit = await self._march(poi, poi_elevation, direction, max_distance)
        if hit is None:
            return None
        return hit[1]

    async def intersect_ray_detailed(
        self,
        poi: GeoCoordinate,
        poi_elevation: float,
        direction: Any,
        max_distance: float = DEFAULT_MAX_RAY_DISTANCE_M,
    ) -> RayIntersection | None:
        """Like intersect_ray, also returning terrain elevation and ground distance."""
        hit = await self._march(poi, poi_elevation, direction, max_distance)
        if hit is None:
            logger.debug(SuccessMessages.NO_INTERSECTION.format(max_distance))
            return None

        state, coordinate, t = hit
        terrain = await self.terrain.elevation(coordinate)
        if terrain is None:
            terrain = state.point_at(t)[1]

        result = RayIntersection(
            coordinate=coordinate, elevation=terrain, distance=state.ground_distance(t)
        )
        logger.debug(SuccessMessages.INTERSECTION.format(result.distance, result.elevation))
        return result

    async def _march(
        self,
        poi: GeoCoordinate,
        poi_elevation: float,
        direction: Any,
        max_distance: float,
    ) -> tuple[RayState, GeoCoordinate, float] | None:
        state = RayState(poi, poi_elevation, normalize_vector(direction))

        if state.direction[2] < UNDERGROUND_TOLERANCE:
            logger.debug(f"Ray points underground (up={state.direction[2]:.3f})")
            return None

        while state.distance < max_distance:
            coordinate, ray_elevation = state.point_at(state.distance)
            terrain = await self.terrain.elevation(coordinate)

            if terrain is None:
                state.consecutive_failures += 1
                if state.consecutive_failures >= MAX_CONSECUTIVE_FAILURES:
                    logger.debug(f"Ray left data coverage at {state.distance:.0f}m")
                    return None
                state.distance += COARSE_STEP_M
                continue

            state.consecutive_failures = 0

            if ray_elevation <= terrain:
                low = (
                    state.last_above
                    if state.last_above is not None
                    else max(MIN_RAY_OFFSET_M, state.distance - COARSE_STEP_M)
                )
                t = await self._refine(state, low, state.distance)
                return state, state.point_at(t)[0], t

            state.last_above = state.distance
            state.distance += COARSE_STEP_M

        return None

    async def _refine(self, state: RayState, low: float, high: float) -> float:
        """Bisect [low, high] down to the tolerance; returns the at-or-below bound."""
        while high - low > BINARY_SEARCH_TOLERANCE_M:
            mid = (low + high) / 2.0
            coordinate, ray_elevation = state.point_at(mid)
            terrain = await self.terrain.elevation(coordinate)
            if terrain is None:
                break
            if ray_elevation > terrain:
                low = mid
            else:
                high = mid
        return high

    # ------------------------------------------------------------------
    # Photographer position
    # ------------------------------------------------------------------

    async def photographer_position(
        self,
        poi: GeoCoordinate,
        poi_elevation: float,
        azimuth: float,
        altitude: float,
        max_distance: float = DEFAULT_MAX_RAY_DISTANCE_M,
    ) -> GeoCoordinate:
        """
        Where to stand to see an object directly behind the POI.

        Walks away from the POI opposite the object's azimuth and returns the
        first ground position with an unobstructed view of the POI.

        Args:
            poi: Point of interest
            poi_elevation: POI elevation in metres
            azimuth: Object azimuth in degrees
            altitude: Object altitude in degrees
            max_distance: Search limit in metres (capped at 10 km)

        Returns:
            The first clear position, or a point 1 km away along the
            opposite bearing if none is clear
        """
        opposite = -az_alt_to_enu(azimuth, altitude)
        horizontal = normalize_vector(np.array([opposite[0], opposite[1], 0.0]))
        limit = min(max_distance, PHOTOGRAPHER_MAX_DISTANCE_M)

        distance = PHOTOGRAPHER_STEP_M
        while distance < limit:
            candidate = enu_offset_to_coordinate(horizontal * distance, poi)
            ground = await self.terrain.elevation(candidate)
            if ground is not None and await self._has_line_of_sight(
                candidate, ground + EYE_HEIGHT_M, poi, poi_elevation
            ):
                logger.debug(f"Clear view of POI from {candidate} at {distance:.0f}m")
                return candidate
            distance += PHOTOGRAPHER_STEP_M

        bearing = normalize_azimuth(math.degrees(math.atan2(opposite[0], opposite[1])))
        return destination(poi, bearing, PHOTOGRAPHER_FALLBACK_DISTANCE_M)

    async def _has_line_of_sight(
        self,
        start: GeoCoordinate,
        start_elevation: float,
        end: GeoCoordinate,
        end_elevation: float,
    ) -> bool:
        """True unless terrain rises above the straight sight line (plus clearance)."""
        samples = int(start.distance_to(end) / LOS_SAMPLE_SPACING_M) + 1
        if samples <= 1:
            return True

        fractions = [i / (samples - 1) for i in range(samples)]
        points = [
            GeoCoordinate(
                start.latitude + (end.latitude - start.latitude) * f,
                start.longitude + (end.longitude - start.longitude) * f,
            )
            for f in fractions
        ]
        heights = await self.terrain.elevations(points)

        for f, terrain in zip(fractions, heights):
            if terrain is None:
                continue
            line = start_elevation + (end_elevation - start_elevation) * f
            if terrain > line + LOS_CLEARANCE_M:
                return False
        return True
