"""
Rise and set of a celestial object over the local terrain horizon.

The day is sampled every five minutes. Only samples near the astronomical
horizon pay for a terrain lookup; the rest are decided by the sign of the
object's elevation. Each visibility change is bisected to one second.
"""

import inspect
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..constants import (
    FALLBACK_INTERSECTION_DISTANCE_M,
    HORIZON_BAND_MAX_DEG,
    HORIZON_BAND_MIN_DEG,
    MAX_TERRAIN_DISTANCE_M,
    SAMPLING_INTERVAL_S,
    TIME_REFINEMENT_TOLERANCE_S,
    ErrorMessages,
    SuccessMessages,
)
from ..errors import InvalidDate
from ..models import (
    Coordinate,
    HorizonCalculationResult,
    HorizonEvent,
    HorizonEventType,
    ObserverInfo,
)
from .astronomy import CelestialObject, position, resolve_object
from .geodesy import Observer, az_alt_to_enu, enu_offset_to_coordinate
from .intersector import TerrainIntersector, TerrainSource

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], Awaitable[None] | None]


@dataclass(frozen=True)
class VisibilitySample:
    """Visibility of the object at one instant."""

    time: datetime
    azimuth: float
    object_elevation: float
    terrain_elevation: float | None
    is_visible: bool


def day_window(day: date | datetime | str, tz: str) -> tuple[datetime, datetime, ZoneInfo]:
    """
    UTC bounds of a local calendar day.

    Returns:
        Tuple of (start, end, zone) where end is exactly 24 h after start

    Raises:
        InvalidDate: if the day or the time zone cannot be interpreted
    """
    try:
        zone = ZoneInfo(tz)
        if isinstance(day, str):
            day = date.fromisoformat(day)
        if isinstance(day, datetime):
            day = day.astimezone(zone).date() if day.tzinfo else day.date()
        start = datetime.combine(day, time(0), tzinfo=zone).astimezone(timezone.utc)
    except (ZoneInfoNotFoundError, ValueError, TypeError, OverflowError) as e:
        raise InvalidDate(ErrorMessages.INVALID_DATE.format(day, tz, e)) from e
    return start, start + timedelta(hours=24), zone


class HorizonCalculator:
    """Detects terrain-aware rise and set events for an observer."""

    def __init__(
        self,
        terrain: TerrainSource,
        intersector: TerrainIntersector | None = None,
    ) -> None:
        self.terrain = terrain
        self.intersector = intersector or TerrainIntersector(terrain)

    async def calculate_horizon_events(
        self,
        observer: Observer,
        day: date | datetime | str,
        obj: CelestialObject | str = CelestialObject.SUN,
        tz: str = "UTC",
        progress_callback: ProgressCallback | None = None,
    ) -> HorizonCalculationResult:
        """
        All rise/set events of an object on one local day.

        Args:
            observer: Viewing location and elevation
            day: Calendar day (date, datetime or ISO string)
            obj: Object to track
            tz: IANA time zone defining the day boundaries
            progress_callback: Optional sync or async callable receiving 0.0-1.0

        Returns:
            HorizonCalculationResult with events in time order

        Raises:
            InvalidDate: if the day boundaries cannot be computed
            ValueError: for an unsupported object
        """
        obj = resolve_object(obj)
        start, end, zone = day_window(day, tz)
        local_day = start.astimezone(zone).date()
        logger.info(f"Horizon events for {obj.value} at {observer.coordinate} on {local_day} ({tz})")

        samples = await self.sample_day(observer, obj, start, end, progress_callback)
        events = await self.detect_events(samples, observer, obj, zone)

        rises = sum(1 for e in events if e.type == HorizonEventType.RISE)
        is_always_visible = not events and all(s.is_visible for s in samples)
        never_visible = not events and not any(s.is_visible for s in samples)

        if is_always_visible:
            message = SuccessMessages.ALWAYS_VISIBLE.format(obj.value)
        elif never_visible:
            message = SuccessMessages.NEVER_VISIBLE.format(obj.value)
        else:
            message = SuccessMessages.HORIZON_EVENTS.format(
                len(events), obj.value, rises, len(events) - rises
            )
        logger.info(message)

        return HorizonCalculationResult(
            observer=ObserverInfo.from_observer(observer),
            date=local_day,
            timezone=tz,
            celestial_object=obj.value,
            events=events,
            is_always_visible=is_always_visible,
            never_visible=never_visible,
            message=message,
        )

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    async def sample_day(
        self,
        observer: Observer,
        obj: CelestialObject,
        start: datetime,
        end: datetime,
        progress_callback: ProgressCallback | None = None,
    ) -> list[VisibilitySample]:
        """Visibility every sampling interval from start to end inclusive."""
        total = (end - start).total_seconds()
        step = timedelta(seconds=SAMPLING_INTERVAL_S)

        samples = []
        when = start
        while when <= end:
            samples.append(await self.visibility(observer, obj, when))
            if progress_callback is not None:
                result = progress_callback((when - start).total_seconds() / total)
                if inspect.isawaitable(result):
                    await result
            when += step

        visible = sum(1 for s in samples if s.is_visible)
        logger.debug(f"Sampled {len(samples)} instants, {visible} visible")
        return samples

    async def visibility(
        self, observer: Observer, obj: CelestialObject, when: datetime
    ) -> VisibilitySample:
        """Whether the object clears the terrain horizon at an instant."""
        pos = position(obj, when, observer.coordinate)

        terrain = None
        is_visible = pos.elevation > 0
        if HORIZON_BAND_MIN_DEG < pos.elevation < HORIZON_BAND_MAX_DEG:
            terrain = await self.terrain_angle(observer, pos.azimuth)
            is_visible = pos.elevation > terrain

        return VisibilitySample(
            time=when,
            azimuth=pos.azimuth,
            object_elevation=pos.elevation,
            terrain_elevation=terrain,
            is_visible=is_visible,
        )

    async def terrain_angle(self, observer: Observer, azimuth: float) -> float:
        """Angular height (degrees) of the first terrain along a horizontal azimuth; 0 if none."""
        hit = await self.intersector.intersect_ray_detailed(
            observer.coordinate,
            observer.elevation,
            az_alt_to_enu(azimuth, 0.0),
            MAX_TERRAIN_DISTANCE_M,
        )
        if hit is None:
            return 0.0

        ground = observer.coordinate.distance_to(hit.coordinate)
        if ground <= 0:
            return 0.0
        return math.degrees(math.atan2(hit.elevation - observer.elevation, ground))

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def detect_events(
        self,
        samples: list[VisibilitySample],
        observer: Observer,
        obj: CelestialObject,
        zone: ZoneInfo | None = None,
    ) -> list[HorizonEvent]:
        """Turn visibility changes between consecutive samples into refined events."""
        events = []
        for before, after in zip(samples, samples[1:]):
            if before.is_visible == after.is_visible:
                continue
            kind = HorizonEventType.RISE if after.is_visible else HorizonEventType.SET
            when = await self.refine_event(kind, before.time, after.time, observer, obj)
            event = await self.build_event(kind, when, observer, obj)
            if zone is not None:
                event = event.model_copy(update={"time": event.time.astimezone(zone)})
            logger.debug(event.to_text())
            events.append(event)
        return events

    async def refine_event(
        self,
        kind: HorizonEventType,
        low: datetime,
        high: datetime,
        observer: Observer,
        obj: CelestialObject,
    ) -> datetime:
        """
        Bisect a visibility change to the refinement tolerance.

        Returns:
            The first visible instant for a rise, the last visible one for a set
        """
        tolerance = timedelta(seconds=TIME_REFINEMENT_TOLERANCE_S)
        while high - low > tolerance:
            mid = low + (high - low) / 2
            visible = (await self.visibility(observer, obj, mid)).is_visible
            if kind == HorizonEventType.RISE:
                if visible:
                    high = mid
                else:
                    low = mid
            else:
                if visible:
                    low = mid
                else:
                    high = mid
        return high if kind == HorizonEventType.RISE else low

    async def build_event(
        self,
        kind: HorizonEventType,
        when: datetime,
        observer: Observer,
        obj: CelestialObject,
    ) -> HorizonEvent:
        """Position, terrain angle and sight-line intersection at the event time."""
        pos = position(obj, when, observer.coordinate)
        terrain = await self.terrain_angle(observer, pos.azimuth)
        direction = az_alt_to_enu(pos.azimuth, terrain)

        hit = await self.intersector.intersect_ray(
            observer.coordinate, observer.elevation, direction, MAX_TERRAIN_DISTANCE_M
        )
        if hit is not None:
            intersection, distance_m = hit, observer.coordinate.distance_to(hit)
        else:
            intersection = enu_offset_to_coordinate(
                direction * FALLBACK_INTERSECTION_DISTANCE_M, observer.coordinate
            )
            distance_m = FALLBACK_INTERSECTION_DISTANCE_M

        return HorizonEvent(
            type=kind,
            time=when,
            azimuth=pos.azimuth,
            object_elevation=pos.elevation,
            terrain_elevation=terrain,
            intersection=Coordinate.from_geo(intersection),
            distance_m=distance_m,
        )
