"""
Response models for line-of-sight results.

Every structured result handed to callers is a Pydantic model with a
to_text() rendering; format_response() picks JSON or text.
"""

import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def format_response(model: BaseModel, output_mode: str = "json") -> str:
    """Format a response model as JSON or human-readable text.

    Args:
        model: Pydantic response model instance
        output_mode: "json" (default) or "text"

    Returns:
        Formatted string
    """
    if output_mode == "text" and hasattr(model, "to_text"):
        return str(model.to_text())
    return str(model.model_dump_json())


def _time(value: dt.datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


class Coordinate(BaseModel):
    """A latitude/longitude pair in degrees."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    latitude: float = Field(..., description="Latitude in degrees")
    longitude: float = Field(..., description="Longitude in degrees")

    @classmethod
    def from_geo(cls, coordinate) -> "Coordinate":
        return cls(latitude=coordinate.latitude, longitude=coordinate.longitude)

    def to_text(self) -> str:
        return f"{self.latitude:.5f}, {self.longitude:.5f}"


# ---------------------------------------------------------------------------
# Horizon events
# ---------------------------------------------------------------------------


class HorizonEventType(str, Enum):
    RISE = "rise"
    SET = "set"


class HorizonEvent(BaseModel):
    """A rise or set of a celestial object over the terrain horizon."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: HorizonEventType = Field(..., description="rise or set")
    time: dt.datetime = Field(..., description="Event instant (1 s precision)")
    azimuth: float = Field(..., description="Object azimuth at the event, degrees from north")
    object_elevation: float = Field(..., description="Object elevation at the event, degrees")
    terrain_elevation: float = Field(
        ..., description="Angular height of the terrain horizon along the azimuth, degrees"
    )
    intersection: Coordinate = Field(..., description="Where the sight line meets terrain")
    distance_m: float = Field(..., description="Ground distance to the intersection in metres")

    def to_text(self) -> str:
        return (
            f"{self.type.value.upper():4s} {_time(self.time)}  "
            f"az {self.azimuth:.1f}°  obj {self.object_elevation:.2f}°  "
            f"terrain {self.terrain_elevation:.2f}°  "
            f"at {self.intersection.to_text()} ({self.distance_m / 1000:.1f} km)"
        )


class ObserverInfo(BaseModel):
    """Where the horizon was computed from."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str | None = Field(None, description="Optional observer label")
    latitude: float = Field(..., description="Latitude in degrees")
    longitude: float = Field(..., description="Longitude in degrees")
    elevation_m: float = Field(..., description="Observer elevation in metres")

    @classmethod
    def from_observer(cls, observer) -> "ObserverInfo":
        return cls(
            name=observer.name,
            latitude=observer.coordinate.latitude,
            longitude=observer.coordinate.longitude,
            elevation_m=observer.elevation,
        )


class HorizonCalculationResult(BaseModel):
    """All horizon events for one object, one observer and one local day."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    observer: ObserverInfo = Field(..., description="Viewing location")
    date: dt.date = Field(..., description="Local calendar day")
    timezone: str = Field(..., description="IANA time zone the day is taken in")
    celestial_object: str = Field(..., description="Object identifier (e.g. sun)")
    events: list[HorizonEvent] = Field(default_factory=list, description="Events in time order")
    is_always_visible: bool = Field(..., description="Above the terrain horizon all day")
    never_visible: bool = Field(..., description="Never above the terrain horizon")
    message: str = Field(..., description="Operation result message")

    @property
    def first_rise(self) -> HorizonEvent | None:
        return next((e for e in self.events if e.type == HorizonEventType.RISE), None)

    @property
    def last_set(self) -> HorizonEvent | None:
        sets = [e for e in self.events if e.type == HorizonEventType.SET]
        return sets[-1] if sets else None

    def to_text(self) -> str:
        where = self.observer.name or f"{self.observer.latitude:.4f}, {self.observer.longitude:.4f}"
        lines = [
            f"Horizon events: {self.celestial_object} on {self.date.isoformat()} ({self.timezone})",
            f"Observer: {where} at {self.observer.elevation_m:.0f}m",
            self.message,
        ]
        for event in self.events:
            lines.append(f"  {event.to_text()}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Sun path
# ---------------------------------------------------------------------------


class SunAlignmentPoint(BaseModel):
    """Where the sun-POI line meets terrain at one instant."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    time: dt.datetime = Field(..., description="Instant of the alignment")
    sun_azimuth: float = Field(..., description="Sun azimuth in degrees from north")
    sun_elevation: float = Field(..., description="Sun elevation in degrees")
    intersection: Coordinate = Field(..., description="Terrain intersection of the alignment")
    intersection_elevation_m: float = Field(..., description="Terrain elevation at the hit")
    distance_m: float = Field(..., description="Ground distance from the POI in metres")

    def to_text(self) -> str:
        return (
            f"{_time(self.time)}  sun az {self.sun_azimuth:.1f}° el {self.sun_elevation:.1f}°  "
            f"-> {self.intersection.to_text()} "
            f"({self.intersection_elevation_m:.0f}m, {self.distance_m / 1000:.2f} km)"
        )


class PhotographerPosition(BaseModel):
    """A spot from which the POI is seen in line with the sun."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    time: dt.datetime = Field(..., description="Instant the alignment holds")
    coordinate: Coordinate = Field(..., description="Where to stand")
    elevation_m: float | None = Field(None, description="Ground elevation there, if known")
    distance_m: float = Field(..., description="Ground distance to the POI in metres")
    bearing_to_poi: float = Field(..., description="Bearing from the position to the POI")
    sun_azimuth: float = Field(..., description="Sun azimuth in degrees from north")
    sun_elevation: float = Field(..., description="Sun elevation in degrees")

    def to_text(self) -> str:
        elev = f"{self.elevation_m:.0f}m" if self.elevation_m is not None else "unknown"
        return (
            f"{_time(self.time)}  stand at {self.coordinate.to_text()} ({elev}), "
            f"{self.distance_m / 1000:.2f} km from POI, facing {self.bearing_to_poi:.1f}°"
        )


class ElevationSample(BaseModel):
    """One point of an elevation profile."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    distance_m: float = Field(..., description="Distance from the profile start in metres")
    coordinate: Coordinate = Field(..., description="Sample location")
    elevation_m: float | None = Field(None, description="Terrain elevation, None if unknown")

    def to_text(self) -> str:
        elev = f"{self.elevation_m:.1f}m" if self.elevation_m is not None else "n/a"
        return f"{self.distance_m:8.0f}m  {self.coordinate.to_text()}  {elev}"
