"""Response models for line-of-sight."""

from .responses import (
    Coordinate,
    ElevationSample,
    HorizonCalculationResult,
    HorizonEvent,
    HorizonEventType,
    ObserverInfo,
    PhotographerPosition,
    SunAlignmentPoint,
    format_response,
)

__all__ = [
    "Coordinate",
    "HorizonEventType",
    "HorizonEvent",
    "ObserverInfo",
    "HorizonCalculationResult",
    "SunAlignmentPoint",
    "PhotographerPosition",
    "ElevationSample",
    "format_response",
]
