"""Curved multi-day timeline layout engine."""

from .events import EventFormatError, EventType, TimelineEvent
from .geometry import RenderedPath
from .layout import DEFAULT_LAYOUT, CurveConfig, TimelineLayout
from .path import CurvePath, build_curve_path
from .placement import EventPlacement, PlacementEngine, PlacementKind
from .sampling import CoordinateInverter, CoordinateSample, build_sample_map, lookup
from .view import TimelineFrame, TimelineView
from .window import Day, DayWindow, Direction

__all__ = [
    "CoordinateInverter",
    "CoordinateSample",
    "CurveConfig",
    "CurvePath",
    "DEFAULT_LAYOUT",
    "Day",
    "DayWindow",
    "Direction",
    "EventFormatError",
    "EventPlacement",
    "EventType",
    "PlacementEngine",
    "PlacementKind",
    "RenderedPath",
    "TimelineEvent",
    "TimelineFrame",
    "TimelineLayout",
    "TimelineView",
    "build_curve_path",
    "build_sample_map",
    "lookup",
]
