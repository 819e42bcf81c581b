"""Analytic curve path spanning the loaded days."""

from __future__ import annotations

import logging
from bisect import bisect_right
from dataclasses import dataclass
from typing import Mapping, Sequence

from .layout import HOURS_PER_DAY, CurveConfig
from .window import Day

LOGGER = logging.getLogger(__name__)

DEFAULT_ZERO_CROSSINGS = 2
FIRST_CONTROL_RATIO = 0.3
SECOND_CONTROL_RATIO = 0.7

MOVE = "M"
LINE = "L"
CUBIC = "C"
SMOOTH = "S"
QUADRATIC = "Q"
SMOOTH_QUADRATIC = "T"

Point = tuple[float, float]


class PathTemplateError(ValueError):
    """Raised when a control point template would produce a seam between days."""


@dataclass(frozen=True)
class ControlPoint:
    hour: float
    x: float


@dataclass(frozen=True)
class PathCommand:
    """A single drawing command with absolute coordinates."""

    kind: str
    points: tuple[Point, ...]

    @property
    def end(self) -> Point:
        return self.points[-1]

    def to_svg(self) -> str:
        coords = ", ".join(f"{_fmt(x)} {_fmt(y)}" for x, y in self.points)
        return f"{self.kind} {coords}"


@dataclass(frozen=True)
class CurvePath:
    commands: tuple[PathCommand, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.commands

    def anchors(self) -> tuple[Point, ...]:
        """Return the on-curve end point of every command."""

        return tuple(command.end for command in self.commands)

    def to_svg(self) -> str:
        return " ".join(command.to_svg() for command in self.commands)


# Templates are expressed as (hour, deflection) where the deflection is a
# multiple of the amplitude added to the centre line.
_TEMPLATES: dict[int, tuple[tuple[float, float], ...]] = {}


def round_coord(value: float) -> float:
    return round(value * 100) / 100


def _fmt(value: float) -> str:
    return f"{value:g}"


def validate_template(points: Sequence[ControlPoint]) -> None:
    """Ensure a template joins seamlessly with copies of itself."""

    if len(points) < 2:
        raise PathTemplateError("A template needs at least two control points")
    if points[0].hour != 0 or points[-1].hour != HOURS_PER_DAY:
        raise PathTemplateError("A template must start at hour 0 and end at hour 24")
    for previous, current in zip(points, points[1:]):
        if current.hour <= previous.hour:
            raise PathTemplateError("Template hours must be strictly increasing")
    if points[0].x != points[-1].x:
        raise PathTemplateError(
            f"Template starts at x={points[0].x} but ends at x={points[-1].x}; days would not join"
        )


def register_template(zero_crossings: int, deflections: Sequence[tuple[float, float]]) -> None:
    """Register a template of ``(hour, deflection)`` pairs for ``zero_crossings``."""

    validate_template([ControlPoint(hour, factor) for hour, factor in deflections])
    _TEMPLATES[zero_crossings] = tuple((float(hour), float(factor)) for hour, factor in deflections)


register_template(1, [(0, 1), (12, -1), (24, 1)])
register_template(2, [(0, 1), (6, -1), (12, 1), (18, -1), (24, 1)])
register_template(3, [(0, 0), (4, 1), (8, 0), (12, -1), (16, 0), (20, 1), (24, 0)])
register_template(4, [(0, 0), (3, 1), (6, 0), (9, -1), (12, 0), (15, 1), (18, 0), (21, -1), (24, 0)])


def templates() -> Mapping[int, tuple[tuple[float, float], ...]]:
    return dict(_TEMPLATES)


def control_points(center_x: float, amplitude: float, zero_crossings: int) -> tuple[ControlPoint, ...]:
    template = _TEMPLATES.get(zero_crossings)
    if template is None:
        LOGGER.warning(
            "No curve template for %s zero crossings; using %d",
            zero_crossings,
            DEFAULT_ZERO_CROSSINGS,
        )
        template = _TEMPLATES[DEFAULT_ZERO_CROSSINGS]
    points = tuple(ControlPoint(hour, center_x + factor * amplitude) for hour, factor in template)
    validate_template(points)
    return points


def build_curve_path(days: Sequence[Day], curve: CurveConfig) -> CurvePath:
    """Build one continuous path through every day in ``days``.

    The first segment is a cubic with control points at 30% and 70% of its
    chord; every later segment is a smooth continuation whose first control
    point mirrors the previous one. A day's closing hour-24 point sits on the
    next day's start offset, so it doubles as that day's opening point and the
    separator band is covered by the last segment of the day.
    """

    if not days:
        return CurvePath()

    points = control_points(curve.center_x, curve.amplitude, curve.zero_crossings_per_day)
    last_index = len(points) - 1
    commands: list[PathCommand] = []
    previous: Point | None = None

    for position, day in enumerate(days):
        next_day = days[position + 1] if position + 1 < len(days) else None
        for index, point in enumerate(points):
            if position > 0 and index == 0:
                continue
            if index == last_index and next_day is not None:
                y = next_day.start_offset
            else:
                y = day.start_offset + point.hour * curve.hour_height
            anchor = (round_coord(point.x), round_coord(y))

            if previous is None:
                commands.append(PathCommand(MOVE, (anchor,)))
            elif len(commands) == 1:
                commands.append(
                    PathCommand(
                        CUBIC,
                        (
                            _towards(previous, anchor, FIRST_CONTROL_RATIO),
                            _towards(previous, anchor, SECOND_CONTROL_RATIO),
                            anchor,
                        ),
                    )
                )
            else:
                commands.append(
                    PathCommand(SMOOTH, (_towards(previous, anchor, SECOND_CONTROL_RATIO), anchor))
                )
            previous = anchor

    return CurvePath(tuple(commands))


def approximate_x(curve: CurveConfig, y: float) -> float:
    """Estimate x for ``y`` by straight-line interpolation between control points."""

    points = control_points(curve.center_x, curve.amplitude, curve.zero_crossings_per_day)
    within_day = y % curve.day_stride if curve.day_stride else y
    hour = min(max(within_day / curve.hour_height, 0.0), float(HOURS_PER_DAY))
    hours = [point.hour for point in points]
    index = bisect_right(hours, hour) - 1
    if index >= len(points) - 1:
        return points[-1].x
    start, end = points[index], points[index + 1]
    t = (hour - start.hour) / (end.hour - start.hour)
    return start.x + (end.x - start.x) * t


def _towards(start: Point, end: Point, ratio: float) -> Point:
    return (
        round_coord(start[0] + (end[0] - start[0]) * ratio),
        round_coord(start[1] + (end[1] - start[1]) * ratio),
    )


__all__ = [
    "ControlPoint",
    "CurvePath",
    "PathCommand",
    "PathTemplateError",
    "approximate_x",
    "build_curve_path",
    "control_points",
    "register_template",
    "round_coord",
    "templates",
    "validate_template",
]
