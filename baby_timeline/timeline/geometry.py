"""Tessellation of curve paths into arc-length addressable polylines."""

from __future__ import annotations

import math
from bisect import bisect_left
from dataclasses import dataclass
from typing import List

from .path import CUBIC, LINE, MOVE, QUADRATIC, SMOOTH, SMOOTH_QUADRATIC, CurvePath, Point

DEFAULT_TOLERANCE = 0.1
MAX_SUBDIVISION_DEPTH = 12


class PathGeometryError(ValueError):
    """Raised when a path cannot be tessellated."""


@dataclass(frozen=True)
class RenderedPath:
    """Polyline approximation of a drawn path with a cumulative length table.

    This plays the role of a drawing surface's "point at length" primitive:
    curves are flattened once, after which any distance along the path maps to
    a point by bisection over the length table.
    """

    vertices: tuple[Point, ...] = ()
    lengths: tuple[float, ...] = ()

    @classmethod
    def from_curve(cls, path: CurvePath, *, tolerance: float = DEFAULT_TOLERANCE) -> "RenderedPath":
        vertices = flatten(path, tolerance=tolerance)
        lengths: list[float] = []
        total = 0.0
        for index, vertex in enumerate(vertices):
            if index:
                total += math.dist(vertices[index - 1], vertex)
            lengths.append(total)
        return cls(tuple(vertices), tuple(lengths))

    @property
    def total_length(self) -> float:
        return self.lengths[-1] if self.lengths else 0.0

    @property
    def is_empty(self) -> bool:
        return not self.vertices

    def point_at_length(self, distance: float) -> Point:
        """Return the point ``distance`` pixels along the path, clamped to its ends."""

        if not self.vertices:
            raise PathGeometryError("Cannot sample an empty path")
        if distance <= 0 or len(self.vertices) == 1:
            return self.vertices[0]
        if distance >= self.total_length:
            return self.vertices[-1]

        index = bisect_left(self.lengths, distance)
        start_length = self.lengths[index - 1]
        segment = self.lengths[index] - start_length
        t = (distance - start_length) / segment if segment else 0.0
        (x0, y0), (x1, y1) = self.vertices[index - 1], self.vertices[index]
        return (x0 + (x1 - x0) * t, y0 + (y1 - y0) * t)


def flatten(path: CurvePath, *, tolerance: float = DEFAULT_TOLERANCE) -> List[Point]:
    """Convert ``path`` into a list of polyline vertices."""

    vertices: List[Point] = []
    current: Point | None = None
    last_cubic_control: Point | None = None
    last_quadratic_control: Point | None = None

    for command in path.commands:
        kind = command.kind
        if kind == MOVE:
            if current is not None:
                raise PathGeometryError("Paths with more than one subpath are not supported")
            current = command.end
            vertices.append(current)
            last_cubic_control = last_quadratic_control = None
            continue
        if current is None:
            raise PathGeometryError(f"Path must start with a move command, got {kind!r}")

        if kind == LINE:
            vertices.append(command.end)
            last_cubic_control = last_quadratic_control = None
        elif kind in (CUBIC, SMOOTH):
            if kind == CUBIC:
                first, second, end = command.points
            else:
                second, end = command.points
                first = _reflect(last_cubic_control, current)
            _flatten_cubic(current, first, second, end, tolerance, 0, vertices)
            last_cubic_control = second
            last_quadratic_control = None
        elif kind in (QUADRATIC, SMOOTH_QUADRATIC):
            if kind == QUADRATIC:
                control, end = command.points
            else:
                (end,) = command.points
                control = _reflect(last_quadratic_control, current)
            first = _lerp(current, control, 2 / 3)
            second = _lerp(end, control, 2 / 3)
            _flatten_cubic(current, first, second, end, tolerance, 0, vertices)
            last_quadratic_control = control
            last_cubic_control = None
        else:
            raise PathGeometryError(f"Unsupported path command {kind!r}")
        current = command.end

    return vertices


def _reflect(control: Point | None, about: Point) -> Point:
    if control is None:
        return about
    return (2 * about[0] - control[0], 2 * about[1] - control[1])


def _lerp(a: Point, b: Point, t: float) -> Point:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def _flatten_cubic(
    p0: Point,
    p1: Point,
    p2: Point,
    p3: Point,
    tolerance: float,
    depth: int,
    out: List[Point],
) -> None:
    # De Casteljau subdivision until the control polygon hugs the chord.
    if depth >= MAX_SUBDIVISION_DEPTH or _is_flat(p0, p1, p2, p3, tolerance):
        out.append(p3)
        return
    p01 = _lerp(p0, p1, 0.5)
    p12 = _lerp(p1, p2, 0.5)
    p23 = _lerp(p2, p3, 0.5)
    p012 = _lerp(p01, p12, 0.5)
    p123 = _lerp(p12, p23, 0.5)
    mid = _lerp(p012, p123, 0.5)
    _flatten_cubic(p0, p01, p012, mid, tolerance, depth + 1, out)
    _flatten_cubic(mid, p123, p23, p3, tolerance, depth + 1, out)


def _is_flat(p0: Point, p1: Point, p2: Point, p3: Point, tolerance: float) -> bool:
    chord_x = p3[0] - p0[0]
    chord_y = p3[1] - p0[1]
    chord = math.hypot(chord_x, chord_y)
    if chord == 0:
        return max(math.dist(p0, p1), math.dist(p0, p2)) <= tolerance
    d1 = abs((p1[0] - p0[0]) * chord_y - (p1[1] - p0[1]) * chord_x) / chord
    d2 = abs((p2[0] - p0[0]) * chord_y - (p2[1] - p0[1]) * chord_x) / chord
    return max(d1, d2) <= tolerance


__all__ = ["PathGeometryError", "RenderedPath", "flatten"]
