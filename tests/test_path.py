from __future__ import annotations

import logging
from datetime import date, timedelta

import pytest

from baby_timeline.timeline.layout import CurveConfig
from baby_timeline.timeline.path import (
    CUBIC,
    MOVE,
    SMOOTH,
    ControlPoint,
    PathTemplateError,
    approximate_x,
    build_curve_path,
    control_points,
    templates,
    validate_template,
)
from baby_timeline.timeline.window import build_days

CURVE = CurveConfig(width=400, center_x=200, amplitude=80)


def make_days(count: int, curve: CurveConfig = CURVE):
    start = date(2024, 3, 1)
    return build_days([start + timedelta(days=offset) for offset in range(count)], curve.day_stride)


def test_empty_window_produces_empty_path() -> None:
    path = build_curve_path((), CURVE)

    assert path.is_empty
    assert path.to_svg() == ""


def test_single_day_uses_cubic_then_smooth_segments() -> None:
    path = build_curve_path(make_days(1), CURVE)

    kinds = [command.kind for command in path.commands]
    assert kinds == [MOVE, CUBIC, SMOOTH, SMOOTH, SMOOTH]
    assert path.anchors() == ((280, 0), (120, 360), (280, 720), (120, 1080), (280, 1440))
    assert path.to_svg().startswith("M 280 0 C 232 108, 168 252, 120 360 S ")


def test_consecutive_days_join_without_a_gap() -> None:
    days = make_days(3)
    path = build_curve_path(days, CURVE)

    anchors = path.anchors()
    assert len(path.commands) == 1 + 4 * len(days)
    assert [command.kind for command in path.commands].count(MOVE) == 1
    for day in days[1:]:
        assert (280, day.start_offset) in anchors
    ys = [y for _, y in anchors]
    assert ys == sorted(ys)
    assert len(set(ys)) == len(ys)


def test_smooth_segments_place_second_control_at_seventy_percent() -> None:
    path = build_curve_path(make_days(1), CURVE)

    previous = path.commands[1].end
    command = path.commands[2]
    control, end = command.points
    assert control == (
        pytest.approx(previous[0] + (end[0] - previous[0]) * 0.7),
        pytest.approx(previous[1] + (end[1] - previous[1]) * 0.7),
    )


def test_coordinates_are_rounded_to_two_decimals() -> None:
    curve = CurveConfig(width=350, center_x=175, amplitude=350 / 3, hour_height=37)
    path = build_curve_path(make_days(2, curve), curve)

    for command in path.commands:
        for x, y in command.points:
            assert round(x, 2) == x
            assert round(y, 2) == y


@pytest.mark.parametrize("zero_crossings", sorted(templates()))
def test_every_registered_template_is_continuous(zero_crossings: int) -> None:
    curve = CurveConfig(width=400, center_x=200, amplitude=80, zero_crossings_per_day=zero_crossings)
    points = control_points(curve.center_x, curve.amplitude, zero_crossings)

    assert points[0].x == points[-1].x
    path = build_curve_path(make_days(2, curve), curve)
    assert path.anchors()[len(points) - 1] == (points[-1].x, curve.day_stride)


def test_unknown_zero_crossings_falls_back_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        points = control_points(200, 80, 9)

    assert points == control_points(200, 80, 2)
    assert "No curve template" in caplog.text


@pytest.mark.parametrize(
    "points, message",
    [
        ([ControlPoint(0, 1)], "at least two"),
        ([ControlPoint(1, 1), ControlPoint(24, 1)], "hour 0"),
        ([ControlPoint(0, 1), ControlPoint(12, 0), ControlPoint(12, 0), ControlPoint(24, 1)], "increasing"),
        ([ControlPoint(0, 1), ControlPoint(24, -1)], "would not join"),
    ],
)
def test_invalid_templates_are_rejected(points, message: str) -> None:
    with pytest.raises(PathTemplateError, match=message):
        validate_template(points)


@pytest.mark.parametrize(
    "y, expected",
    [
        (0, 280),
        (180, 200),
        (360, 120),
        (1440, 280),
        (1480 + 180, 200),
    ],
)
def test_approximate_x_interpolates_control_points(y: float, expected: float) -> None:
    assert approximate_x(CURVE, y) == pytest.approx(expected)
