"""Placement of domain events onto the sampled timeline curve."""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Callable, Mapping, Optional, Sequence

from .events import TimelineEvent, add_minutes, effective_duration, parse_clock, parse_event_date
from .layout import CurveConfig
from .path import LINE, MOVE, QUADRATIC, SMOOTH_QUADRATIC, CurvePath, PathCommand, Point, approximate_x, round_coord
from .sampling import CoordinateSample, lookup
from .window import Day

LOGGER = logging.getLogger(__name__)

DURATION_THRESHOLD_MINUTES = 60
MIN_CONNECTOR_STEP = 5.0
MAX_CONNECTOR_STEP = 20.0
CONNECTOR_STEPS_PER_SPAN = 10
DEFAULT_CONNECTOR_CACHE_SIZE = 512


class PlacementKind(str, Enum):
    POINT = "point"
    DURATION = "duration"


@dataclass(frozen=True)
class EventPlacement:
    """Screen position of an event; duration events also carry their end and connector."""

    event_id: str
    kind: PlacementKind
    x: float
    y: float
    end_x: Optional[float] = None
    end_y: Optional[float] = None
    connector_path: Optional[CurvePath] = None
    duration_minutes: float = 0
    event: Optional[TimelineEvent] = field(default=None, compare=False)

    @property
    def is_duration(self) -> bool:
        return self.kind is PlacementKind.DURATION


def compute_y(start_offset: float, moment: time, hour_height: float) -> float:
    """Blend the hour and next-hour positions by the minute fraction."""

    hour_y = start_offset + moment.hour * hour_height
    next_hour_y = start_offset + (moment.hour + 1) * hour_height
    fraction = (moment.minute + moment.second / 60) / 60
    return hour_y + (next_hour_y - hour_y) * fraction


def connector_step(span: float) -> float:
    return max(MIN_CONNECTOR_STEP, min(MAX_CONNECTOR_STEP, span / CONNECTOR_STEPS_PER_SPAN))


def build_connector_path(start: Point, end: Point, x_at: Callable[[float], float]) -> CurvePath:
    """Trace the curve between two placements instead of cutting a straight chord."""

    start_y, end_y = start[1], end[1]
    low, high = min(start_y, end_y), max(start_y, end_y)
    step = connector_step(high - low)

    points: list[Point] = [start]
    y = low + step
    while y < high:
        points.append((x_at(y), y))
        y += step
    if points[-1][1] != end_y:
        points.append(end)

    points = [(round_coord(x), round_coord(y)) for x, y in points]
    commands = [PathCommand(MOVE, (points[0],))]
    if len(points) == 2:
        commands.append(PathCommand(LINE, (points[1],)))
        return CurvePath(tuple(commands))

    previous = points[0]
    for index, current in enumerate(points[1:], start=1):
        if index == 1:
            control = ((previous[0] + current[0]) / 2, (previous[1] + current[1]) / 2)
            commands.append(PathCommand(QUADRATIC, (control, current)))
        else:
            commands.append(PathCommand(SMOOTH_QUADRATIC, (current,)))
        previous = current
    return CurvePath(tuple(commands))


class PlacementEngine:
    """Compute event placements for a window of days and a coordinate sample.

    Results are memoised against the previous ``(events, days, sample)``
    inputs, with events matched by identity, and connector paths are cached
    until the sample changes.
    """

    def __init__(
        self,
        curve: CurveConfig,
        *,
        threshold_minutes: float = DURATION_THRESHOLD_MINUTES,
        connector_cache_size: int = DEFAULT_CONNECTOR_CACHE_SIZE,
        logger: logging.Logger | None = None,
    ) -> None:
        self._curve = curve
        self.threshold_minutes = threshold_minutes
        self.connector_cache_size = connector_cache_size
        self.logger = logger or LOGGER

        self._memo_key: tuple | None = None
        self._memo_value: tuple[EventPlacement, ...] = ()
        self._connectors: OrderedDict[tuple[str, float, float], CurvePath] = OrderedDict()
        self._connector_sample: CoordinateSample | None = None

    @property
    def curve(self) -> CurveConfig:
        return self._curve

    @curve.setter
    def curve(self, value: CurveConfig) -> None:
        if value != self._curve:
            self._curve = value
            self._reset()

    def place(
        self,
        events: Sequence[TimelineEvent],
        days: Sequence[Day],
        sample: CoordinateSample,
    ) -> tuple[EventPlacement, ...]:
        events = tuple(events)
        # Event equality ignores payload, so the memo also pins object identity.
        key = (events, tuple(id(event) for event in events), tuple(days), sample)
        if self._memo_key is not None and self._memo_key == key:
            return self._memo_value

        if self._connector_sample is not sample:
            self._connectors.clear()
            self._connector_sample = sample

        days_by_date: Mapping[date, Day] = {day.date: day for day in days}
        placements: list[EventPlacement] = []
        if days:
            for event in events:
                placement = self.place_event(event, days_by_date, sample)
                if placement is not None:
                    placements.append(placement)

        self._memo_key = key
        self._memo_value = tuple(placements)
        return self._memo_value

    def place_event(
        self,
        event: TimelineEvent,
        days_by_date: Mapping[date, Day],
        sample: CoordinateSample,
    ) -> EventPlacement | None:
        event_date = parse_event_date(event.date)
        if event_date is None:
            self.logger.warning("Skipping event %s with unparseable date %r", event.id, event.date)
            return None
        moment = parse_clock(event.time)
        if moment is None:
            self.logger.warning("Skipping event %s with unparseable time %r", event.id, event.time)
            return None
        for label, value in (("start", event.start_time), ("end", event.end_time)):
            if value is not None and parse_clock(value) is None:
                self.logger.warning("Skipping event %s with unparseable %s time %r", event.id, label, value)
                return None

        day = days_by_date.get(event_date)
        if day is None:
            self.logger.debug("Event %s on %s is outside the loaded window", event.id, event_date)
            return None

        hour_height = self._curve.hour_height
        duration = effective_duration(event)

        if duration <= self.threshold_minutes:
            y = compute_y(day.start_offset, moment, hour_height)
            return EventPlacement(
                event_id=event.id,
                kind=PlacementKind.POINT,
                x=self._x_at(sample, y),
                y=y,
                duration_minutes=duration,
                event=event,
            )

        start = parse_clock(event.start_time) or moment
        start_y = compute_y(day.start_offset, start, hour_height)
        end_moment = add_minutes(event_date, start, duration)
        days_ahead = (end_moment.date() - event_date).days
        end_y = compute_y(
            day.start_offset + days_ahead * self._curve.day_stride,
            end_moment.time(),
            hour_height,
        )
        start_x = self._x_at(sample, start_y)
        end_x = self._x_at(sample, end_y)

        return EventPlacement(
            event_id=event.id,
            kind=PlacementKind.DURATION,
            x=start_x,
            y=start_y,
            end_x=end_x,
            end_y=end_y,
            connector_path=self._connector(event.id, (start_x, start_y), (end_x, end_y), sample),
            duration_minutes=duration,
            event=event,
        )

    def dispose(self) -> None:
        self._reset()

    # ------------------------------------------------------------------
    def _x_at(self, sample: CoordinateSample, y: float) -> float:
        if not sample:
            return approximate_x(self._curve, y)
        return lookup(sample, y, self._curve.center_x)

    def _connector(self, event_id: str, start: Point, end: Point, sample: CoordinateSample) -> CurvePath:
        key = (event_id, start[1], end[1])
        cached = self._connectors.get(key)
        if cached is not None:
            return cached
        path = build_connector_path(start, end, lambda y: self._x_at(sample, y))
        self._connectors[key] = path
        while len(self._connectors) > self.connector_cache_size:
            self._connectors.popitem(last=False)
        return path

    def _reset(self) -> None:
        self._memo_key = None
        self._memo_value = ()
        self._connectors.clear()
        self._connector_sample = None


__all__ = [
    "DURATION_THRESHOLD_MINUTES",
    "EventPlacement",
    "PlacementEngine",
    "PlacementKind",
    "build_connector_path",
    "compute_y",
    "connector_step",
]
