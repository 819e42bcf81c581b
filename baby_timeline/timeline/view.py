"""Stateful timeline view tying the window, curve, samples and placements together."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Iterable, Optional

from ..scheduler import FrameScheduler
from .events import TimelineEvent
from .geometry import RenderedPath
from .labels import DayLabel, HourMarker, HourMarkerBuilder, day_labels
from .layout import DEFAULT_LAYOUT, CurveConfig, TimelineLayout
from .path import CurvePath, build_curve_path
from .placement import EventPlacement, PlacementEngine
from .sampling import CoordinateInverter
from .window import Day, DayWindow, Direction

LOGGER = logging.getLogger(__name__)

HOVER_RADIUS_BONUS = 4


@dataclass(frozen=True)
class TimelineFrame:
    """Everything a presentation layer needs to draw one frame."""

    layout: TimelineLayout
    curve: CurveConfig
    days: tuple[Day, ...]
    path: CurvePath
    rendered_path: RenderedPath
    day_labels: tuple[DayLabel, ...]
    hour_markers: tuple[HourMarker, ...]
    placements: tuple[EventPlacement, ...]
    hovered_event_id: Optional[str] = None

    @property
    def width(self) -> float:
        return self.curve.width

    @property
    def height(self) -> int:
        return self.layout.canvas_height(len(self.days))


class TimelineView:
    """Owns the derived state of one timeline and answers pointer interaction.

    The path and its tessellation are rebuilt whenever the window or the curve
    parameters change; samples and hour markers follow asynchronously through
    the scheduler, and placements are recomputed on demand from the latest
    inputs.
    """

    def __init__(
        self,
        layout: TimelineLayout = DEFAULT_LAYOUT,
        *,
        viewport_width: float | None = None,
        small_screen: bool | None = None,
        scheduler: FrameScheduler | None = None,
        on_event_hover: Callable[[Optional[str]], None] | None = None,
        on_event_click: Callable[[TimelineEvent], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.layout = layout
        self.scheduler = scheduler or FrameScheduler()
        self.logger = logger or LOGGER
        self.on_event_hover = on_event_hover
        self.on_event_click = on_event_click

        self.curve = layout.curve_config(viewport_width, small_screen=small_screen)
        self.window = DayWindow(layout, time_provider=self.scheduler.time_provider, logger=self.logger)
        self.inverter = CoordinateInverter(self.scheduler, fallback_x=self.curve.center_x, logger=self.logger)
        self.markers = HourMarkerBuilder(self.scheduler, self.inverter, self.curve, logger=self.logger)
        self.engine = PlacementEngine(
            self.curve,
            threshold_minutes=layout.duration_threshold_minutes,
            logger=self.logger,
        )

        self._events: tuple[TimelineEvent, ...] = ()
        self._today: date | None = None
        self._path = CurvePath()
        self._rendered = RenderedPath()
        self._hovered: Optional[str] = None

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------
    def initialize(self, today: date) -> tuple[Day, ...]:
        self._today = today
        days = self.window.initialize(today)
        self._regenerate()
        return days

    def set_events(self, events: Iterable[TimelineEvent]) -> None:
        self._events = tuple(events)

    def extend(self, direction: Direction | str) -> tuple[Day, ...]:
        before = self.window.days
        days = self.window.extend(direction)
        if days is not before:
            self._regenerate()
        return days

    def scroll(self, scroll_top: float, viewport_height: float) -> Direction | None:
        """Feed a scroll position from the hosting viewport."""

        direction = self.window.handle_scroll(
            scroll_top,
            self.layout.canvas_height(len(self.window)),
            viewport_height,
        )
        if direction is not None:
            self._regenerate()
        return direction

    def resize(self, viewport_width: float | None, *, small_screen: bool | None = None) -> None:
        curve = self.layout.curve_config(viewport_width, small_screen=small_screen)
        if curve == self.curve:
            return
        self.logger.debug("Curve parameters changed to %s", curve)
        self.curve = curve
        self.inverter.fallback_x = curve.center_x
        self.markers.curve = curve
        self.engine.curve = curve
        self._regenerate()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------
    @property
    def days(self) -> tuple[Day, ...]:
        return self.window.days

    @property
    def events(self) -> tuple[TimelineEvent, ...]:
        return self._events

    @property
    def path(self) -> CurvePath:
        return self._path

    @property
    def rendered_path(self) -> RenderedPath:
        return self._rendered

    @property
    def hovered_event_id(self) -> Optional[str]:
        return self._hovered

    @property
    def placements(self) -> tuple[EventPlacement, ...]:
        return self.engine.place(self._events, self.window.days, self.inverter.sample)

    def scroll_to_now(self, now: datetime, viewport_height: float) -> float | None:
        return self.window.scroll_target(now, viewport_height)

    def snapshot(self) -> TimelineFrame:
        return TimelineFrame(
            layout=self.layout,
            curve=self.curve,
            days=self.window.days,
            path=self._path,
            rendered_path=self._rendered,
            day_labels=day_labels(self.window.days, self._today),
            hour_markers=self.markers.markers,
            placements=self.placements,
            hovered_event_id=self._hovered,
        )

    def flush(self) -> None:
        """Bring samples and markers up to date synchronously."""

        self.inverter.flush()
        self.markers.flush()

    def settle(self) -> None:
        """Let pending debounced and per-frame work run to completion."""

        self.scheduler.run_until_idle()

    # ------------------------------------------------------------------
    # Pointer interaction
    # ------------------------------------------------------------------
    def hit_test(self, x: float, y: float) -> EventPlacement | None:
        best: EventPlacement | None = None
        best_distance = math.inf
        for placement in self.placements:
            radius = self.layout.event_radius
            if placement.event_id == self._hovered:
                radius += HOVER_RADIUS_BONUS
            targets = [(placement.x, placement.y)]
            if placement.end_x is not None and placement.end_y is not None:
                targets.append((placement.end_x, placement.end_y))
            for target in targets:
                distance = math.dist((x, y), target)
                if distance <= radius and distance < best_distance:
                    best, best_distance = placement, distance
        return best

    def pointer_move(self, x: float, y: float) -> Optional[str]:
        placement = self.hit_test(x, y)
        self._set_hovered(placement.event_id if placement is not None else None)
        return self._hovered

    def pointer_leave(self) -> None:
        self._set_hovered(None)

    def pointer_click(self, x: float, y: float) -> EventPlacement | None:
        placement = self.hit_test(x, y)
        if placement is not None and placement.event is not None and self.on_event_click is not None:
            self.on_event_click(placement.event)
        return placement

    def dispose(self) -> None:
        self.markers.dispose()
        self.inverter.dispose()
        self.engine.dispose()
        self._events = ()
        self._hovered = None

    # ------------------------------------------------------------------
    def _set_hovered(self, event_id: Optional[str]) -> None:
        if event_id == self._hovered:
            return
        self._hovered = event_id
        if self.on_event_hover is not None:
            self.on_event_hover(event_id)

    def _regenerate(self) -> None:
        self._path = build_curve_path(self.window.days, self.curve)
        self._rendered = RenderedPath.from_curve(self._path)
        self.inverter.update_path(self._rendered)
        self.markers.update(self.window.days)


__all__ = ["TimelineFrame", "TimelineView"]
