"""Sliding window of materialized days for the scrolling timeline."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence

from .layout import DEFAULT_LAYOUT, HOURS_PER_DAY, TimelineLayout

LOGGER = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 3


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


class WindowState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"


@dataclass(frozen=True)
class Day:
    """A calendar date placed at a position inside the loaded window."""

    date: date
    window_index: int
    start_offset: float


def build_days(dates: Iterable[date], day_stride: float) -> tuple[Day, ...]:
    """Assign positional indices and vertical offsets to ``dates``."""

    return tuple(
        Day(date=value, window_index=index, start_offset=index * day_stride)
        for index, value in enumerate(dates)
    )


class DayWindow:
    """Bounded, lazily extended list of days around a reference date.

    The window starts empty, is seeded by :meth:`initialize` and grows in
    batches when the viewport approaches either edge. Once it holds more than
    ``max_days`` entries the end opposite to the growth direction is dropped.
    Every public accessor hands out immutable tuples.
    """

    def __init__(
        self,
        layout: TimelineLayout = DEFAULT_LAYOUT,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        time_provider: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        if layout.max_days_in_memory < 1:
            raise ValueError("max_days_in_memory must be positive")
        self.layout = layout
        self.batch_size = batch_size
        self.time_provider = time_provider
        self.logger = logger or LOGGER

        self._days: tuple[Day, ...] = ()
        self._by_date: dict[date, Day] = {}
        self._state = WindowState.IDLE
        self._loading_direction: Direction | None = None
        self._last_extended_at: float | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def days(self) -> tuple[Day, ...]:
        return self._days

    @property
    def state(self) -> WindowState:
        return self._state

    @property
    def loading_direction(self) -> Direction | None:
        return self._loading_direction

    @property
    def is_cooling_down(self) -> bool:
        """True while a new extension would be ignored by the anti-thrash guard."""

        if self._last_extended_at is None:
            return False
        elapsed = self.time_provider() - self._last_extended_at
        return elapsed < self.layout.loading_delay

    def __len__(self) -> int:
        return len(self._days)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def initialize(self, today: date) -> tuple[Day, ...]:
        """Seed the window with ``day_buffer_size`` days either side of ``today``."""

        buffer = self.layout.day_buffer_size
        dates = [today + timedelta(days=offset) for offset in range(-buffer, buffer + 1)]
        if len(dates) > self.layout.max_days_in_memory:
            excess = len(dates) - self.layout.max_days_in_memory
            dates = dates[excess // 2 : len(dates) - (excess - excess // 2)]
        self._replace(dates)
        self._state = WindowState.IDLE
        self._loading_direction = None
        self._last_extended_at = None
        self.logger.debug("Initialized day window with %d days around %s", len(dates), today)
        return self._days

    def extend(self, direction: Direction | str) -> tuple[Day, ...]:
        """Add a batch of days in ``direction`` and return the new window.

        Calls arriving while an extension is running, or sooner than the
        configured loading delay after the previous one, leave the window
        untouched.
        """

        if not self._days:
            raise RuntimeError("Day window has not been initialized. Call initialize() first.")

        direction = Direction(direction)
        if self._state is WindowState.LOADING:
            self.logger.debug("Ignoring %s extension while loading %s", direction.value, self._loading_direction)
            return self._days
        if self.is_cooling_down:
            self.logger.debug("Ignoring %s extension during loading delay", direction.value)
            return self._days

        self._state = WindowState.LOADING
        self._loading_direction = direction
        try:
            dates = [day.date for day in self._days]
            if direction is Direction.UP:
                first = dates[0]
                added = [first - timedelta(days=offset) for offset in range(self.batch_size, 0, -1)]
                dates = added + dates
            else:
                last = dates[-1]
                dates.extend(last + timedelta(days=offset) for offset in range(1, self.batch_size + 1))

            limit = self.layout.max_days_in_memory
            if len(dates) > limit:
                dates = dates[:limit] if direction is Direction.UP else dates[-limit:]

            self._replace(dates)
            self._last_extended_at = self.time_provider()
            self.logger.debug(
                "Extended day window %s: %s..%s (%d days)",
                direction.value,
                dates[0],
                dates[-1],
                len(dates),
            )
        finally:
            self._state = WindowState.IDLE
            self._loading_direction = None
        return self._days

    def handle_scroll(
        self,
        scroll_top: float,
        scroll_height: float,
        client_height: float,
    ) -> Optional[Direction]:
        """Extend the window when the viewport nears an edge.

        Returns the direction that was extended, or ``None`` when nothing
        changed.
        """

        if not self._days:
            return None

        threshold = self.layout.scroll_threshold_px
        if scroll_top < threshold:
            direction = Direction.UP
        elif scroll_height - scroll_top - client_height < threshold:
            direction = Direction.DOWN
        else:
            return None

        before = self._days
        after = self.extend(direction)
        return direction if after is not before else None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def find_day(self, value: date) -> Day | None:
        return self._by_date.get(value)

    def today_index(self, today: date) -> int | None:
        day = self._by_date.get(today)
        return day.window_index if day is not None else None

    def scroll_offset(self, day_offset: int, hour: float, today: date) -> float | None:
        """Return the scroll position of ``hour`` on the day ``day_offset`` from today."""

        index = self.today_index(today)
        if index is None:
            return None
        target = index + day_offset
        if not 0 <= target < len(self._days):
            return None
        return self._days[target].start_offset + hour * self.layout.hour_height

    def scroll_target(self, moment: datetime, viewport_height: float) -> float | None:
        """Return the scroll position that centres ``moment`` in the viewport."""

        day = self._by_date.get(moment.date())
        if day is None:
            return None
        progress = moment.hour + moment.minute / 60
        progress = min(progress, HOURS_PER_DAY)
        target_y = day.start_offset + progress * self.layout.hour_height
        return max(0.0, target_y - viewport_height / 2)

    # ------------------------------------------------------------------
    def _replace(self, dates: Sequence[date]) -> None:
        days = build_days(dates, self.layout.day_stride)
        self._days = days
        self._by_date = {day.date: day for day in days}


__all__ = ["Day", "DayWindow", "Direction", "WindowState", "build_days"]
