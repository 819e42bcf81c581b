"""Cooperative timer and animation-frame queue for single-threaded rendering."""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_FRAME_INTERVAL = 1 / 60


@dataclass
class TimerHandle:
    """Handle returned for scheduled callbacks; cancelling is idempotent."""

    due: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class FrameScheduler:
    """Run debounced timers and per-frame callbacks on the calling thread.

    Timers fire once their delay has elapsed. Frame callbacks run on the next
    call to :meth:`run_pending`; callbacks requested while a frame is running
    are deferred to the following frame, which is what lets long jobs be
    sliced across frames.
    """

    time_provider: Callable[[], float] = time.monotonic
    sleep_func: Callable[[float], None] = time.sleep
    frame_interval: float = DEFAULT_FRAME_INTERVAL
    _timers: list[tuple[float, int, TimerHandle]] = field(default_factory=list, init=False, repr=False)
    _frames: list[TimerHandle] = field(default_factory=list, init=False, repr=False)
    _sequence: itertools.count = field(default_factory=itertools.count, init=False, repr=False)

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Schedule ``callback`` to run ``delay`` seconds from now."""

        handle = TimerHandle(due=self.time_provider() + max(0.0, delay), callback=callback)
        heapq.heappush(self._timers, (handle.due, next(self._sequence), handle))
        return handle

    def request_frame(self, callback: Callable[[], None]) -> TimerHandle:
        """Schedule ``callback`` for the next animation frame."""

        handle = TimerHandle(due=self.time_provider(), callback=callback)
        self._frames.append(handle)
        return handle

    @property
    def has_pending(self) -> bool:
        self._discard_cancelled()
        return bool(self._timers or self._frames)

    def run_pending(self) -> int:
        """Fire every due timer, then one frame worth of frame callbacks.

        Returns the number of callbacks that were executed.
        """

        executed = 0
        now = self.time_provider()
        while self._timers and self._timers[0][0] <= now:
            _, _, handle = heapq.heappop(self._timers)
            if handle.cancelled:
                continue
            handle.callback()
            executed += 1

        frame, self._frames = self._frames, []
        for handle in frame:
            if handle.cancelled:
                continue
            handle.callback()
            executed += 1
        return executed

    def run_until_idle(self, *, max_iterations: Optional[int] = None) -> None:
        """Drive the queue until no timers or frames remain.

        Args:
            max_iterations: Optional cap on loop passes. ``None`` runs until the
                queue drains.
        """

        remaining = max_iterations
        while remaining is None or remaining > 0:
            self.run_pending()
            if remaining is not None:
                remaining -= 1

            self._discard_cancelled()
            if self._frames:
                self.sleep_func(self.frame_interval)
                continue
            if not self._timers:
                return

            wait = self._timers[0][0] - self.time_provider()
            if wait > 0:
                LOGGER.debug("Sleeping %.3f seconds until next timer", wait)
                self.sleep_func(wait)

    def _discard_cancelled(self) -> None:
        while self._timers and self._timers[0][2].cancelled:
            heapq.heappop(self._timers)
        self._frames = [handle for handle in self._frames if not handle.cancelled]
