"""Day labels, hour markers and hover text for the timeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterator, Optional, Sequence

from ..scheduler import FrameScheduler, TimerHandle
from .events import EventType, TimelineEvent
from .layout import HOURS_PER_DAY, CurveConfig
from .sampling import CoordinateInverter, CoordinateSample
from .window import Day

LOGGER = logging.getLogger(__name__)

MAJOR_HOURS = frozenset({0, 6, 12, 18})
DEFAULT_MARKER_DEBOUNCE = 0.1
DEFAULT_MARKER_BATCH_SIZE = 50
LABEL_GAP = 8

_EVENT_TITLES = {
    EventType.FEEDING: "Feeding",
    EventType.DIAPER: "Diaper change",
    EventType.SLEEP: "Sleep",
}


@dataclass(frozen=True)
class HourMarker:
    day_index: int
    hour: int
    x: float
    y: float

    @property
    def is_major(self) -> bool:
        return self.hour in MAJOR_HOURS

    @property
    def key(self) -> str:
        return f"{self.day_index}-{self.hour}"


@dataclass(frozen=True)
class DayLabel:
    date: date
    day_index: int
    start_offset: float
    is_today: bool
    text: str


def format_hour(hour: int) -> str:
    if hour == 0:
        return "12 AM"
    if hour < 12:
        return f"{hour} AM"
    if hour == 12:
        return "12 PM"
    return f"{hour - 12} PM"


def format_duration(minutes: float) -> str:
    minutes = int(round(minutes))
    hours, remainder = divmod(minutes, 60)
    if not hours:
        return f"{remainder}m"
    if not remainder:
        return f"{hours}h"
    return f"{hours}h {remainder}m"


def event_title(event: TimelineEvent) -> str:
    event_type = event.event_type
    if event_type is EventType.OTHER or event_type is None:
        label = str(event.payload.get("eventType") or event.type or "other")
        return label.replace("_", " ").capitalize()
    return _EVENT_TITLES[event_type]


def day_labels(days: Sequence[Day], today: date | None = None) -> tuple[DayLabel, ...]:
    labels = []
    for day in days:
        is_today = today is not None and day.date == today
        text = f"{day.date:%b} {day.date.day}"
        if is_today:
            text = f"{text} (Today)"
        labels.append(
            DayLabel(
                date=day.date,
                day_index=day.window_index,
                start_offset=day.start_offset,
                is_today=is_today,
                text=text,
            )
        )
    return tuple(labels)


def label_anchor(x: float, width: float, gap: float = LABEL_GAP) -> tuple[float, str]:
    """Place a label on whichever side of ``x`` has more room."""

    if x > width - x:
        return x - gap, "end"
    return x + gap, "start"


def iter_hour_positions(days: Sequence[Day], hour_height: float) -> Iterator[tuple[int, int, float]]:
    for day in days:
        for hour in range(HOURS_PER_DAY):
            yield day.window_index, hour, day.start_offset + hour * hour_height


class HourMarkerBuilder:
    """Resolve hour markers against the sampled curve without blocking a frame.

    Marker generation is debounced and then processed in fixed-size batches,
    one batch per animation frame. A batch run that no longer matches the
    current days or sample is dropped.
    """

    def __init__(
        self,
        scheduler: FrameScheduler,
        inverter: CoordinateInverter,
        curve: CurveConfig,
        *,
        debounce: float = DEFAULT_MARKER_DEBOUNCE,
        batch_size: int = DEFAULT_MARKER_BATCH_SIZE,
        logger: logging.Logger | None = None,
    ) -> None:
        self.scheduler = scheduler
        self.inverter = inverter
        self.curve = curve
        self.debounce = debounce
        self.batch_size = batch_size
        self.logger = logger or LOGGER

        self._days: tuple[Day, ...] = ()
        self._markers: tuple[HourMarker, ...] = ()
        self._generation = 0
        self._timer: TimerHandle | None = None
        self._frame: TimerHandle | None = None
        self._listeners: list[Callable[[tuple[HourMarker, ...]], None]] = []
        self._unsubscribe: Optional[Callable[[], None]] = inverter.subscribe(self._on_sample)

    @property
    def markers(self) -> tuple[HourMarker, ...]:
        return self._markers

    def subscribe(self, callback: Callable[[tuple[HourMarker, ...]], None]) -> None:
        self._listeners.append(callback)

    def update(self, days: Sequence[Day]) -> None:
        self._days = tuple(days)
        self._schedule()

    def flush(self) -> tuple[HourMarker, ...]:
        self._cancel()
        self._generation += 1
        positions = list(iter_hour_positions(self._days, self.curve.hour_height))
        self._publish(tuple(HourMarker(index, hour, self.inverter.lookup(y), y) for index, hour, y in positions))
        return self._markers

    def dispose(self) -> None:
        self._cancel()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._listeners.clear()
        self._markers = ()

    # ------------------------------------------------------------------
    def _on_sample(self, sample: CoordinateSample) -> None:
        if self._days:
            self._schedule()

    def _schedule(self) -> None:
        self._cancel()
        self._generation += 1
        if not self._days:
            self._publish(())
            return
        generation = self._generation
        self._timer = self.scheduler.call_later(self.debounce, lambda: self._start(generation))

    def _start(self, generation: int) -> None:
        self._timer = None
        positions = list(iter_hour_positions(self._days, self.curve.hour_height))
        self._run_batch(generation, positions, 0, [])

    def _run_batch(
        self,
        generation: int,
        positions: list[tuple[int, int, float]],
        start: int,
        markers: list[HourMarker],
    ) -> None:
        self._frame = None
        if generation != self._generation:
            self.logger.debug("Dropping stale hour marker batch")
            return
        end = min(start + self.batch_size, len(positions))
        for index, hour, y in positions[start:end]:
            markers.append(HourMarker(index, hour, self.inverter.lookup(y), y))
        if end < len(positions):
            self._frame = self.scheduler.request_frame(
                lambda: self._run_batch(generation, positions, end, markers)
            )
            return
        self._publish(tuple(markers))

    def _publish(self, markers: tuple[HourMarker, ...]) -> None:
        self._markers = markers
        for listener in list(self._listeners):
            listener(markers)

    def _cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._frame is not None:
            self._frame.cancel()
            self._frame = None


__all__ = [
    "DayLabel",
    "HourMarker",
    "HourMarkerBuilder",
    "MAJOR_HOURS",
    "day_labels",
    "event_title",
    "format_duration",
    "format_hour",
    "iter_hour_positions",
    "label_anchor",
]
