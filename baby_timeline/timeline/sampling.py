"""Inverse lookup from vertical position to the x actually drawn on screen."""

from __future__ import annotations

import logging
import math
from bisect import bisect_left
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional

from ..scheduler import FrameScheduler, TimerHandle
from .geometry import RenderedPath
from .path import Point

LOGGER = logging.getLogger(__name__)

MIN_SAMPLES = 100
MAX_SAMPLES = 500
SAMPLE_SPACING_PX = 5
DEFAULT_DEBOUNCE = 0.05
DEFAULT_CHUNK_SIZE = 100
DEFAULT_CACHE_SIZE = 5


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class CoordinateSample:
    """Immutable ``round(y) -> x`` table with strictly increasing keys."""

    keys: tuple[int, ...] = ()
    xs: tuple[float, ...] = ()
    path_length: float = 0.0

    @classmethod
    def from_points(cls, points: Iterable[Point], path_length: float = 0.0) -> "CoordinateSample":
        table: dict[int, float] = {}
        for x, y in points:
            table[round_half_up(y)] = x
        keys = tuple(sorted(table))
        return cls(keys, tuple(table[key] for key in keys), path_length)

    def __len__(self) -> int:
        return len(self.keys)

    def __contains__(self, y: object) -> bool:
        if not isinstance(y, (int, float)):
            return False
        index = bisect_left(self.keys, y)
        return index < len(self.keys) and self.keys[index] == y

    def get(self, y: int, default: float | None = None) -> float | None:
        index = bisect_left(self.keys, y)
        if index < len(self.keys) and self.keys[index] == y:
            return self.xs[index]
        return default

    def as_dict(self) -> dict[int, float]:
        return dict(zip(self.keys, self.xs))


EMPTY_SAMPLE = CoordinateSample()


def sample_count_for(path_length: float) -> int:
    """Roughly one sample every few pixels, bounded for very short or long paths."""

    return int(min(MAX_SAMPLES, max(MIN_SAMPLES, path_length / SAMPLE_SPACING_PX)))


def iter_sample_points(path: RenderedPath, sample_count: int) -> Iterator[Point]:
    length = path.total_length
    for index in range(sample_count + 1):
        yield path.point_at_length(index / sample_count * length)


def build_sample_map(path: RenderedPath, sample_count: int | None = None) -> CoordinateSample:
    """Sample ``path`` at evenly spaced arc lengths."""

    if path.is_empty:
        return EMPTY_SAMPLE
    count = sample_count if sample_count is not None else sample_count_for(path.total_length)
    return CoordinateSample.from_points(iter_sample_points(path, count), path.total_length)


def path_signature(path: RenderedPath) -> tuple[Point, ...]:
    """First, middle and last vertices; tells apart equal-length paths drawn at different x."""

    vertices = path.vertices
    if not vertices:
        return ()
    picks = (vertices[0], vertices[len(vertices) // 2], vertices[-1])
    return tuple((round(x, 3), round(y, 3)) for x, y in picks)


def lookup(sample: CoordinateSample, y: float, default: float = 0.0) -> float:
    """Return the sampled x for ``y``.

    Exact keys win; otherwise the neighbouring keys are interpolated linearly.
    Positions beyond either end saturate to the nearest sample and an empty
    sample yields ``default``.
    """

    keys = sample.keys
    if not keys:
        return default

    rounded = round_half_up(y)
    index = bisect_left(keys, rounded)
    if index < len(keys) and keys[index] == rounded:
        return sample.xs[index]

    lower = index - 1
    if lower >= 0 and index < len(keys):
        lower_y, upper_y = keys[lower], keys[index]
        lower_x, upper_x = sample.xs[lower], sample.xs[index]
        t = (rounded - lower_y) / (upper_y - lower_y)
        return lower_x + (upper_x - lower_x) * t
    if lower >= 0:
        return sample.xs[lower]
    return sample.xs[index]


class SampleCache:
    """Bounded cache of samples keyed by path length, sample count and path signature."""

    def __init__(self, max_entries: int = DEFAULT_CACHE_SIZE) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._entries: OrderedDict[tuple, CoordinateSample] = OrderedDict()

    @staticmethod
    def key(path_length: float, sample_count: int, signature: tuple[Point, ...] = ()) -> tuple:
        return (round(path_length, 3), sample_count, signature)

    def get(
        self, path_length: float, sample_count: int, signature: tuple[Point, ...] = ()
    ) -> CoordinateSample | None:
        return self._entries.get(self.key(path_length, sample_count, signature))

    def put(
        self,
        path_length: float,
        sample_count: int,
        sample: CoordinateSample,
        signature: tuple[Point, ...] = (),
    ) -> None:
        self._entries[self.key(path_length, sample_count, signature)] = sample
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            LOGGER.debug("Evicted coordinate sample %s from cache", evicted)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class _ChunkedBuild:
    def __init__(self, path: RenderedPath, sample_count: int, chunk_size: int) -> None:
        self.path = path
        self.sample_count = sample_count
        self.chunk_size = chunk_size
        self._points: Iterator[Point] = iter_sample_points(path, sample_count)
        self._collected: List[Point] = []
        self.done = False

    def advance(self) -> bool:
        for _ in range(self.chunk_size):
            point = next(self._points, None)
            if point is None:
                self.done = True
                break
            self._collected.append(point)
        else:
            if len(self._collected) > self.sample_count:
                self.done = True
        return self.done

    def result(self) -> CoordinateSample:
        return CoordinateSample.from_points(self._collected, self.path.total_length)


class CoordinateInverter:
    """Keep a coordinate sample in step with the most recently rendered path.

    Path updates are debounced so a burst of changes triggers a single
    rebuild. Rebuilds are sliced into chunks processed one per animation
    frame, and a finished rebuild is only published if its path is still the
    current one.
    """

    def __init__(
        self,
        scheduler: FrameScheduler,
        *,
        debounce: float = DEFAULT_DEBOUNCE,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        cache_size: int = DEFAULT_CACHE_SIZE,
        fallback_x: float = 0.0,
        logger: logging.Logger | None = None,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self.scheduler = scheduler
        self.debounce = debounce
        self.chunk_size = chunk_size
        self.fallback_x = fallback_x
        self.logger = logger or LOGGER
        self.cache = SampleCache(cache_size)

        self._path: RenderedPath | None = None
        self._sample: CoordinateSample = EMPTY_SAMPLE
        self._timer: TimerHandle | None = None
        self._frame: TimerHandle | None = None
        self._listeners: list[Callable[[CoordinateSample], None]] = []
        self._disposed = False

    @property
    def sample(self) -> CoordinateSample:
        return self._sample

    @property
    def current_path(self) -> RenderedPath | None:
        return self._path

    @property
    def is_pending(self) -> bool:
        return self._timer is not None or self._frame is not None

    def subscribe(self, callback: Callable[[CoordinateSample], None]) -> Callable[[], None]:
        """Register ``callback`` for newly published samples; returns an unsubscribe function."""

        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def update_path(self, path: Optional[RenderedPath]) -> None:
        """Make ``path`` current and schedule a debounced rebuild against it."""

        self._require_alive()
        self._cancel_pending()
        self._path = path
        if path is None or path.is_empty:
            self._publish(EMPTY_SAMPLE)
            return
        self._timer = self.scheduler.call_later(self.debounce, lambda: self._start_rebuild(path))

    def flush(self) -> CoordinateSample:
        """Rebuild synchronously against the current path, skipping the debounce."""

        self._require_alive()
        self._cancel_pending()
        path = self._path
        if path is None or path.is_empty:
            self._publish(EMPTY_SAMPLE)
            return self._sample
        count = sample_count_for(path.total_length)
        signature = path_signature(path)
        sample = self.cache.get(path.total_length, count, signature)
        if sample is None:
            sample = build_sample_map(path, count)
            self.cache.put(path.total_length, count, sample, signature)
        self._publish(sample)
        return sample

    def lookup(self, y: float, default: float | None = None) -> float:
        return lookup(self._sample, y, self.fallback_x if default is None else default)

    def dispose(self) -> None:
        self._cancel_pending()
        self.cache.clear()
        self._listeners.clear()
        self._path = None
        self._sample = EMPTY_SAMPLE
        self._disposed = True

    # ------------------------------------------------------------------
    def _start_rebuild(self, path: RenderedPath) -> None:
        self._timer = None
        if path is not self._path:
            self.logger.debug("Skipping rebuild for a superseded path")
            return

        count = sample_count_for(path.total_length)
        cached = self.cache.get(path.total_length, count, path_signature(path))
        if cached is not None:
            self.logger.debug("Coordinate sample cache hit (length=%.2f, count=%d)", path.total_length, count)
            self._publish(cached)
            return

        build = _ChunkedBuild(path, count, self.chunk_size)
        self._frame = self.scheduler.request_frame(lambda: self._step(build))

    def _step(self, build: _ChunkedBuild) -> None:
        self._frame = None
        if build.path is not self._path:
            self.logger.debug("Discarding in-flight rebuild for a superseded path")
            return
        if not build.advance():
            self._frame = self.scheduler.request_frame(lambda: self._step(build))
            return

        sample = build.result()
        self.cache.put(build.path.total_length, build.sample_count, sample, path_signature(build.path))
        self.logger.debug("Built coordinate sample with %d keys", len(sample))
        self._publish(sample)

    def _publish(self, sample: CoordinateSample) -> None:
        self._sample = sample
        for listener in list(self._listeners):
            listener(sample)

    def _cancel_pending(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._frame is not None:
            self._frame.cancel()
            self._frame = None

    def _require_alive(self) -> None:
        if self._disposed:
            raise RuntimeError("Coordinate inverter has been disposed")


__all__ = [
    "CoordinateInverter",
    "CoordinateSample",
    "EMPTY_SAMPLE",
    "SampleCache",
    "build_sample_map",
    "lookup",
    "path_signature",
    "round_half_up",
    "sample_count_for",
]
