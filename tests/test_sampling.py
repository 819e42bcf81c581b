from __future__ import annotations

from datetime import date, timedelta

import pytest

from baby_timeline.scheduler import FrameScheduler
from baby_timeline.timeline.geometry import RenderedPath
from baby_timeline.timeline.layout import CurveConfig
from baby_timeline.timeline.path import CurvePath, PathCommand, build_curve_path, templates
from baby_timeline.timeline.sampling import (
    EMPTY_SAMPLE,
    CoordinateInverter,
    CoordinateSample,
    SampleCache,
    build_sample_map,
    iter_sample_points,
    lookup,
    path_signature,
    round_half_up,
    sample_count_for,
)
from baby_timeline.timeline.window import build_days


def diagonal(dx: float = 100, dy: float = 1000) -> RenderedPath:
    return RenderedPath.from_curve(
        CurvePath((PathCommand("M", ((0, 0),)), PathCommand("L", ((dx, dy),))))
    )


@pytest.mark.parametrize(
    "value, expected",
    [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (-0.5, 0), (-0.51, -1)],
)
def test_round_half_up(value: float, expected: int) -> None:
    assert round_half_up(value) == expected


@pytest.mark.parametrize("length, expected", [(0, 100), (300, 100), (1000, 200), (10_000, 500)])
def test_sample_count_is_bounded(length: float, expected: int) -> None:
    assert sample_count_for(length) == expected


def test_sample_keys_are_strictly_increasing() -> None:
    sample = build_sample_map(diagonal())

    assert len(sample) == 201
    assert sample.keys[0] == 0
    assert sample.keys[-1] == 1000
    assert all(b > a for a, b in zip(sample.keys, sample.keys[1:]))
    assert sample.path_length == pytest.approx(diagonal().total_length)


def test_later_points_win_for_duplicate_keys() -> None:
    sample = CoordinateSample.from_points([(1.0, 10.2), (2.0, 9.8), (3.0, 20.0)])

    assert sample.as_dict() == {10: 2.0, 20: 3.0}
    assert 10 in sample
    assert 11 not in sample
    assert sample.get(11) is None


@pytest.mark.parametrize(
    "y, expected",
    [
        (500, 50),  # exact key
        (502, 50.2),  # between keys
        (502.4, 50.2),  # rounded before lookup
        (-40, 0),  # saturates at the top
        (4000, 100),  # saturates at the bottom
    ],
)
def test_lookup(y: float, expected: float) -> None:
    sample = build_sample_map(diagonal())

    assert lookup(sample, y) == pytest.approx(expected)


def test_lookup_on_empty_sample_returns_default() -> None:
    assert lookup(EMPTY_SAMPLE, 42, default=7.5) == 7.5
    assert build_sample_map(RenderedPath()) is EMPTY_SAMPLE


def test_sample_cache_evicts_oldest_entry() -> None:
    cache = SampleCache(max_entries=5)
    for index in range(6):
        cache.put(100.0 + index, 100, CoordinateSample(path_length=100.0 + index))

    assert len(cache) == 5
    assert cache.get(100.0, 100) is None
    assert cache.get(105.0, 100) is not None


def test_sample_cache_key_tolerates_float_noise() -> None:
    cache = SampleCache()
    sample = CoordinateSample(path_length=1.0)
    cache.put(1234.5670001, 200, sample)

    assert cache.get(1234.567, 200) is sample


def seven_day_path(zero_crossings: int) -> RenderedPath:
    curve = CurveConfig(width=400, center_x=200, amplitude=80, zero_crossings_per_day=zero_crossings)
    start = date(2024, 3, 1)
    days = build_days([start + timedelta(days=offset) for offset in range(7)], curve.day_stride)
    return RenderedPath.from_curve(build_curve_path(days, curve))


@pytest.mark.parametrize("zero_crossings", sorted(templates()))
def test_curve_samples_descend_monotonically(zero_crossings: int) -> None:
    path = seven_day_path(zero_crossings)
    count = sample_count_for(path.total_length)
    points = list(iter_sample_points(path, count))
    sample = build_sample_map(path, count)

    ys = [y for _, y in points]
    assert all(b > a for a, b in zip(ys, ys[1:]))
    # Keys in sampling order already match the sorted table.
    assert list(dict.fromkeys(round_half_up(y) for y in ys)) == list(sample.keys)


@pytest.mark.parametrize("zero_crossings", sorted(templates()))
def test_curve_lookup_stays_between_neighbouring_samples(zero_crossings: int) -> None:
    sample = build_sample_map(seven_day_path(zero_crossings))

    for (lower_y, lower_x), (upper_y, upper_x) in zip(
        zip(sample.keys, sample.xs), zip(sample.keys[1:], sample.xs[1:])
    ):
        for y in range(lower_y + 1, upper_y):
            assert min(lower_x, upper_x) <= lookup(sample, y) <= max(lower_x, upper_x)


def test_sample_cache_separates_paths_with_equal_length() -> None:
    cache = SampleCache()
    left, right = diagonal(), RenderedPath.from_curve(
        CurvePath((PathCommand("M", ((8, 0),)), PathCommand("L", ((108, 1000),))))
    )
    assert left.total_length == pytest.approx(right.total_length)
    sample = build_sample_map(left)
    cache.put(left.total_length, 200, sample, path_signature(left))

    assert cache.get(right.total_length, 200, path_signature(right)) is None
    assert cache.get(left.total_length, 200, path_signature(left)) is sample


def test_inverter_debounces_rapid_updates(clock, scheduler: FrameScheduler) -> None:
    inverter = CoordinateInverter(scheduler)
    published: list[CoordinateSample] = []
    inverter.subscribe(published.append)
    first, second = diagonal(), diagonal(dx=200)

    inverter.update_path(first)
    clock.advance(0.03)
    scheduler.run_pending()
    inverter.update_path(second)
    scheduler.run_until_idle()

    assert len(published) == 1
    assert published[0].path_length == pytest.approx(second.total_length)
    assert inverter.sample is published[0]
    assert not inverter.is_pending


def test_inverter_rebuilds_in_frame_sized_chunks(clock, scheduler: FrameScheduler) -> None:
    inverter = CoordinateInverter(scheduler, chunk_size=100)
    inverter.update_path(diagonal())

    clock.advance(0.05)
    scheduler.run_pending()
    assert inverter.sample is EMPTY_SAMPLE
    assert inverter.is_pending

    scheduler.run_pending()
    assert inverter.sample is EMPTY_SAMPLE

    scheduler.run_pending()
    assert len(inverter.sample) == 201
    assert not inverter.is_pending


def test_inverter_discards_superseded_build(clock, scheduler: FrameScheduler) -> None:
    inverter = CoordinateInverter(scheduler, chunk_size=50)
    published: list[CoordinateSample] = []
    inverter.subscribe(published.append)
    first, second = diagonal(), diagonal(dx=300)

    inverter.update_path(first)
    clock.advance(0.05)
    scheduler.run_pending()
    assert inverter.is_pending

    inverter.update_path(second)
    scheduler.run_until_idle()

    assert [sample.path_length for sample in published] == [pytest.approx(second.total_length)]


def test_inverter_reuses_cached_sample(clock, scheduler: FrameScheduler) -> None:
    inverter = CoordinateInverter(scheduler)
    inverter.update_path(diagonal())
    built = inverter.flush()

    inverter.update_path(diagonal())
    clock.advance(0.05)
    executed = scheduler.run_pending()

    # Only the debounce timer ran; no chunked frames were needed.
    assert executed == 1
    assert inverter.sample is built
    assert not inverter.is_pending


def test_empty_path_publishes_empty_sample_immediately(scheduler: FrameScheduler) -> None:
    inverter = CoordinateInverter(scheduler, fallback_x=12.0)
    inverter.update_path(diagonal())
    inverter.flush()

    inverter.update_path(None)

    assert inverter.sample is EMPTY_SAMPLE
    assert not inverter.is_pending
    assert inverter.lookup(100) == 12.0


def test_unsubscribe_stops_notifications(scheduler: FrameScheduler) -> None:
    inverter = CoordinateInverter(scheduler)
    published: list[CoordinateSample] = []
    unsubscribe = inverter.subscribe(published.append)
    unsubscribe()

    inverter.update_path(diagonal())
    inverter.flush()

    assert published == []


def test_disposed_inverter_rejects_updates(scheduler: FrameScheduler) -> None:
    inverter = CoordinateInverter(scheduler)
    inverter.dispose()

    with pytest.raises(RuntimeError):
        inverter.update_path(diagonal())
    with pytest.raises(RuntimeError):
        inverter.flush()
