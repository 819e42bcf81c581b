from __future__ import annotations

import pytest

from baby_timeline.scheduler import FrameScheduler


def test_timer_fires_only_after_delay(clock, scheduler: FrameScheduler) -> None:
    fired: list[float] = []
    scheduler.call_later(0.05, lambda: fired.append(clock.now()))

    assert scheduler.run_pending() == 0
    clock.advance(0.04)
    assert scheduler.run_pending() == 0
    clock.advance(0.01)
    assert scheduler.run_pending() == 1
    assert fired == [pytest.approx(0.05)]
    assert not scheduler.has_pending


def test_cancelled_timer_never_fires(clock, scheduler: FrameScheduler) -> None:
    fired: list[str] = []
    first = scheduler.call_later(0.05, lambda: fired.append("first"))
    first.cancel()
    scheduler.call_later(0.05, lambda: fired.append("second"))

    clock.advance(0.1)
    scheduler.run_pending()

    assert fired == ["second"]


def test_timers_fire_in_due_order(clock, scheduler: FrameScheduler) -> None:
    fired: list[str] = []
    scheduler.call_later(0.2, lambda: fired.append("late"))
    scheduler.call_later(0.1, lambda: fired.append("early"))
    scheduler.call_later(0.1, lambda: fired.append("early-2"))

    clock.advance(0.3)
    scheduler.run_pending()

    assert fired == ["early", "early-2", "late"]


def test_frame_requested_during_frame_runs_next_frame(scheduler: FrameScheduler) -> None:
    fired: list[str] = []

    def first() -> None:
        fired.append("first")
        scheduler.request_frame(lambda: fired.append("second"))

    scheduler.request_frame(first)

    assert scheduler.run_pending() == 1
    assert fired == ["first"]
    assert scheduler.run_pending() == 1
    assert fired == ["first", "second"]


def test_run_until_idle_sleeps_until_next_timer(clock, scheduler: FrameScheduler) -> None:
    fired: list[float] = []
    scheduler.call_later(0.5, lambda: fired.append(clock.now()))

    scheduler.run_until_idle()

    assert fired == [pytest.approx(0.5)]
    assert clock.sleeps == [pytest.approx(0.5)]


def test_run_until_idle_paces_frames(clock, scheduler: FrameScheduler) -> None:
    remaining = [3]

    def tick() -> None:
        remaining[0] -= 1
        if remaining[0]:
            scheduler.request_frame(tick)

    scheduler.request_frame(tick)
    scheduler.run_until_idle()

    assert remaining == [0]
    assert clock.sleeps == [pytest.approx(scheduler.frame_interval)] * 2


def test_run_until_idle_respects_iteration_cap(scheduler: FrameScheduler) -> None:
    calls: list[int] = []

    def forever() -> None:
        calls.append(1)
        scheduler.request_frame(forever)

    scheduler.request_frame(forever)
    scheduler.run_until_idle(max_iterations=4)

    assert len(calls) == 4
    assert scheduler.has_pending
