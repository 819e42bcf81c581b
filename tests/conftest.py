from __future__ import annotations

import pytest

from baby_timeline.scheduler import FrameScheduler


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.current = start
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler(clock: FakeClock) -> FrameScheduler:
    return FrameScheduler(time_provider=clock.now, sleep_func=clock.sleep)


@pytest.fixture(autouse=True)
def _clear_timeline_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "TIMELINE_HOUR_HEIGHT",
        "TIMELINE_DAY_SEPARATOR_HEIGHT",
        "TIMELINE_ZERO_CROSSINGS",
        "TIMELINE_DAY_BUFFER",
        "TIMELINE_MAX_DAYS",
        "TIMELINE_SCROLL_THRESHOLD",
        "TIMELINE_MAX_WIDTH",
        "TIMELINE_DURATION_THRESHOLD",
        "TIMELINE_TIMEZONE",
    ):
        # Teardown removes anything a test loads.
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
