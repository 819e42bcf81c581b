"""Top-level package for the curved baby-activity timeline."""

from __future__ import annotations

from .scheduler import FrameScheduler, TimerHandle
from .timeline import TimelineLayout, TimelineView

__all__ = [
    "__version__",
    "FrameScheduler",
    "TimelineLayout",
    "TimelineView",
    "TimerHandle",
]

__version__ = "0.1.0"
