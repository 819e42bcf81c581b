"""Layout constants and helpers for the curved multi-day timeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

HOURS_PER_DAY: Final[int] = 24


@dataclass(frozen=True)
class CurveConfig:
    """Resolved curve parameters for a particular viewport."""

    width: float
    center_x: float
    amplitude: float
    hour_height: float = 60
    day_separator_height: float = 40
    zero_crossings_per_day: int = 2

    @property
    def day_height(self) -> float:
        return HOURS_PER_DAY * self.hour_height

    @property
    def day_stride(self) -> float:
        return self.day_height + self.day_separator_height

    def day_start_offset(self, window_index: int) -> float:
        return window_index * self.day_stride

    def total_height(self, num_days: int) -> float:
        return num_days * self.day_stride


@dataclass(frozen=True)
class TimelineLayout:
    """Collection of reusable layout constants for the timeline view."""

    max_timeline_width: int = 400
    window_margin: int = 16
    hour_height: int = 60
    day_separator_height: int = 40
    event_radius: int = 14
    desktop_amplitude_divisor: int = 3
    mobile_amplitude_divisor: int = 4
    desktop_max_amplitude: int = 80
    mobile_max_amplitude: int = 60
    zero_crossings_per_day: int = 2
    day_buffer_size: int = 3
    max_days_in_memory: int = 21
    scroll_threshold_px: int = 200
    loading_delay: float = 0.1
    label_x_position: int = 5
    duration_threshold_minutes: int = 60
    small_screen_breakpoint: int = 768
    min_canvas_height: int = 1000
    canvas_bottom_padding: int = 200

    @property
    def day_height(self) -> int:
        return HOURS_PER_DAY * self.hour_height

    @property
    def day_stride(self) -> int:
        return self.day_height + self.day_separator_height

    def total_height(self, num_days: int) -> int:
        return num_days * self.day_stride

    def canvas_height(self, num_days: int) -> int:
        return max(self.total_height(num_days) + self.canvas_bottom_padding, self.min_canvas_height)

    def timeline_width(self, viewport_width: float | None = None) -> float:
        """Clamp the drawable width to the viewport minus the window margin."""

        if viewport_width is None:
            return float(self.max_timeline_width)
        return float(min(self.max_timeline_width, viewport_width - self.window_margin))

    def is_small_screen(self, viewport_width: float | None) -> bool:
        return viewport_width is not None and viewport_width < self.small_screen_breakpoint

    def amplitude(self, timeline_width: float, small_screen: bool) -> float:
        if small_screen:
            return min(self.mobile_max_amplitude, timeline_width / self.mobile_amplitude_divisor)
        return min(self.desktop_max_amplitude, timeline_width / self.desktop_amplitude_divisor)

    def curve_config(
        self,
        viewport_width: float | None = None,
        *,
        small_screen: bool | None = None,
    ) -> CurveConfig:
        width = self.timeline_width(viewport_width)
        if small_screen is None:
            small_screen = self.is_small_screen(viewport_width)
        return CurveConfig(
            width=width,
            center_x=width / 2,
            amplitude=self.amplitude(width, small_screen),
            hour_height=self.hour_height,
            day_separator_height=self.day_separator_height,
            zero_crossings_per_day=self.zero_crossings_per_day,
        )


DEFAULT_LAYOUT: Final[TimelineLayout] = TimelineLayout()

__all__ = ["CurveConfig", "DEFAULT_LAYOUT", "HOURS_PER_DAY", "TimelineLayout"]
