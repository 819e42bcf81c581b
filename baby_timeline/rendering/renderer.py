"""Raster renderer for timeline frames."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Sequence

from PIL import Image, ImageDraw, ImageFont

from ..timeline.geometry import RenderedPath
from ..timeline.labels import format_hour, label_anchor
from ..timeline.placement import EventPlacement
from ..timeline.view import TimelineFrame

EVENT_COLORS: Mapping[str, str] = {
    "feeding": "#3B82F6",
    "diaper": "#10B981",
    "sleep": "#8B5CF6",
    "other": "#F59E0B",
}
DEFAULT_EVENT_COLOR = "#6B7280"


def event_color(event_type: str | None) -> str:
    return EVENT_COLORS.get(event_type or "", DEFAULT_EVENT_COLOR)


def _load_font(path_candidates: Sequence[Path], size: int) -> ImageFont.ImageFont:
    for candidate in path_candidates:
        if candidate and candidate.exists():
            return ImageFont.truetype(str(candidate), size=size)
    return ImageFont.load_default()


def _default_font_candidates(bold: bool) -> List[Path]:
    names = ["DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf"]
    search_dirs = [
        Path("/usr/share/fonts/truetype/dejavu"),
        Path("/usr/share/fonts"),
        Path("/Library/Fonts"),
        Path.home() / ".fonts",
    ]
    return [directory / name for name in names for directory in search_dirs]


@dataclass
class RendererConfig:
    """Colours, stroke widths and font management for the renderer."""

    font_regular_path: Path | None = None
    font_bold_path: Path | None = None
    preview_output_dir: Path | None = None
    background_color: str = "#FFFFFF"
    path_color: str = "#D1D5DB"
    path_width: int = 5
    label_color: str = "#1F2937"
    today_label_color: str = "#3B82F6"
    separator_color: str = "#E5E7EB"
    major_marker_color: str = "#444444"
    minor_marker_color: str = "#666666"
    connector_width: int = 6
    connector_dash: tuple[int, int] = (12, 4)
    separator_dash: tuple[int, int] = (5, 5)
    day_label_font_size: int = 14
    hour_label_font_size: int = 12
    _fonts: dict[tuple[int, bool], ImageFont.ImageFont] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.preview_output_dir is not None:
            self.preview_output_dir = Path(self.preview_output_dir)
            self.preview_output_dir.mkdir(parents=True, exist_ok=True)

    def font(self, size: int, *, bold: bool = False) -> ImageFont.ImageFont:
        key = (size, bold)
        if key not in self._fonts:
            provided = self.font_bold_path if bold else self.font_regular_path
            candidates = [Path(provided)] if provided is not None else []
            candidates.extend(_default_font_candidates(bold))
            self._fonts[key] = _load_font(candidates, size)
        return self._fonts[key]


class TimelineRenderer:
    """Draw a :class:`TimelineFrame` onto a Pillow image."""

    def __init__(self, config: RendererConfig | None = None) -> None:
        self.config = config or RendererConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def render(self, frame: TimelineFrame, *, preview_name: str | None = None) -> Image.Image:
        """Render ``frame`` and optionally save a preview PNG."""

        cfg = self.config
        width = max(1, int(math.ceil(frame.width)))
        image = Image.new("RGB", (width, frame.height), color=cfg.background_color)
        draw = ImageDraw.Draw(image)

        self._draw_day_labels(draw, frame)
        self._draw_curve(draw, frame.rendered_path)
        self._draw_hour_markers(draw, frame)
        for placement in frame.placements:
            self._draw_placement(draw, frame, placement)

        if cfg.preview_output_dir is not None and preview_name:
            image.save(cfg.preview_output_dir / f"{preview_name}.png")
        return image

    # ------------------------------------------------------------------
    # Rendering helpers
    # ------------------------------------------------------------------
    def _draw_day_labels(self, draw: ImageDraw.ImageDraw, frame: TimelineFrame) -> None:
        cfg = self.config
        x = frame.layout.label_x_position
        font = cfg.font(cfg.day_label_font_size, bold=True)
        for label in frame.day_labels:
            top = label.start_offset - 30
            box_width = 120 if label.is_today else 80
            fill = cfg.today_label_color if label.is_today else cfg.label_color
            if top >= 0:
                draw.rounded_rectangle((x - 4, top, x - 4 + box_width, top + 20), radius=6, fill=fill)
                draw.text((x, top + 3), label.text, font=font, fill="#FFFFFF")
            if label.day_index > 0:
                self._dashed_polyline(
                    draw,
                    [(x, label.start_offset), (frame.width, label.start_offset)],
                    cfg.separator_dash,
                    fill=cfg.separator_color,
                    width=1,
                )

    def _draw_curve(self, draw: ImageDraw.ImageDraw, path: RenderedPath) -> None:
        if len(path.vertices) < 2:
            return
        draw.line(list(path.vertices), fill=self.config.path_color, width=self.config.path_width, joint="curve")

    def _draw_hour_markers(self, draw: ImageDraw.ImageDraw, frame: TimelineFrame) -> None:
        cfg = self.config
        font = cfg.font(cfg.hour_label_font_size)
        for marker in frame.hour_markers:
            color = cfg.major_marker_color if marker.is_major else cfg.minor_marker_color
            half = 6 if marker.is_major else 4
            radius = 2.5 if marker.is_major else 2
            draw.line((marker.x - half, marker.y, marker.x + half, marker.y), fill=color, width=2 if marker.is_major else 1)
            draw.ellipse((marker.x - radius, marker.y - radius, marker.x + radius, marker.y + radius), fill=color)
            if marker.is_major:
                label_x, anchor = label_anchor(marker.x, frame.width, gap=10)
                draw.text(
                    (label_x, marker.y),
                    format_hour(marker.hour),
                    font=font,
                    fill=color,
                    anchor="rm" if anchor == "end" else "lm",
                )

    def _draw_placement(self, draw: ImageDraw.ImageDraw, frame: TimelineFrame, placement: EventPlacement) -> None:
        cfg = self.config
        event_type = placement.event.type if placement.event is not None else None
        color = event_color(event_type)
        radius = frame.layout.event_radius
        if placement.event_id == frame.hovered_event_id:
            radius += 4

        if placement.is_duration and placement.connector_path is not None:
            connector = RenderedPath.from_curve(placement.connector_path)
            self._dashed_polyline(draw, list(connector.vertices), cfg.connector_dash, fill=color, width=cfg.connector_width)
            self._circle(draw, placement.x, placement.y, radius + 2, fill=color, outline="#FFFFFF", width=3)
            if placement.end_x is not None and placement.end_y is not None:
                self._circle(draw, placement.end_x, placement.end_y, radius + 1, fill=color, outline="#FFFFFF", width=2)
        else:
            self._circle(draw, placement.x, placement.y, radius, fill=color)

    @staticmethod
    def _circle(
        draw: ImageDraw.ImageDraw,
        x: float,
        y: float,
        radius: float,
        *,
        fill: str,
        outline: str | None = None,
        width: int = 0,
    ) -> None:
        draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=fill, outline=outline, width=width)

    @staticmethod
    def _dashed_polyline(
        draw: ImageDraw.ImageDraw,
        points: Sequence[tuple[float, float]],
        dash: tuple[int, int],
        *,
        fill: str,
        width: int,
    ) -> None:
        on, off = dash
        pattern = on + off
        travelled = 0.0
        for start, end in zip(points, points[1:]):
            length = math.dist(start, end)
            if length == 0:
                continue
            position = 0.0
            while position < length:
                phase = (travelled + position) % pattern
                if phase < on:
                    span = min(on - phase, length - position)
                    a = position / length
                    b = (position + span) / length
                    draw.line(
                        (
                            start[0] + (end[0] - start[0]) * a,
                            start[1] + (end[1] - start[1]) * a,
                            start[0] + (end[0] - start[0]) * b,
                            start[1] + (end[1] - start[1]) * b,
                        ),
                        fill=fill,
                        width=width,
                    )
                else:
                    span = min(pattern - phase, length - position)
                position += span
            travelled += length


__all__ = ["EVENT_COLORS", "RendererConfig", "TimelineRenderer", "event_color"]
