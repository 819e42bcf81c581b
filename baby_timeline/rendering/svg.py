"""SVG serialisation of timeline frames."""

from __future__ import annotations

import math
from typing import List
from xml.sax.saxutils import escape, quoteattr

from ..timeline.labels import event_title, format_duration, format_hour, label_anchor
from ..timeline.view import TimelineFrame
from .renderer import RendererConfig, event_color


def _num(value: float) -> str:
    return f"{round(value, 2):g}"


def render_svg(frame: TimelineFrame, config: RendererConfig | None = None) -> str:
    """Serialise ``frame`` as a standalone SVG document."""

    cfg = config or RendererConfig()
    width = _num(math.ceil(frame.width))
    height = str(frame.height)
    parts: List[str] = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">',
        f'<rect width="100%" height="100%" fill="{cfg.background_color}"/>',
    ]

    label_x = frame.layout.label_x_position
    for label in frame.day_labels:
        if label.day_index > 0:
            parts.append(
                f'<line x1="{label_x}" y1="{_num(label.start_offset)}" x2="{width}" '
                f'y2="{_num(label.start_offset)}" stroke="{cfg.separator_color}" '
                f'stroke-dasharray="{cfg.separator_dash[0]},{cfg.separator_dash[1]}"/>'
            )
        top = label.start_offset - 30
        if top < 0:
            continue
        fill = cfg.today_label_color if label.is_today else cfg.label_color
        box_width = 120 if label.is_today else 80
        parts.append(
            f'<g class="day-label"><rect x="{label_x - 4}" y="{_num(top)}" width="{box_width}" '
            f'height="20" rx="6" fill="{fill}"/>'
            f'<text x="{label_x}" y="{_num(top + 14)}" fill="#FFFFFF" '
            f'font-size="{cfg.day_label_font_size}" font-weight="bold">{escape(label.text)}</text></g>'
        )

    if not frame.path.is_empty:
        parts.append(
            f'<path class="timeline" d={quoteattr(frame.path.to_svg())} fill="none" '
            f'stroke="{cfg.path_color}" stroke-width="{cfg.path_width}" stroke-linecap="round"/>'
        )

    for marker in frame.hour_markers:
        color = cfg.major_marker_color if marker.is_major else cfg.minor_marker_color
        half = 6 if marker.is_major else 4
        parts.append(
            f'<g class="hour-marker" data-key="{marker.key}">'
            f'<line x1="{_num(marker.x - half)}" y1="{_num(marker.y)}" x2="{_num(marker.x + half)}" '
            f'y2="{_num(marker.y)}" stroke="{color}" stroke-width="{2 if marker.is_major else 1}"/>'
            f'<circle cx="{_num(marker.x)}" cy="{_num(marker.y)}" r="{2.5 if marker.is_major else 2}" fill="{color}"/>'
        )
        if marker.is_major:
            text_x, anchor = label_anchor(marker.x, frame.width, gap=10)
            parts.append(
                f'<text x="{_num(text_x)}" y="{_num(marker.y)}" text-anchor="{anchor}" '
                f'dominant-baseline="middle" font-size="{cfg.hour_label_font_size}" '
                f'fill="{color}">{format_hour(marker.hour)}</text>'
            )
        parts.append("</g>")

    for placement in frame.placements:
        event = placement.event
        color = event_color(event.type if event is not None else None)
        radius = frame.layout.event_radius + (4 if placement.event_id == frame.hovered_event_id else 0)
        title = event_title(event) if event is not None else placement.event_id
        if placement.is_duration:
            title = f"{title} ({format_duration(placement.duration_minutes)})"
        parts.append(f'<g class="event" data-id={quoteattr(placement.event_id)}><title>{escape(title)}</title>')
        if placement.is_duration and placement.connector_path is not None:
            parts.append(
                f'<path d={quoteattr(placement.connector_path.to_svg())} fill="none" stroke="{color}" '
                f'stroke-width="{cfg.connector_width}" stroke-linecap="round" '
                f'stroke-dasharray="{cfg.connector_dash[0]},{cfg.connector_dash[1]}" opacity="0.8"/>'
            )
            parts.append(
                f'<circle cx="{_num(placement.x)}" cy="{_num(placement.y)}" r="{radius + 2}" '
                f'fill="{color}" stroke="#FFFFFF" stroke-width="3"/>'
            )
            if placement.end_x is not None and placement.end_y is not None:
                parts.append(
                    f'<circle cx="{_num(placement.end_x)}" cy="{_num(placement.end_y)}" r="{radius + 1}" '
                    f'fill="{color}" stroke="#FFFFFF" stroke-width="2"/>'
                )
        else:
            parts.append(
                f'<circle cx="{_num(placement.x)}" cy="{_num(placement.y)}" r="{radius}" fill="{color}"/>'
            )
        parts.append("</g>")

    parts.append("</svg>")
    return "\n".join(parts)


__all__ = ["render_svg"]
