"""Rendering helpers for timeline frames."""

from .renderer import EVENT_COLORS, RendererConfig, TimelineRenderer, event_color
from .svg import render_svg

__all__ = ["EVENT_COLORS", "RendererConfig", "TimelineRenderer", "event_color", "render_svg"]
