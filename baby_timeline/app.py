"""Command line entry point that renders a timeline snapshot to disk."""

from __future__ import annotations

import argparse
import json
import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .config import ConfigError, layout_from_env, load_env_file
from .rendering import TimelineRenderer, render_svg
from .timeline import TimelineEvent, TimelineLayout, TimelineView
from .timeline.events import EventFormatError

LOGGER = logging.getLogger(__name__)
DEFAULT_TIMEZONE = "UTC"
OUTPUT_FORMATS = ("png", "svg")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render the curved baby-activity timeline")
    parser.add_argument(
        "--events",
        type=Path,
        required=True,
        help="JSON file holding a list of events or an object with an 'events' list.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("timeline.png"),
        help="Where to write the rendered timeline.",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format. Defaults to the --output suffix, falling back to png.",
    )
    parser.add_argument(
        "--today",
        type=date.fromisoformat,
        default=None,
        help="Reference date (YYYY-MM-DD) the window is centred on. Defaults to today.",
    )
    parser.add_argument(
        "--timezone",
        type=str,
        default=None,
        help="IANA timezone used to determine today (env: TIMELINE_TIMEZONE).",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Optional path to a .env file loaded before the app starts.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    viewport_group = parser.add_argument_group("Viewport options")
    viewport_group.add_argument(
        "--viewport-width",
        type=float,
        default=None,
        help="Width of the hosting viewport in pixels. Defaults to the maximum timeline width.",
    )
    viewport_group.add_argument(
        "--small-screen",
        action="store_true",
        default=None,
        help="Force the small-screen amplitude regardless of the viewport width.",
    )

    return parser


@dataclass
class AppSettings:
    events_path: Path
    output: Path
    output_format: str
    today: date
    timezone: str
    viewport_width: float | None
    small_screen: bool | None
    layout: TimelineLayout
    verbose: bool = False


def resolve_settings(
    args: argparse.Namespace,
    *,
    now_provider: Callable[[ZoneInfo], datetime] = datetime.now,
) -> AppSettings:
    load_env_file(args.env_file)
    timezone = args.timezone or os.environ.get("TIMELINE_TIMEZONE") or DEFAULT_TIMEZONE
    try:
        zone = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown timezone {timezone!r}") from exc

    output_format = args.output_format
    if output_format is None:
        suffix = args.output.suffix.lower().lstrip(".")
        output_format = suffix if suffix in OUTPUT_FORMATS else "png"

    return AppSettings(
        events_path=args.events,
        output=args.output,
        output_format=output_format,
        today=args.today or now_provider(zone).date(),
        timezone=timezone,
        viewport_width=args.viewport_width,
        small_screen=args.small_screen,
        layout=layout_from_env(),
        verbose=args.verbose,
    )


def load_events(path: Path, *, logger: logging.Logger | None = None) -> List[TimelineEvent]:
    """Read events from ``path``, skipping records that cannot be interpreted."""

    log = logger or LOGGER
    try:
        data: Any = json.loads(Path(path).read_text())
    except FileNotFoundError as exc:
        raise ConfigError(f"Events file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Events file {path} is not valid JSON: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("events")
    if not isinstance(data, list):
        raise ConfigError(f"Events file {path} must contain a list of events")

    events: List[TimelineEvent] = []
    for index, record in enumerate(data):
        try:
            events.append(TimelineEvent.from_mapping(record))
        except EventFormatError as exc:
            log.warning("Skipping event record %d: %s", index, exc)
    log.info("Loaded %d of %d event records from %s", len(events), len(data), path)
    return events


def render_timeline(
    settings: AppSettings,
    *,
    view_factory: Callable[..., TimelineView] = TimelineView,
    renderer_factory: Callable[[], TimelineRenderer] = TimelineRenderer,
    logger: logging.Logger | None = None,
) -> Path:
    """Build the view for ``settings`` and write one frame to ``settings.output``."""

    log = logger or LOGGER
    events = load_events(settings.events_path, logger=log)
    view = view_factory(
        settings.layout,
        viewport_width=settings.viewport_width,
        small_screen=settings.small_screen,
        logger=log,
    )
    try:
        view.initialize(settings.today)
        view.set_events(events)
        view.flush()
        frame = view.snapshot()
    finally:
        view.dispose()

    log.info(
        "Placed %d events across %d days (%s to %s)",
        len(frame.placements),
        len(frame.days),
        frame.days[0].date if frame.days else "-",
        frame.days[-1].date if frame.days else "-",
    )

    settings.output.parent.mkdir(parents=True, exist_ok=True)
    if settings.output_format == "svg":
        settings.output.write_text(render_svg(frame))
    else:
        image = renderer_factory().render(frame)
        image.save(settings.output, format="PNG")
    log.info("Wrote %s", settings.output)
    return settings.output


def main(
    argv: Optional[Iterable[str]] = None,
    *,
    view_factory: Callable[..., TimelineView] = TimelineView,
    renderer_factory: Callable[[], TimelineRenderer] = TimelineRenderer,
) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        settings = resolve_settings(args)
        render_timeline(settings, view_factory=view_factory, renderer_factory=renderer_factory)
    except ConfigError as exc:
        LOGGER.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
