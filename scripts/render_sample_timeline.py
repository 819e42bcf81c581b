#!/usr/bin/env python3
"""Generate a sample timeline preview (PNG or SVG) from a synthetic week of events."""

from __future__ import annotations

import argparse
import random
from datetime import date, timedelta
from pathlib import Path

from baby_timeline.rendering import TimelineRenderer, render_svg
from baby_timeline.timeline import TimelineEvent, TimelineView

PREVIEWS_DIR = Path(__file__).resolve().parents[1] / "previews"
DEFAULT_PNG_OUTPUT = PREVIEWS_DIR / "timeline_sample.png"
DEFAULT_SVG_OUTPUT = PREVIEWS_DIR / "timeline_sample.svg"


def sample_events(today: date, *, days: int = 7, seed: int = 7) -> list[TimelineEvent]:
    """Two feedings, a diaper change and an afternoon nap for each of the last ``days`` days."""

    rng = random.Random(seed)
    events: list[TimelineEvent] = []
    for offset in range(days):
        day = (today - timedelta(days=offset)).isoformat()

        def clock(hour_low: int) -> str:
            return f"{hour_low + rng.randint(0, 1):02d}:{rng.randint(0, 59):02d}"

        events.append(
            TimelineEvent.from_mapping(
                {
                    "id": f"{day}-feeding-am",
                    "type": "feeding",
                    "date": day,
                    "time": clock(7),
                    "feedingEvent": {"feedingType": "bottle", "amount": rng.randint(90, 150)},
                }
            )
        )
        events.append(
            TimelineEvent.from_mapping(
                {
                    "id": f"{day}-diaper",
                    "type": "diaper",
                    "date": day,
                    "time": clock(9),
                    "diaperEvent": {"diaperType": rng.choice(["wet", "dirty", "mixed"])},
                }
            )
        )
        nap_start = clock(13)
        events.append(
            TimelineEvent.from_mapping(
                {
                    "id": f"{day}-nap",
                    "type": "sleep",
                    "date": day,
                    "time": nap_start,
                    "sleepEvent": {
                        "sleepType": "nap",
                        "startTime": nap_start,
                        "duration": rng.randint(60, 180),
                    },
                }
            )
        )
        events.append(
            TimelineEvent.from_mapping(
                {
                    "id": f"{day}-feeding-pm",
                    "type": "feeding",
                    "date": day,
                    "time": clock(17),
                    "feedingEvent": {"feedingType": "breast", "duration": rng.randint(10, 30)},
                }
            )
        )
    return events


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Where to write the preview file (defaults to previews/timeline_sample.<ext>).",
    )
    parser.add_argument(
        "--format",
        choices=("png", "svg"),
        default="png",
        help="Preview format.",
    )
    parser.add_argument(
        "--today",
        type=date.fromisoformat,
        default=None,
        help="Reference date for the sample week (defaults to today).",
    )
    parser.add_argument("--seed", type=int, default=7, help="Random seed for the sample events.")
    parser.add_argument("--viewport-width", type=float, default=None)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    today = args.today or date.today()
    output_path = args.output or (DEFAULT_PNG_OUTPUT if args.format == "png" else DEFAULT_SVG_OUTPUT)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    view = TimelineView(viewport_width=args.viewport_width)
    view.initialize(today)
    view.set_events(sample_events(today, seed=args.seed))
    view.flush()
    frame = view.snapshot()
    view.dispose()

    if args.format == "png":
        TimelineRenderer().render(frame).save(output_path)
    else:
        output_path.write_text(render_svg(frame))

    print(f"Wrote preview to {output_path}")


if __name__ == "__main__":
    main()
