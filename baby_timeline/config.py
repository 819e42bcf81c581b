"""Environment loading and layout overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Iterator, Mapping

from .timeline.layout import DEFAULT_LAYOUT, TimelineLayout

__all__ = ["ConfigError", "ENV_OVERRIDES", "layout_from_env", "load_env_file"]

LOGGER = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Raised when configuration values are malformed."""


# Environment variable -> TimelineLayout field
ENV_OVERRIDES: Mapping[str, str] = {
    "TIMELINE_HOUR_HEIGHT": "hour_height",
    "TIMELINE_DAY_SEPARATOR_HEIGHT": "day_separator_height",
    "TIMELINE_ZERO_CROSSINGS": "zero_crossings_per_day",
    "TIMELINE_DAY_BUFFER": "day_buffer_size",
    "TIMELINE_MAX_DAYS": "max_days_in_memory",
    "TIMELINE_SCROLL_THRESHOLD": "scroll_threshold_px",
    "TIMELINE_MAX_WIDTH": "max_timeline_width",
    "TIMELINE_DURATION_THRESHOLD": "duration_threshold_minutes",
}


def load_env_file(env_file: str | Path | None = None) -> dict[str, str]:
    """Apply ``KEY=VALUE`` lines from ``env_file`` (default ``./.env``) to the environment.

    Variables already set in the process win. Returns the entries that were
    actually applied; a missing file applies nothing.
    """

    path = Path(env_file) if env_file is not None else Path.cwd() / ".env"
    if not path.is_file():
        return {}

    applied: dict[str, str] = {}
    for key, value in _iter_env_entries(path):
        if key in os.environ:
            continue
        os.environ[key] = value
        applied[key] = value
    LOGGER.debug("Loaded %d variable(s) from %s", len(applied), path)
    return applied


def layout_from_env(
    environ: Mapping[str, str] | None = None,
    base: TimelineLayout = DEFAULT_LAYOUT,
) -> TimelineLayout:
    """Return ``base`` with any ``TIMELINE_*`` overrides applied."""

    env = os.environ if environ is None else environ
    overrides: dict[str, int] = {}
    for name, field_name in ENV_OVERRIDES.items():
        raw = env.get(name)
        if raw is None or not raw.strip():
            continue
        try:
            value = int(raw.strip())
        except ValueError as exc:
            raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
        minimum = 0 if field_name == "day_buffer_size" else 1
        if value < minimum:
            raise ConfigError(f"{name} must be >= {minimum}, got {value}")
        overrides[field_name] = value

    if not overrides:
        return base
    layout = replace(base, **overrides)
    if layout.day_buffer_size * 2 + 1 > layout.max_days_in_memory:
        raise ConfigError(
            "TIMELINE_MAX_DAYS must hold the initial window "
            f"({layout.day_buffer_size * 2 + 1} days), got {layout.max_days_in_memory}"
        )
    return layout


def _iter_env_entries(path: Path) -> Iterator[tuple[str, str]]:
    for number, raw_line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, sep, raw_value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigError(f"{path.name}:{number}: expected KEY=VALUE, got {raw_line!r}")
        yield key, _unquote(raw_value.strip())


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value
