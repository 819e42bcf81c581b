from __future__ import annotations

import os
from pathlib import Path

import pytest

from baby_timeline.config import ConfigError, layout_from_env, load_env_file
from baby_timeline.timeline.layout import DEFAULT_LAYOUT


def test_load_env_file_sets_missing_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "TIMELINE_HOUR_HEIGHT=48\n# comment\nexport TIMELINE_TIMEZONE = 'Europe/Berlin'\nTIMELINE_MAX_DAYS=30\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("TIMELINE_MAX_DAYS", "14")

    load_env_file(env_file)

    assert os.environ["TIMELINE_HOUR_HEIGHT"] == "48"
    assert os.environ["TIMELINE_TIMEZONE"] == "Europe/Berlin"
    assert os.environ["TIMELINE_MAX_DAYS"] == "14"


def test_load_env_file_is_noop_when_missing(tmp_path: Path) -> None:
    load_env_file(tmp_path / "missing.env")

    assert "TIMELINE_HOUR_HEIGHT" not in os.environ


def test_load_env_file_defaults_to_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text("TIMELINE_DAY_BUFFER=2\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    load_env_file()

    assert os.environ["TIMELINE_DAY_BUFFER"] == "2"


@pytest.mark.parametrize("content", ["INVALID", "=value"])
def test_invalid_line_raises(tmp_path: Path, content: str) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_env_file(env_file)


def test_layout_from_env_without_overrides_returns_base() -> None:
    assert layout_from_env({}) is DEFAULT_LAYOUT


def test_layout_from_env_applies_overrides() -> None:
    layout = layout_from_env(
        {
            "TIMELINE_HOUR_HEIGHT": "48",
            "TIMELINE_ZERO_CROSSINGS": "4",
            "TIMELINE_DAY_BUFFER": "0",
            "TIMELINE_DURATION_THRESHOLD": " 90 ",
            "UNRELATED": "x",
        }
    )

    assert layout.hour_height == 48
    assert layout.day_stride == 48 * 24 + DEFAULT_LAYOUT.day_separator_height
    assert layout.zero_crossings_per_day == 4
    assert layout.day_buffer_size == 0
    assert layout.duration_threshold_minutes == 90
    assert layout.max_days_in_memory == DEFAULT_LAYOUT.max_days_in_memory


def test_layout_from_env_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TIMELINE_MAX_WIDTH", "320")

    assert layout_from_env().max_timeline_width == 320


@pytest.mark.parametrize(
    "environ, message",
    [
        ({"TIMELINE_HOUR_HEIGHT": "tall"}, "must be an integer"),
        ({"TIMELINE_HOUR_HEIGHT": "0"}, "must be >= 1"),
        ({"TIMELINE_DAY_BUFFER": "-1"}, "must be >= 0"),
        ({"TIMELINE_MAX_DAYS": "5"}, "initial window"),
    ],
)
def test_layout_from_env_rejects_bad_values(environ: dict, message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        layout_from_env(environ)


def test_load_env_file_reports_applied_entries(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("TIMELINE_HOUR_HEIGHT=\"48\"\nTIMELINE_MAX_DAYS=30\n", encoding="utf-8")
    monkeypatch.setenv("TIMELINE_MAX_DAYS", "14")

    assert load_env_file(env_file) == {"TIMELINE_HOUR_HEIGHT": "48"}


def test_load_env_file_keeps_unbalanced_quotes(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("TIMELINE_TIMEZONE='Europe/Berlin\n", encoding="utf-8")

    load_env_file(env_file)

    assert os.environ["TIMELINE_TIMEZONE"] == "'Europe/Berlin"


def test_invalid_line_reports_line_number(tmp_path: Path) -> None:
    env_file = tmp_path / "timeline.env"
    env_file.write_text("# header\nTIMELINE_HOUR_HEIGHT=48\nBROKEN\n", encoding="utf-8")

    with pytest.raises(ConfigError, match=r"timeline\.env:3"):
        load_env_file(env_file)
