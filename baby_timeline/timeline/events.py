"""Normalized baby-activity events consumed by the timeline."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, Mapping, Optional

MINUTES_PER_DAY = 24 * 60

_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


class EventType(str, Enum):
    FEEDING = "feeding"
    DIAPER = "diaper"
    SLEEP = "sleep"
    OTHER = "other"


PAYLOAD_KEYS: Mapping[str, str] = {
    EventType.FEEDING.value: "feedingEvent",
    EventType.DIAPER.value: "diaperEvent",
    EventType.SLEEP.value: "sleepEvent",
    EventType.OTHER.value: "otherEvent",
}


class EventFormatError(ValueError):
    """Raised when an event record cannot be interpreted at all."""


@dataclass(frozen=True)
class EventImage:
    url: str
    filename: str = ""


@dataclass(frozen=True)
class TimelineEvent:
    """An event record as supplied by the data layer.

    Only the identifying and timing fields take part in equality; the
    type-specific payload and images ride along for presentation.
    """

    id: str
    type: str
    date: str
    time: str
    notes: Optional[str] = None
    duration: Optional[float] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)
    images: tuple[EventImage, ...] = field(default=(), compare=False, hash=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TimelineEvent":
        """Build an event from an API-style record.

        Type-specific fields are read from the nested ``<type>Event`` object
        when present, otherwise from the record itself.
        """

        if not isinstance(data, Mapping):
            raise EventFormatError(f"Event record must be a mapping, got {type(data).__name__}")
        event_id = data.get("id")
        if event_id in (None, ""):
            raise EventFormatError("Event record is missing an id")

        event_type = str(data.get("type") or EventType.OTHER.value)
        nested = data.get(PAYLOAD_KEYS.get(event_type, ""))
        payload: Mapping[str, Any] = nested if isinstance(nested, Mapping) else data

        images = tuple(
            EventImage(url=str(item.get("url", "")), filename=str(item.get("filename") or item.get("name") or ""))
            for item in data.get("images") or ()
            if isinstance(item, Mapping)
        )

        return cls(
            id=str(event_id),
            type=event_type,
            date=str(data.get("date") or ""),
            time=str(data.get("time") or ""),
            notes=data.get("notes"),
            duration=_as_minutes(payload.get("duration")),
            start_time=_as_text(payload.get("startTime")),
            end_time=_as_text(payload.get("endTime")),
            payload=dict(payload),
            images=images,
        )

    @property
    def event_type(self) -> EventType | None:
        try:
            return EventType(self.type)
        except ValueError:
            return None


def parse_clock(value: str | None) -> time | None:
    """Parse ``H:MM``, ``HH:MM`` or ``HH:MM:SS``; return ``None`` when malformed."""

    if not value:
        return None
    match = _CLOCK_PATTERN.match(value.strip())
    if match is None:
        return None
    hour, minute, second = (int(part) if part else 0 for part in match.groups())
    if hour > 23 or minute > 59 or second > 59:
        return None
    return time(hour, minute, second)


def parse_event_date(value: str | None) -> date | None:
    """Parse an ISO date, tolerating a trailing time component."""

    if not value:
        return None
    text = value.strip()
    if "T" in text:
        text = text.split("T", 1)[0]
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def minutes_since_midnight(value: time) -> float:
    return value.hour * 60 + value.minute + value.second / 60


def minutes_between(start: time, end: time) -> int:
    """Minutes from ``start`` to ``end``, rolling over midnight when ``end`` is earlier."""

    delta = minutes_since_midnight(end) - minutes_since_midnight(start)
    if delta < 0:
        delta += MINUTES_PER_DAY
    return round(delta)


def effective_duration(event: TimelineEvent) -> float:
    """Explicit duration, else the start/end difference, else zero."""

    if event.duration:
        return event.duration
    start = parse_clock(event.start_time)
    end = parse_clock(event.end_time)
    if start is not None and end is not None:
        return minutes_between(start, end)
    return 0


def add_minutes(day: date, moment: time, minutes: float) -> datetime:
    return datetime.combine(day, moment) + timedelta(minutes=minutes)


def _as_minutes(value: Any) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        minutes = float(value)
    except (TypeError, ValueError):
        return None
    return minutes if minutes > 0 else None


def _as_text(value: Any) -> Optional[str]:
    if value in (None, ""):
        return None
    return str(value)


__all__ = [
    "EventFormatError",
    "EventImage",
    "EventType",
    "MINUTES_PER_DAY",
    "TimelineEvent",
    "add_minutes",
    "effective_duration",
    "minutes_between",
    "minutes_since_midnight",
    "parse_clock",
    "parse_event_date",
]
