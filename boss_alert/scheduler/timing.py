"""Event-time arithmetic for the notifier and heartbeat schedules.

All instants are timezone-aware; naive datetimes are never produced.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

EVENT_INTERVAL = timedelta(hours=3, minutes=30)
NOTIFICATION_LEAD = timedelta(minutes=5)


class ConfigurationError(Exception):
    """Raised for configuration a human has to fix before the process can start."""


def parse_event_epoch(value: str) -> datetime:
    """Parse an RFC3339 timestamp into an aware UTC datetime.

    Raises:
        ConfigurationError: if the value is empty, unparsable, or has no
            UTC offset.
    """
    if not value:
        raise ConfigurationError("FIRST_EVENT_TIME is not set")

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ConfigurationError(f"invalid FIRST_EVENT_TIME {value!r}: {e}") from e

    if parsed.tzinfo is None:
        raise ConfigurationError(
            f"invalid FIRST_EVENT_TIME {value!r}: missing UTC offset"
        )
    return parsed.astimezone(timezone.utc)


def next_event_time(
    epoch: datetime,
    interval: timedelta = EVENT_INTERVAL,
    now: Optional[datetime] = None,
) -> datetime:
    """Return the first occurrence ``epoch + k * interval`` after ``now``.

    ``k`` never goes below zero: before the epoch, the epoch itself is the
    next event.
    """
    if interval <= timedelta(0):
        raise ValueError("interval must be positive")
    if now is None:
        now = datetime.now(timezone.utc)

    intervals_passed = (now - epoch) // interval
    k = max(intervals_passed + 1, 0)
    candidate = epoch + k * interval
    if now > candidate:
        candidate += interval
    return candidate


def notification_time(
    event_time: datetime, lead: timedelta = NOTIFICATION_LEAD
) -> datetime:
    return event_time - lead


def delay_until_next_boundary(now: datetime, step_minutes: int = 5) -> timedelta:
    """Time left until the next wall-clock minute divisible by ``step_minutes``.

    At an exact boundary this is a full step, never zero.
    """
    delay = timedelta(minutes=step_minutes - now.minute % step_minutes)
    delay -= timedelta(seconds=now.second, microseconds=now.microsecond)
    return delay


def format_duration(delta: timedelta) -> str:
    """Render a duration as ``H:MM:SS``, rounded to the second."""
    total = max(round(delta.total_seconds()), 0)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def to_display_zone(moment: datetime, offset_hours: int) -> datetime:
    return moment.astimezone(timezone(timedelta(hours=offset_hours)))
