"""Wall-clock helpers shared by the planner stages."""
from __future__ import annotations

import re
from datetime import date
from typing import Tuple

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR

_CLOCK_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


class TimeFormatError(ValueError):
    """Raised when a wall-clock string is not a valid HH:MM value."""


def parse_clock(value: str) -> int:
    """
    Convert ``HH:MM`` (24-hour) into minutes since midnight.

    A one-digit hour is accepted ("8:30"); "24:00" is accepted as the end
    of the day so periods can run until midnight.
    """
    if not isinstance(value, str):
        raise TimeFormatError(f"Expected an HH:MM string, got {value!r}")
    match = _CLOCK_PATTERN.match(value)
    if not match:
        raise TimeFormatError(f"Invalid time {value!r}; expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes >= MINUTES_PER_HOUR or hours > 24 or (hours == 24 and minutes):
        raise TimeFormatError(f"Time out of range: {value!r}")
    return hours * MINUTES_PER_HOUR + minutes


def format_clock(total_minutes: int) -> str:
    """Render minutes since midnight as zero-padded ``HH:MM``."""
    if total_minutes < 0 or total_minutes > MINUTES_PER_DAY:
        raise TimeFormatError(f"Minute offset out of range: {total_minutes}")
    hours, minutes = divmod(total_minutes, MINUTES_PER_HOUR)
    return f"{hours:02d}:{minutes:02d}"


def is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def current_week(today: date | None = None) -> Tuple[int, int]:
    """Return the ISO (week number, year) pair used to key stored plans."""
    iso = (today or date.today()).isocalendar()
    return iso[1], iso[0]
