"""Wall-clock HH:MM helpers.

Event and slot times are stored as local `HH:MM` strings. Comparisons are
done on minutes, never on the strings, and overnight windows are handled by
projecting times onto a timeline that starts at an anchor (usually the
event's start time), so `23:00-01:00` is a two hour window rather than a
negative one.
"""

import re
from typing import Tuple

from ..errors import InvalidTimeError

MINUTES_PER_DAY = 24 * 60

TIME_PATTERN = re.compile(r'^([01]?\d|2[0-3]):([0-5]\d)$')


def to_minutes(value: str) -> int:
    """
    Convert an `HH:MM` (or `H:MM`) string to minutes since midnight.

    Raises:
        InvalidTimeError: If the value is not a valid time of day
    """
    match = TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidTimeError(
            f"Invalid time '{value}', expected HH:MM",
            details={'value': value},
        )
    return int(match.group(1)) * 60 + int(match.group(2))


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as zero-padded `HH:MM`, wrapping at 24 hours."""
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time(value: str) -> str:
    """Zero-pad a valid time, e.g. `9:05` -> `09:05`."""
    return format_minutes(to_minutes(value))


def add_hours(value: str, hours: int) -> str:
    """Add whole hours to a time of day, wrapping the hour modulo 24 (the date is not rolled)."""
    return format_minutes(to_minutes(value) + hours * 60)


def duration_minutes(start: str, end: str) -> int:
    """Length of the window from start to end, treating an end before start as the next day."""
    return (to_minutes(end) - to_minutes(start)) % MINUTES_PER_DAY


def project_interval(start: str, end: str, anchor: str = "00:00") -> Tuple[int, int]:
    """
    Place a window on a timeline measured in minutes since `anchor`.

    The result is a half-open `[start, end)` pair. A zero-length window
    projects to an empty interval.
    """
    offset = (to_minutes(start) - to_minutes(anchor)) % MINUTES_PER_DAY
    return offset, offset + duration_minutes(start, end)


def intervals_overlap(first: Tuple[int, int], second: Tuple[int, int]) -> bool:
    """Standard half-open interval overlap test."""
    return first[0] < second[1] and second[0] < first[1]


def windows_overlap(first: Tuple[int, int], second: Tuple[int, int]) -> bool:
    """
    Overlap test for projected windows on a repeating 24 hour timeline.

    A window that starts before the anchor projects near the end of the
    timeline, so it is also compared one day earlier against the other.
    """
    if intervals_overlap(first, second):
        return True
    shifted_first = (first[0] - MINUTES_PER_DAY, first[1] - MINUTES_PER_DAY)
    shifted_second = (second[0] - MINUTES_PER_DAY, second[1] - MINUTES_PER_DAY)
    return intervals_overlap(shifted_first, second) or intervals_overlap(first, shifted_second)
