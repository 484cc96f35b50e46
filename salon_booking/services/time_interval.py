"""
Minute-of-day time helpers.

Times are stored as integers (minutes since midnight). Intervals are
half-open: [start, end).
"""

from typing import Optional

DEFAULT_DURATION_MINUTES = 60
LEGACY_DURATION_MINUTES = 30
MINUTES_PER_DAY = 24 * 60


def parse_time(text) -> Optional[int]:
    """
    Parses "HH:MM" (or "HH:MM:SS", seconds are dropped) into minutes.
    Returns None for anything malformed, never raises.
    """
    if not isinstance(text, str):
        return None

    parts = text.strip().split(":")
    if len(parts) < 2 or len(parts) > 3:
        return None

    hours, minutes = parts[0], parts[1]
    if not (hours.isdecimal() and minutes.isdecimal()):
        return None
    if len(parts) == 3 and not parts[2].isdecimal():
        return None

    h, m = int(hours), int(minutes)
    if h > 23 or m > 59:
        return None
    return h * 60 + m


def parse_end_time(text) -> Optional[int]:
    """Like parse_time, but also accepts "24:00" as the end of the day."""
    if isinstance(text, str) and text.strip() in ("24:00", "24:00:00"):
        return MINUTES_PER_DAY
    return parse_time(text)


def derive_end(start: int, duration: int = DEFAULT_DURATION_MINUTES) -> int:
    return start + duration


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    # Touching endpoints (end_a == start_b) do not overlap
    return start_a < end_b and end_a > start_b


def format_minutes(minutes: Optional[int]) -> Optional[str]:
    if minutes is None:
        return None
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
