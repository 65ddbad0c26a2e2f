"""
Conversions between wall-clock strings and minutes-since-midnight.
"""

from datetime import time
from typing import Optional


def parse_time_to_minutes(value: str) -> int:
    """
    Parse an ``HH:MM`` (or ``HH:MM:SS``) string into minutes since midnight.

    Seconds are ignored. ``24:00`` is accepted and maps to the end of the day.
    """
    parts = value.strip().split(":")
    hours = int(parts[0]) if parts and parts[0] else 0
    minutes = int(parts[1]) if len(parts) > 1 and parts[1] else 0
    return hours * 60 + minutes


def time_to_minutes(value: time) -> int:
    """Convert a ``datetime.time`` into minutes since midnight."""
    return value.hour * 60 + value.minute


def format_minutes_to_time(minute: int) -> str:
    """Format minutes since midnight as zero-padded 24-hour ``HH:MM``."""
    hours, minutes = divmod(minute, 60)
    return f"{hours:02d}:{minutes:02d}"


def parse_duration_to_minutes(value: str) -> Optional[int]:
    """
    Parse a human duration into minutes.

    Accepts plain minutes (``"90"``), ``H:MM`` (``"1:30"``) and ``H:MM:SS``
    (seconds ignored). Returns None for anything that cannot be read.
    """
    if not value or not value.strip():
        return None

    cleaned = "".join(ch for ch in value.strip() if ch.isdigit() or ch == ":")
    if not cleaned:
        return None

    parts = cleaned.split(":")

    try:
        if len(parts) == 1:
            return int(parts[0])
        if len(parts) in (2, 3):
            hours = int(parts[0])
            minutes = int(parts[1])
            if not 0 <= minutes < 60:
                return None
            return hours * 60 + minutes
    except ValueError:
        return None

    return None
