"""
Slot start enumeration over free intervals.
"""

from typing import Iterable, List

from .intervals import Interval, normalize_intervals
from .models import StationSlotConfig


def generate_slots(intervals: Iterable[Interval], config: StationSlotConfig) -> List[int]:
    """
    Enumerate slot start minutes that fit entirely inside the free intervals.

    Slots are anchored to each interval's own start and step by the station's
    increment, so a window opening at 09:30 yields 09:30, 10:30, ... and never
    snaps to a round hour. The last start is ``interval.end - duration``.

    Args:
        intervals: Free intervals (normalized here if they are not already)
        config: Station duration and increment settings

    Returns:
        Ascending list of start minutes
    """
    duration = config.duration_minutes
    step = config.step_minutes
    if duration <= 0 or step <= 0:
        return []

    slots: List[int] = []

    for interval in normalize_intervals(intervals):
        latest_start = interval.end_minute - duration
        if latest_start < interval.start_minute:
            continue

        start = interval.start_minute
        while start <= latest_start:
            slots.append(start)
            start += step

    return slots
