"""
Half-open minute interval algebra.

Every interval is ``[start_minute, end_minute)`` measured in minutes since
midnight in the business timezone. The operations here never raise: intervals
with ``end_minute <= start_minute`` are silently dropped during normalization,
so malformed input degrades to "no availability" instead of an error.
"""

from dataclasses import dataclass
from typing import Iterable, List

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class Interval:
    """
    Immutable half-open range of minutes-since-midnight.

    Unlike a ``TimeRange`` this does not validate on construction; empty or
    inverted intervals are legal values that normalization discards.
    """
    start_minute: int
    end_minute: int

    @property
    def length(self) -> int:
        """Return the length in minutes (zero for empty intervals)."""
        return max(0, self.end_minute - self.start_minute)

    def is_empty(self) -> bool:
        """Check whether the interval covers no minutes."""
        return self.end_minute <= self.start_minute

    def overlaps(self, other: "Interval") -> bool:
        """Check if this interval shares at least one minute with another."""
        return self.start_minute < other.end_minute and self.end_minute > other.start_minute

    def __str__(self) -> str:
        return f"[{self.start_minute}, {self.end_minute})"


def normalize_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """
    Sort, drop empty intervals and merge touching or overlapping ones.

    Example: [10:00-11:00, 09:00-10:00, 12:00-12:00] -> [09:00-11:00]
    """
    ordered = sorted(
        (interval for interval in intervals if not interval.is_empty()),
        key=lambda interval: (interval.start_minute, interval.end_minute),
    )
    if not ordered:
        return []

    merged: List[Interval] = [ordered[0]]

    for current in ordered[1:]:
        last = merged[-1]

        if current.start_minute <= last.end_minute:
            merged[-1] = Interval(
                start_minute=last.start_minute,
                end_minute=max(last.end_minute, current.end_minute),
            )
        else:
            merged.append(current)

    return merged


def intersect_interval_lists(a: Iterable[Interval], b: Iterable[Interval]) -> List[Interval]:
    """
    Calculate the intersection of two interval lists.

    Two-pointer sweep over both normalized lists; whichever current interval
    ends first is advanced.
    """
    left = normalize_intervals(a)
    right = normalize_intervals(b)
    result: List[Interval] = []
    i = 0
    j = 0

    while i < len(left) and j < len(right):
        current_a = left[i]
        current_b = right[j]

        start = max(current_a.start_minute, current_b.start_minute)
        end = min(current_a.end_minute, current_b.end_minute)

        if start < end:
            result.append(Interval(start_minute=start, end_minute=end))

        if current_a.end_minute < current_b.end_minute:
            i += 1
        else:
            j += 1

    return result


def subtract_interval(source: Iterable[Interval], block: Interval) -> List[Interval]:
    """
    Remove a single block from every interval in ``source``.

    Each source interval yields zero, one (left or right remainder) or two
    remainders. The result is renormalized.
    """
    result: List[Interval] = []

    for interval in source:
        if block.end_minute <= interval.start_minute or block.start_minute >= interval.end_minute:
            result.append(interval)
            continue

        if block.start_minute > interval.start_minute:
            result.append(
                Interval(
                    start_minute=interval.start_minute,
                    end_minute=min(block.start_minute, interval.end_minute),
                )
            )

        if block.end_minute < interval.end_minute:
            result.append(
                Interval(
                    start_minute=max(block.end_minute, interval.start_minute),
                    end_minute=interval.end_minute,
                )
            )

    return normalize_intervals(result)


def subtract_interval_list(source: Iterable[Interval], blocks: Iterable[Interval]) -> List[Interval]:
    """Subtract every block in turn, stopping early once nothing is left."""
    current = normalize_intervals(source)

    for block in normalize_intervals(blocks):
        current = subtract_interval(current, block)
        if not current:
            break

    return current


def add_positive_intervals(source: Iterable[Interval], additions: Iterable[Interval]) -> List[Interval]:
    """Union additional availability into ``source``."""
    return normalize_intervals([*source, *additions])


def clamp_intervals(intervals: Iterable[Interval], bounds: Iterable[Interval]) -> List[Interval]:
    """
    Restrict intervals to the given bounds.

    Empty bounds mean nothing is allowed, so the result is empty as well.
    """
    bounds = list(bounds)
    if not bounds:
        return []
    return intersect_interval_lists(intervals, bounds)
