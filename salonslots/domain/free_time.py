"""
Daily free-time resolution for a single station.
"""

from dataclasses import dataclass, field
from typing import Iterable, List

from .intervals import (
    Interval,
    add_positive_intervals,
    normalize_intervals,
    subtract_interval_list,
)
from .models import AvailableTime, StationSlotConfig
from .slot_generator import generate_slots
from .timefmt import format_minutes_to_time


@dataclass
class DailySlotComputation:
    """Everything needed to compute one station's slots on one day."""
    station: StationSlotConfig
    base_intervals: List[Interval]
    positive_intervals: List[Interval] = field(default_factory=list)
    negative_intervals: List[Interval] = field(default_factory=list)
    appointment_blocks: List[Interval] = field(default_factory=list)


def compute_free_intervals(
    base_intervals: Iterable[Interval],
    positive_intervals: Iterable[Interval] = (),
    negative_intervals: Iterable[Interval] = (),
    appointment_blocks: Iterable[Interval] = (),
) -> List[Interval]:
    """
    Combine working hours and constraints into the free intervals of a day.

    Order matters:
    1. Positive constraints are unioned into the base working window
    2. Negative constraints are removed
    3. Appointment blocks are removed last

    Negatives and appointments therefore always win over positive windows.
    """
    working = add_positive_intervals(base_intervals, positive_intervals)
    working = subtract_interval_list(working, negative_intervals)
    working = subtract_interval_list(working, appointment_blocks)
    return normalize_intervals(working)


def calculate_slots_for_date(computation: DailySlotComputation) -> List[AvailableTime]:
    """Resolve free time for one station-day and turn it into tagged slots."""
    free_intervals = compute_free_intervals(
        computation.base_intervals,
        computation.positive_intervals,
        computation.negative_intervals,
        computation.appointment_blocks,
    )
    station = computation.station

    return [
        AvailableTime(
            time=format_minutes_to_time(minute),
            duration=station.duration_minutes,
            station_id=station.station_id,
            requires_staff_approval=station.requires_approval,
        )
        for minute in generate_slots(free_intervals, station)
    ]
