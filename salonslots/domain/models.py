"""
Domain models for station configuration, scheduling inputs and slot results.
"""

from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Any, Dict, List, Optional, Tuple

from .intervals import MINUTES_PER_DAY, Interval
from .timefmt import time_to_minutes

DEFAULT_SLOT_INCREMENT = 60


@dataclass(frozen=True)
class StationSlotConfig:
    """
    How one station books a treatment.

    ``break_between_appointments`` is added to the end of every existing
    appointment block by the aggregator; the interval algebra never sees it.
    """
    station_id: str
    duration_minutes: int
    break_between_appointments: int = 0
    slot_increment_minutes: Optional[int] = None
    requires_approval: bool = False

    @property
    def step_minutes(self) -> int:
        """Distance between candidate start times within one free interval."""
        increment = (
            self.slot_increment_minutes
            if self.slot_increment_minutes is not None
            else DEFAULT_SLOT_INCREMENT
        )
        return increment if increment > 0 else self.duration_minutes


@dataclass(frozen=True)
class Appointment:
    """An existing booking on a station, stored as absolute instants."""
    id: str
    station_id: str
    start: datetime
    end: datetime


@dataclass(frozen=True)
class Constraint:
    """
    A time-bound station constraint.

    Positive constraints extend availability, negative ones (staff absence,
    maintenance) remove it.
    """
    id: str
    station_id: str
    start: datetime
    end: datetime
    is_positive: bool = False


@dataclass(frozen=True)
class OpeningHours:
    """Opening and closing wall-clock time for one weekday."""
    open: time
    close: time

    def to_interval(self) -> Interval:
        """
        Return the window as a minute interval.

        A close of 00:00 after the opening time means midnight at the end
        of the day.
        """
        start = time_to_minutes(self.open)
        end = time_to_minutes(self.close)
        if end == 0 and start > 0:
            end = MINUTES_PER_DAY
        return Interval(start, end)


@dataclass(frozen=True)
class Workstation:
    """A physical grooming station."""
    id: str
    name: str = ""


@dataclass(frozen=True)
class DurationRule:
    """How long a treatment takes on a given station."""
    station_id: str
    duration_minutes: int


@dataclass
class MonthCalculationInput:
    """Input of the month-level calculator."""
    year: int
    month: int
    workstations: List[Workstation]
    duration_rules: List[DurationRule]
    operating_hours: Dict[str, OpeningHours]  # keyed by weekday name, "monday".."sunday"
    appointments: List[Appointment] = field(default_factory=list)
    constraints: List[Constraint] = field(default_factory=list)
    slot_increment_minutes: int = DEFAULT_SLOT_INCREMENT


@dataclass(frozen=True)
class AvailableTime:
    """One bookable slot."""
    time: str
    duration: int
    station_id: str
    requires_staff_approval: bool = False
    available: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Render the slot in the camelCase shape returned to API callers."""
        return {
            "time": self.time,
            "available": self.available,
            "duration": self.duration,
            "stationId": self.station_id,
            "requiresStaffApproval": self.requires_staff_approval,
        }


@dataclass(frozen=True)
class AvailableDate:
    """
    One calendar day's merged availability across all stations.

    ``station_id`` names one contributing station only; read the per-slot
    ``station_id`` to know where each slot lives. Days offered for garden
    only carry no times and an empty ``station_id``.
    """
    date: str
    available: bool
    slots: int
    station_id: str
    available_times: Tuple[AvailableTime, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "available_times", tuple(self.available_times))

    def to_dict(self) -> Dict[str, Any]:
        """Render the day in the camelCase shape returned to API callers."""
        return {
            "date": self.date,
            "available": self.available,
            "slots": self.slots,
            "stationId": self.station_id,
            "availableTimes": [slot.to_dict() for slot in self.available_times],
        }
