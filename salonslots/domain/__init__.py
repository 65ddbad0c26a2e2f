"""
Domain layer - Pure business logic without I/O.
"""

from .capacity import CapacityLimit, GardenUsage, evaluate_garden_capacity, resolve_capacity_for_date
from .clock import BusinessClock
from .intervals import Interval
from .models import (
    Appointment,
    AvailableDate,
    AvailableTime,
    Constraint,
    DurationRule,
    MonthCalculationInput,
    OpeningHours,
    StationSlotConfig,
    Workstation,
)
from .slot_calculator import AvailabilityCalculator, AvailabilityContext

__all__ = [
    "Appointment",
    "AvailabilityCalculator",
    "AvailabilityContext",
    "AvailableDate",
    "AvailableTime",
    "BusinessClock",
    "CapacityLimit",
    "Constraint",
    "DurationRule",
    "GardenUsage",
    "Interval",
    "MonthCalculationInput",
    "OpeningHours",
    "StationSlotConfig",
    "Workstation",
    "evaluate_garden_capacity",
    "resolve_capacity_for_date",
]
