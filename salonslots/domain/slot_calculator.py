"""
Core business logic for calculating bookable slots across stations and days.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O). Inputs arrive as
already-loaded collections; appointments and constraints are bucketed by
(date, station) once and then every day/station pair is resolved
independently.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import pendulum

from .capacity import (
    UNLIMITED_GARDEN_SLOTS,
    CapacityLimit,
    CapacityStatus,
    GardenUsage,
    evaluate_garden_capacity,
    service_flags,
)
from .clock import BusinessClock
from .free_time import DailySlotComputation, calculate_slots_for_date
from .intervals import (
    MINUTES_PER_DAY,
    Interval,
    clamp_intervals,
    intersect_interval_lists,
    normalize_intervals,
)
from .models import (
    Appointment,
    AvailableDate,
    AvailableTime,
    Constraint,
    MonthCalculationInput,
    StationSlotConfig,
)

logger = logging.getLogger(__name__)

# (date_key, station_id) -> intervals on that local day
IntervalBuckets = Dict[Tuple[str, str], List[Interval]]


@dataclass
class AvailabilityContext:
    """
    Request-scoped, pre-bucketed input of the calculator.

    ``station_hours`` maps station -> weekday -> intervals. When it is None
    every station simply follows ``business_hours``. ``service_type`` selects
    grooming slots, garden capacity or both; ``garden_usage`` is keyed by
    date.
    """
    stations: List[StationSlotConfig]
    business_hours: Dict[str, List[Interval]]
    start_date: date
    days_ahead: int
    station_hours: Optional[Dict[str, Dict[str, List[Interval]]]] = None
    appointments: IntervalBuckets = field(default_factory=dict)
    positive_constraints: IntervalBuckets = field(default_factory=dict)
    negative_constraints: IntervalBuckets = field(default_factory=dict)
    service_type: str = "grooming"
    garden_usage: Dict[str, GardenUsage] = field(default_factory=dict)
    capacity_limits: List[CapacityLimit] = field(default_factory=list)

    @property
    def is_grooming(self) -> bool:
        return service_flags(self.service_type)[0]

    @property
    def is_garden(self) -> bool:
        return service_flags(self.service_type)[1]


def bucket_appointments(appointments: Iterable[Appointment], clock: BusinessClock) -> IntervalBuckets:
    """
    Group appointments into per-(date, station) minute intervals.

    An appointment that crosses local midnight blocks every day it touches.
    """
    buckets: IntervalBuckets = {}

    for appointment in appointments:
        if not appointment.station_id:
            continue
        for date_key, interval in clock.split_by_day(appointment.start, appointment.end):
            buckets.setdefault((date_key, appointment.station_id), []).append(interval)

    return buckets


def bucket_constraints(
    constraints: Iterable[Constraint],
    clock: BusinessClock,
) -> Tuple[IntervalBuckets, IntervalBuckets]:
    """
    Split constraints per local day and sort them by polarity.

    Returns:
        (positive buckets, negative buckets)
    """
    positive: IntervalBuckets = {}
    negative: IntervalBuckets = {}

    for constraint in constraints:
        if not constraint.station_id:
            continue
        target = positive if constraint.is_positive else negative
        for date_key, interval in clock.split_by_day(constraint.start, constraint.end):
            target.setdefault((date_key, constraint.station_id), []).append(interval)

    return positive, negative


def iter_days(start: date, count: int) -> Iterator[pendulum.Date]:
    """Yield ``count`` consecutive calendar days beginning at ``start``."""
    current = pendulum.date(start.year, start.month, start.day)
    for _ in range(max(0, count)):
        yield current
        current = current.add(days=1)


class AvailabilityCalculator:
    """
    Calculates bookable slots for every station offering a service.

    Algorithm, per calendar day:
    1. Resolve the weekday's global business hours (skip the day if none)
    2. For each station, resolve its base hours and clamp positive
       constraints to the business window
    3. Subtract negative constraints and appointment blocks
    4. Enumerate slots and merge all stations into one AvailableDate
    5. Keep the day only if at least one slot survived

    When the garden is part of the request, days whose garden capacity is
    used up are dropped as well. Garden-only requests skip steps 2-4 and
    report the remaining garden places instead of slots.
    """

    def __init__(self, clock: BusinessClock | None = None):
        self.clock = clock or BusinessClock("UTC")

    def calculate_available_dates(self, context: AvailabilityContext) -> List[AvailableDate]:
        """
        Compute availability for ``[start_date, start_date + days_ahead]``.

        Both ends are inclusive. Days without any slot are left out.
        """
        result: List[AvailableDate] = []

        for day in iter_days(context.start_date, context.days_ahead + 1):
            entry = self._build_date_entry(context, day)
            if entry is not None:
                result.append(entry)

        logger.debug(
            "Computed %d available date(s) from %s over %d day(s) for %d station(s)",
            len(result),
            context.start_date,
            context.days_ahead,
            len(context.stations),
        )
        return result

    def calculate_times_for_date(self, context: AvailabilityContext, date_key: str) -> List[AvailableTime]:
        """Compute the merged, time-ordered slots of a single ``YYYY-MM-DD`` day."""
        day = pendulum.from_format(date_key, "YYYY-MM-DD").date()
        return self._grooming_slots(context, day)

    def garden_status(self, context: AvailabilityContext, date_key: str) -> CapacityStatus:
        """Garden capacity of a day; always open when the garden is not requested."""
        if not context.is_garden:
            return CapacityStatus(available=True)
        return evaluate_garden_capacity(context.garden_usage, context.capacity_limits, date_key)

    def calculate_month(self, month_input: MonthCalculationInput) -> List[AvailableDate]:
        """
        Compute availability for every day of a calendar month.

        Stations without a duration rule do not offer the service and are
        skipped; weekdays without opening hours are omitted from the result.
        """
        context = self.build_month_context(month_input)
        return self.calculate_available_dates(context)

    def build_month_context(self, month_input: MonthCalculationInput) -> AvailabilityContext:
        """Translate month-level input into the shared calculation context."""
        durations = {rule.station_id: rule.duration_minutes for rule in month_input.duration_rules}

        stations = [
            StationSlotConfig(
                station_id=station.id,
                duration_minutes=durations[station.id],
                slot_increment_minutes=month_input.slot_increment_minutes,
            )
            for station in month_input.workstations
            if durations.get(station.id)
        ]

        business_hours = {
            weekday: normalize_intervals([hours.to_interval()])
            for weekday, hours in month_input.operating_hours.items()
        }

        first_day = pendulum.date(month_input.year, month_input.month, 1)
        positive, negative = bucket_constraints(month_input.constraints, self.clock)

        return AvailabilityContext(
            stations=stations,
            business_hours=business_hours,
            start_date=first_day,
            days_ahead=first_day.days_in_month - 1,
            appointments=bucket_appointments(month_input.appointments, self.clock),
            positive_constraints=positive,
            negative_constraints=negative,
        )

    def _build_date_entry(self, context: AvailabilityContext, day: date) -> AvailableDate | None:
        date_key = day.strftime("%Y-%m-%d")
        if not self._business_intervals(context, day):
            return None

        garden = self.garden_status(context, date_key)
        if not garden.available:
            logger.debug("date=%s blocked by garden capacity", date_key)
            return None

        if not context.is_grooming:
            return AvailableDate(
                date=date_key,
                available=True,
                slots=UNLIMITED_GARDEN_SLOTS if garden.remaining is None else garden.remaining,
                station_id="",
            )

        slots = self._calculate_day(context, day)
        if not slots:
            return None

        # Envelope station is the first station (in configured order) that contributed
        contributing = {slot.station_id for slot in slots}
        station_id = next(
            station.station_id for station in context.stations if station.station_id in contributing
        )

        return AvailableDate(
            date=date_key,
            available=True,
            slots=len(slots),
            station_id=station_id,
            available_times=tuple(slots),
        )

    def _grooming_slots(self, context: AvailabilityContext, day: date) -> List[AvailableTime]:
        if not context.is_grooming:
            return []

        date_key = day.strftime("%Y-%m-%d")
        if not self.garden_status(context, date_key).available:
            logger.debug("date=%s blocked by garden capacity", date_key)
            return []

        return self._calculate_day(context, day)

    def _business_intervals(self, context: AvailabilityContext, day: date) -> List[Interval]:
        weekday = self.clock.weekday_name(day)
        intervals = normalize_intervals(context.business_hours.get(weekday, []))
        if not intervals:
            logger.debug("date=%s skipped, no business hours on %s", day.strftime("%Y-%m-%d"), weekday)
        return intervals

    def _calculate_day(self, context: AvailabilityContext, day: date) -> List[AvailableTime]:
        date_key = day.strftime("%Y-%m-%d")
        weekday = self.clock.weekday_name(day)
        business_intervals = self._business_intervals(context, day)

        if not business_intervals:
            return []

        slots: List[AvailableTime] = []

        for station in context.stations:
            key = (date_key, station.station_id)
            computation = DailySlotComputation(
                station=station,
                base_intervals=self._station_base_intervals(context, station.station_id, weekday, business_intervals),
                positive_intervals=clamp_intervals(context.positive_constraints.get(key, []), business_intervals),
                negative_intervals=context.negative_constraints.get(key, []),
                appointment_blocks=self._appointment_blocks(context, station, key),
            )
            slots.extend(calculate_slots_for_date(computation))

        slots.sort(key=lambda slot: (slot.time, slot.station_id))

        logger.debug(
            "date=%s (%s), stations=%d, slots=%d",
            date_key,
            self.clock.timezone,
            len(context.stations),
            len(slots),
        )
        return slots

    @staticmethod
    def _station_base_intervals(
        context: AvailabilityContext,
        station_id: str,
        weekday: str,
        business_intervals: List[Interval],
    ) -> List[Interval]:
        """
        Station hours intersected with the global business window.

        A station with no hours configured for the weekday is closed.
        """
        if context.station_hours is None:
            return business_intervals

        station_intervals = context.station_hours.get(station_id, {}).get(weekday, [])
        if not station_intervals:
            return []

        return intersect_interval_lists(station_intervals, business_intervals)

    @staticmethod
    def _appointment_blocks(
        context: AvailabilityContext,
        station: StationSlotConfig,
        key: Tuple[str, str],
    ) -> List[Interval]:
        """Appointment intervals extended by the station's break, clamped to the day."""
        return [
            Interval(
                start_minute=max(0, block.start_minute),
                end_minute=min(MINUTES_PER_DAY, block.end_minute + station.break_between_appointments),
            )
            for block in context.appointments.get(key, [])
        ]
