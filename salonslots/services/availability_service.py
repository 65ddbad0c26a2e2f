"""
Application service for computing bookable slots for a treatment.

The service fetches a snapshot through a data-source adapter, resolves which
stations offer the treatment and how, buckets the rows into an
``AvailabilityContext`` and delegates the actual calculation to the
domain-level ``AvailabilityCalculator``. The calendar dependency is a simple
protocol so tests can plug in stubs.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Hashable, Iterable, List, Optional, Protocol

import pendulum
from pendulum import DateTime

from ..config import CalculatorDefaults
from ..domain.capacity import CapacityLimit, GardenUsage, ServiceType, service_flags
from ..domain.exceptions import TreatmentNotFoundError
from ..domain.intervals import Interval, normalize_intervals
from ..domain.models import Appointment, AvailableDate, AvailableTime, Constraint, StationSlotConfig
from ..domain.slot_calculator import (
    AvailabilityCalculator,
    AvailabilityContext,
    bucket_appointments,
    bucket_constraints,
)
from ..domain.timefmt import parse_time_to_minutes
from .snapshot import AvailabilitySnapshot, DaycareAppointmentRow, HoursRow, TreatmentRow
from .snapshot_cache import SnapshotCache

logger = logging.getLogger(__name__)


class SnapshotSourceProtocol(Protocol):
    """Protocol describing the data-access behaviour needed by the service."""

    async def get_open_days_ahead(self) -> Optional[int]:
        """Return the configured booking window in days, if any."""

    async def load_snapshot(
        self,
        treatment_id: str,
        start_time: DateTime,
        end_time: DateTime,
    ) -> AvailabilitySnapshot:
        """Return every row needed to compute availability in the window."""


class AvailabilityService:
    """
    Orchestrates snapshot retrieval, station resolution and slot calculation.

    Results are memoised in the optional ``cache``; the calculator itself
    stays cache-unaware.
    """

    def __init__(
        self,
        snapshot_source: SnapshotSourceProtocol,
        calculator: AvailabilityCalculator,
        defaults: CalculatorDefaults | None = None,
        cache: SnapshotCache | None = None,
    ) -> None:
        self._snapshot_source = snapshot_source
        self._calculator = calculator
        self._defaults = defaults or CalculatorDefaults()
        self._cache = cache

    @property
    def clock(self):
        """Business clock shared with the calculator."""
        return self._calculator.clock

    async def find_available_dates(
        self,
        *,
        treatment_id: str,
        start_date: date | None = None,
        days_ahead: int | None = None,
        duration_minutes: int | None = None,
        service_type: ServiceType = "grooming",
    ) -> List[AvailableDate]:
        """
        Compute the bookable days of the calendar window.

        Args:
            treatment_id: Treatment being booked
            start_date: First day of the window (defaults to the business "today")
            days_ahead: Window length; defaults to the calendar setting
            duration_minutes: Optional requested length overriding station durations
            service_type: ``grooming``, ``garden`` or ``both``

        Returns:
            Bookable days in calendar order
        """
        service_flags(service_type)
        if duration_minutes is not None:
            self._defaults.validate_requested_duration(duration_minutes)

        window_start = self._resolve_start_date(start_date)
        window_days = await self._resolve_days_ahead(days_ahead)

        cache_key = ("dates", treatment_id, service_type, window_start.isoformat(), window_days, duration_minutes)
        cached = self._cache_get(cache_key)
        if cached is not None:
            return cached

        context = await self._load_context(
            treatment_id=treatment_id,
            start_date=window_start,
            days_ahead=window_days,
            duration_minutes=duration_minutes,
            service_type=service_type,
        )
        if context is None:
            return []

        result = self._calculator.calculate_available_dates(context)
        logger.info(
            "treatment=%s service=%s window=%s+%dd -> %d available date(s)",
            treatment_id,
            service_type,
            window_start,
            window_days,
            len(result),
        )

        self._cache_set(cache_key, result)
        return result

    async def find_available_times(
        self,
        *,
        treatment_id: str,
        date_key: str,
        start_date: date | None = None,
        days_ahead: int | None = None,
        duration_minutes: int | None = None,
        service_type: ServiceType = "grooming",
    ) -> List[AvailableTime]:
        """
        Compute the slots of one day inside the calendar window.

        Days outside ``[start_date, start_date + days_ahead]`` have no slots,
        and neither do garden-only requests or days whose garden capacity is
        used up when ``service_type`` is ``both``.
        """
        service_flags(service_type)
        if duration_minutes is not None:
            self._defaults.validate_requested_duration(duration_minutes)

        target = pendulum.from_format(date_key, "YYYY-MM-DD").date()
        window_start = self._resolve_start_date(start_date)
        window_days = await self._resolve_days_ahead(days_ahead)

        if not window_start <= target <= window_start.add(days=window_days):
            logger.info("date=%s is outside the booking window %s+%dd", date_key, window_start, window_days)
            return []

        cache_key = ("times", treatment_id, service_type, date_key, duration_minutes)
        cached = self._cache_get(cache_key)
        if cached is not None:
            return cached

        context = await self._load_context(
            treatment_id=treatment_id,
            start_date=target,
            days_ahead=0,
            duration_minutes=duration_minutes,
            service_type=service_type,
        )
        if context is None:
            return []

        result = self._calculator.calculate_times_for_date(context, date_key)
        self._cache_set(cache_key, result)
        return result

    async def fetch_snapshot(
        self,
        *,
        treatment_id: str,
        start_date: date,
        days_ahead: int,
    ) -> AvailabilitySnapshot:
        """Fetch the rows covering every local day of the window."""
        tz = self.clock.timezone
        window_start = pendulum.datetime(start_date.year, start_date.month, start_date.day, tz=tz)
        window_end = window_start.add(days=days_ahead).end_of("day")

        return await self._snapshot_source.load_snapshot(
            treatment_id=treatment_id,
            start_time=window_start,
            end_time=window_end,
        )

    def build_context(
        self,
        snapshot: AvailabilitySnapshot,
        treatment: TreatmentRow,
        start_date: date,
        days_ahead: int,
        duration_minutes: int | None = None,
        service_type: ServiceType = "grooming",
    ) -> AvailabilityContext:
        """Turn raw snapshot rows into the calculator's bucketed context."""
        is_grooming, is_garden = service_flags(service_type)
        stations = self.resolve_station_profiles(snapshot, treatment, duration_minutes) if is_grooming else []

        station_hours: Dict[str, Dict[str, List[Interval]]] = {}
        for row in snapshot.station_hours:
            if not row.station_id:
                continue
            weekdays = station_hours.setdefault(row.station_id, {})
            weekdays.setdefault(row.weekday, []).append(self._row_interval(row))

        for weekdays in station_hours.values():
            for weekday, intervals in weekdays.items():
                weekdays[weekday] = normalize_intervals(intervals)

        business_hours = self.hours_by_weekday(snapshot.business_hours)
        if not business_hours:
            logger.warning("No global business hours in snapshot, every day will be closed")

        clock = self.clock
        appointments = [
            Appointment(id=row.id, station_id=row.station_id, start=row.start_at, end=row.end_at)
            for row in snapshot.appointments
            if row.station_id
        ]
        constraints = [
            Constraint(
                id=row.id,
                station_id=row.station_id,
                start=row.start_time,
                end=row.end_time,
                is_positive=row.is_active,
            )
            for row in snapshot.unavailability
            if row.station_id
        ]
        positive, negative = bucket_constraints(constraints, clock)

        garden_usage: Dict[str, GardenUsage] = {}
        capacity_limits: List[CapacityLimit] = []
        if is_garden:
            garden_usage = self.garden_usage_by_date(snapshot.daycare_appointments)
            capacity_limits = [
                CapacityLimit(
                    effective_date=row.effective_date.isoformat(),
                    total_limit=row.total_limit,
                    hourly_limit=row.hourly_limit,
                    full_day_limit=row.full_day_limit,
                    trial_limit=row.trial_limit,
                    regular_limit=row.regular_limit,
                )
                for row in snapshot.capacity_limits
            ]

        logger.info(
            "Context for treatment=%s service=%s: stations=%d, appointments=%d, constraints=%d, "
            "garden dates=%d, capacity limits=%d, business weekdays=%s",
            treatment.id,
            service_type,
            len(stations),
            len(appointments),
            len(constraints),
            len(garden_usage),
            len(capacity_limits),
            ",".join(business_hours) or "-",
        )

        return AvailabilityContext(
            stations=stations,
            business_hours=business_hours,
            start_date=start_date,
            days_ahead=days_ahead,
            station_hours=station_hours,
            appointments=bucket_appointments(appointments, clock),
            positive_constraints=positive,
            negative_constraints=negative,
            service_type=service_type,
            garden_usage=garden_usage,
            capacity_limits=capacity_limits,
        )

    def resolve_station_profiles(
        self,
        snapshot: AvailabilitySnapshot,
        treatment: TreatmentRow,
        duration_minutes: int | None = None,
    ) -> List[StationSlotConfig]:
        """
        Decide which stations offer the treatment and how they book it.

        A station is used once (first matching rule wins) and only if the
        rule and station are active, remote booking is allowed and, when the
        station is restricted to customer types, the treatment's type is one
        of them. Duration falls back from the rule override to the station's
        base duration to the configured default.
        """
        if not treatment.treatment_type_id:
            return []

        stations = {station.id: station for station in snapshot.stations}

        allowed_types: Dict[str, set] = {}
        for row in snapshot.allowed_customer_types:
            allowed_types.setdefault(row.station_id, set()).add(row.customer_type_id)

        profiles: List[StationSlotConfig] = []
        used: set = set()

        for rule in snapshot.rules_for_treatment_type(treatment.treatment_type_id):
            if not rule.station_id or rule.station_id in used:
                continue
            if not rule.is_active or not rule.remote_booking_allowed:
                continue

            station = stations.get(rule.station_id)
            if station is None or not station.is_active:
                continue

            allowed = allowed_types.get(station.id)
            if allowed and treatment.customer_type_id not in allowed:
                logger.debug("Station %s restricted to customer types %s, skipping", station.id, sorted(allowed))
                continue

            duration = self._resolve_duration(rule.duration_modifier_minutes, station.base_duration_minutes)
            if duration_minutes is not None:
                duration = duration_minutes

            profiles.append(
                StationSlotConfig(
                    station_id=station.id,
                    duration_minutes=duration,
                    break_between_appointments=max(0, station.break_between_appointments),
                    slot_increment_minutes=(
                        station.slot_interval_minutes
                        if station.slot_interval_minutes is not None
                        else self._defaults.slot_increment_minutes
                    ),
                    requires_approval=rule.requires_staff_approval,
                )
            )
            used.add(station.id)

        if profiles:
            logger.debug(
                "Slot intervals by station: %s",
                ", ".join(f"{p.station_id}:{p.step_minutes}m" for p in profiles),
            )

        return profiles

    def garden_usage_by_date(self, rows: Iterable[DaycareAppointmentRow]) -> Dict[str, GardenUsage]:
        """Count daycare bookings per business-local start date."""
        usage: Dict[str, GardenUsage] = {}
        for row in rows:
            date_key = self.clock.date_key(row.start_at)
            usage.setdefault(date_key, GardenUsage()).record(row.service_type)
        return usage

    @classmethod
    def hours_by_weekday(cls, rows: Iterable[HoursRow]) -> Dict[str, List[Interval]]:
        """Group hours rows by weekday, dropping weekdays with no real window."""
        grouped: Dict[str, List[Interval]] = {}
        for row in rows:
            grouped.setdefault(row.weekday, []).append(cls._row_interval(row))

        result: Dict[str, List[Interval]] = {}
        for weekday, intervals in grouped.items():
            normalized = normalize_intervals(intervals)
            if normalized:
                result[weekday] = normalized
        return result

    async def _load_context(
        self,
        *,
        treatment_id: str,
        start_date: date,
        days_ahead: int,
        duration_minutes: int | None,
        service_type: ServiceType,
    ) -> AvailabilityContext | None:
        snapshot = await self.fetch_snapshot(
            treatment_id=treatment_id,
            start_date=start_date,
            days_ahead=days_ahead,
        )

        treatment = snapshot.find_treatment(treatment_id)
        if treatment is None:
            raise TreatmentNotFoundError(f"Treatment with ID {treatment_id} not found")

        if not treatment.treatment_type_id and service_type != "garden":
            logger.warning("Treatment %s has no treatment type, no grooming availability can be computed", treatment_id)
            return None

        return self.build_context(snapshot, treatment, start_date, days_ahead, duration_minutes, service_type)

    def _resolve_duration(self, rule_duration: int | None, base_duration: int | None) -> int:
        duration = base_duration or self._defaults.default_duration_minutes
        if rule_duration and rule_duration > 0:
            duration = rule_duration
        if duration <= 0:
            duration = self._defaults.default_duration_minutes
        return duration

    def _resolve_start_date(self, start_date: date | None) -> pendulum.Date:
        if start_date is not None:
            return pendulum.date(start_date.year, start_date.month, start_date.day)
        today = self.clock.today()
        return today if self._defaults.include_today else today.add(days=1)

    async def _resolve_days_ahead(self, days_ahead: int | None) -> int:
        if days_ahead is None:
            days_ahead = await self._snapshot_source.get_open_days_ahead()
        if days_ahead is None:
            days_ahead = self._defaults.open_days_ahead
        return max(0, round(days_ahead))

    @staticmethod
    def _row_interval(row: HoursRow) -> Interval:
        return Interval(parse_time_to_minutes(row.open_time), parse_time_to_minutes(row.close_time))

    def _cache_get(self, key: Hashable) -> list | None:
        if self._cache is None:
            return None
        cached = self._cache.get(key)
        if cached is None:
            return None
        logger.debug("Cache hit for %s", key)
        # Entries are frozen; every caller gets its own list
        return list(cached)

    def _cache_set(self, key: Hashable, value: list) -> None:
        if self._cache is not None:
            self._cache.set(key, tuple(value))
