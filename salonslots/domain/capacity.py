"""
Daycare garden capacity.

The garden is not booked on stations. A day is open for garden visits as
long as the daycare bookings already on it stay below the capacity limits
that were in effect on that date. A limit of zero means "no limit".
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Literal, Optional, Tuple

ServiceType = Literal["grooming", "garden", "both"]
SERVICE_TYPES: Tuple[str, ...] = ("grooming", "garden", "both")

# Slot count reported for garden-only days without any active limit
UNLIMITED_GARDEN_SLOTS = 99


def service_flags(service_type: str) -> Tuple[bool, bool]:
    """
    Split a service selection into its parts.

    Returns:
        (includes grooming, includes garden)
    """
    if service_type not in SERVICE_TYPES:
        raise ValueError(f"Invalid service type {service_type!r}, must be one of: {', '.join(SERVICE_TYPES)}")
    return service_type in ("grooming", "both"), service_type in ("garden", "both")


@dataclass(frozen=True)
class CapacityLimit:
    """Garden limits effective from ``effective_date`` (``YYYY-MM-DD``) onwards."""
    effective_date: str
    total_limit: int = 0
    hourly_limit: int = 0
    full_day_limit: int = 0
    trial_limit: int = 0
    regular_limit: int = 0


@dataclass
class GardenUsage:
    """Daycare bookings already on one day, by kind."""
    total: int = 0
    full_day: int = 0
    hourly: int = 0
    trial: int = 0
    regular: int = 0

    def record(self, service_type: str) -> None:
        """Count one booking. Anything that is not hourly takes a full day."""
        self.total += 1
        if service_type == "hourly":
            self.hourly += 1
            return
        self.full_day += 1
        if service_type == "trial":
            self.trial += 1
        else:
            self.regular += 1


@dataclass(frozen=True)
class CapacityStatus:
    """
    Outcome of a capacity check.

    ``remaining`` is None when no limit applies.
    """
    available: bool
    remaining: Optional[int] = None


def resolve_capacity_for_date(limits: Iterable[CapacityLimit], date_key: str) -> CapacityLimit | None:
    """Return the most recent limit effective on ``date_key``, if any."""
    effective = None
    for limit in sorted(limits, key=lambda item: item.effective_date):
        if limit.effective_date > date_key:
            break
        effective = limit
    return effective


def evaluate_garden_capacity(
    usage_by_date: Dict[str, GardenUsage],
    limits: List[CapacityLimit],
    date_key: str,
) -> CapacityStatus:
    """
    Check whether the garden still takes bookings on ``date_key``.

    The total, full-day and regular limits are checked; the tightest one
    decides. Hourly and trial limits are stored but do not gate the day.
    """
    limit = resolve_capacity_for_date(limits, date_key)
    if limit is None:
        return CapacityStatus(available=True)

    usage = usage_by_date.get(date_key) or GardenUsage()
    remaining = [
        cap - used
        for cap, used in (
            (limit.total_limit, usage.total),
            (limit.full_day_limit, usage.full_day),
            (limit.regular_limit, usage.regular),
        )
        if cap > 0
    ]
    if not remaining:
        return CapacityStatus(available=True)

    tightest = min(remaining)
    return CapacityStatus(available=tightest > 0, remaining=max(0, tightest))
