"""
Data contract between the data-access layer and the availability service.

A snapshot is everything the calculator needs for one request, already
loaded: treatments, stations and their treatment-type rules, working hours,
appointments, station unavailability rows and, for the garden, daycare
bookings and capacity limits. Rows mirror the database tables so an adapter
can pass them through with minimal reshaping.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..domain.clock import WEEKDAY_NAMES


class TreatmentRow(BaseModel):
    """A customer's treatment (the pet being booked) and its classification."""
    id: str
    name: str = ""
    treatment_type_id: Optional[str] = None
    customer_type_id: Optional[str] = None


class StationRow(BaseModel):
    """A grooming station."""
    id: str
    name: str = ""
    is_active: bool = True
    slot_interval_minutes: Optional[int] = None
    base_duration_minutes: Optional[int] = None
    break_between_appointments: int = 0


class StationRuleRow(BaseModel):
    """Whether and how a station offers a treatment type."""
    station_id: Optional[str] = None
    treatment_type_id: Optional[str] = None
    is_active: bool = True
    remote_booking_allowed: bool = True
    requires_staff_approval: bool = False
    duration_modifier_minutes: Optional[int] = None


class AllowedCustomerTypeRow(BaseModel):
    """Restricts a station to the listed customer types."""
    station_id: str
    customer_type_id: str


class HoursRow(BaseModel):
    """
    One opening window on a weekday.

    Rows without ``station_id`` are global business hours.
    """
    weekday: str
    open_time: str
    close_time: str
    station_id: Optional[str] = None

    @field_validator("weekday")
    @classmethod
    def validate_weekday(cls, value: str) -> str:
        """Accept weekday names in any case."""
        weekday = value.strip().lower()
        if weekday not in WEEKDAY_NAMES:
            raise ValueError(f"Unknown weekday: {value}")
        return weekday


class AppointmentRow(BaseModel):
    """An existing booking."""
    id: str
    station_id: Optional[str] = None
    start_at: datetime
    end_at: datetime


class UnavailabilityRow(BaseModel):
    """
    A station constraint.

    ``is_active`` rows are positive (extra availability); inactive rows block
    the station.
    """
    id: str
    station_id: Optional[str] = None
    start_time: datetime
    end_time: datetime
    is_active: bool = False


class DaycareAppointmentRow(BaseModel):
    """
    A garden (daycare) booking.

    ``service_type`` is ``full_day``, ``hourly`` or ``trial``.
    """
    id: str
    start_at: datetime
    end_at: Optional[datetime] = None
    service_type: str = "full_day"


class CapacityLimitRow(BaseModel):
    """Garden limits effective from ``effective_date``; zero means unlimited."""
    id: Optional[str] = None
    effective_date: date
    total_limit: int = 0
    hourly_limit: int = 0
    full_day_limit: int = 0
    trial_limit: int = 0
    regular_limit: int = 0


class AvailabilitySnapshot(BaseModel):
    """All rows needed to compute availability for one request."""
    treatments: List[TreatmentRow] = Field(default_factory=list)
    stations: List[StationRow] = Field(default_factory=list)
    station_rules: List[StationRuleRow] = Field(default_factory=list)
    allowed_customer_types: List[AllowedCustomerTypeRow] = Field(default_factory=list)
    station_hours: List[HoursRow] = Field(default_factory=list)
    business_hours: List[HoursRow] = Field(default_factory=list)
    appointments: List[AppointmentRow] = Field(default_factory=list)
    unavailability: List[UnavailabilityRow] = Field(default_factory=list)
    daycare_appointments: List[DaycareAppointmentRow] = Field(default_factory=list)
    capacity_limits: List[CapacityLimitRow] = Field(default_factory=list)

    def find_treatment(self, treatment_id: str) -> TreatmentRow | None:
        """Find a treatment by id."""
        for treatment in self.treatments:
            if treatment.id == treatment_id:
                return treatment
        return None

    def rules_for_treatment_type(self, treatment_type_id: str) -> List[StationRuleRow]:
        """Station rules that apply to a treatment type, in stored order."""
        return [rule for rule in self.station_rules if rule.treatment_type_id == treatment_type_id]
