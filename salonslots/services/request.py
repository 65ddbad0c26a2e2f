"""
Request boundary for availability lookups.

Validates an incoming ``{treatmentId, serviceType, mode, date, durationMinutes}``
payload and shapes the ``{success, availableDates | availableTimes}`` response
that an HTTP handler would return. Upstream failures are reported with their own
error type and never as an empty result.
"""

import logging
from typing import Any, Dict, Literal, Optional

import pendulum
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..domain.capacity import ServiceType
from ..domain.exceptions import (
    InvalidDurationError,
    SalonSlotsError,
    TreatmentNotFoundError,
    UpstreamUnavailableError,
)
from .availability_service import AvailabilityService

logger = logging.getLogger(__name__)


class AvailabilityRequest(BaseModel):
    """Incoming availability query."""
    model_config = ConfigDict(populate_by_name=True)

    treatment_id: str = Field(alias="treatmentId", min_length=1)
    service_type: ServiceType = Field(default="grooming", alias="serviceType")
    mode: Literal["date", "time"] = "date"
    date: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, alias="durationMinutes")

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: Optional[str]) -> Optional[str]:
        """Dates must be ``YYYY-MM-DD``."""
        if value is None:
            return value
        try:
            pendulum.from_format(value, "YYYY-MM-DD")
        except ValueError as exc:
            raise ValueError(f"date must be formatted YYYY-MM-DD, got {value!r}") from exc
        return value

    @model_validator(mode="after")
    def validate_mode(self) -> "AvailabilityRequest":
        """Time mode needs a date to look at."""
        if self.mode == "time" and not self.date:
            raise ValueError("date is required when mode is 'time'")
        return self


def _error(message: str, error_type: str) -> Dict[str, Any]:
    return {"success": False, "error": message, "errorType": error_type}


async def handle_availability_request(service: AvailabilityService, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Answer one availability query.

    Args:
        service: Configured availability service
        payload: Decoded request body

    Returns:
        Response body; ``success`` is False on any failure
    """
    try:
        request = AvailabilityRequest.model_validate(payload)
    except ValidationError as exc:
        return _error(str(exc), "invalid_request")

    try:
        if request.mode == "time":
            times = await service.find_available_times(
                treatment_id=request.treatment_id,
                date_key=request.date,
                duration_minutes=request.duration_minutes,
                service_type=request.service_type,
            )
            return {"success": True, "availableTimes": [slot.to_dict() for slot in times]}

        dates = await service.find_available_dates(
            treatment_id=request.treatment_id,
            duration_minutes=request.duration_minutes,
            service_type=request.service_type,
        )
        return {"success": True, "availableDates": [day.to_dict() for day in dates]}

    except InvalidDurationError as exc:
        return _error(str(exc), "invalid_duration")
    except TreatmentNotFoundError as exc:
        return _error(str(exc), "not_found")
    except UpstreamUnavailableError as exc:
        logger.error("Upstream data unavailable: %s", exc)
        return _error(str(exc), "upstream_unavailable")
    except SalonSlotsError as exc:
        logger.error("Availability request failed: %s", exc)
        return _error(str(exc), "error")
