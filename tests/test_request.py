"""
Tests for the request boundary.
"""

import asyncio

import pytest
from pydantic import ValidationError

from salonslots.domain.exceptions import UpstreamUnavailableError
from salonslots.services.request import AvailabilityRequest, handle_availability_request


class FakeService:
    """Records the calls it receives and answers with canned results."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    async def find_available_dates(self, **kwargs):
        self.calls.append(("dates", kwargs))
        if self.error:
            raise self.error
        return []

    async def find_available_times(self, **kwargs):
        self.calls.append(("times", kwargs))
        if self.error:
            raise self.error
        return []


class TestAvailabilityRequest:
    """Tests for AvailabilityRequest validation."""

    def test_camel_case_payload(self):
        """API field names are accepted."""
        request = AvailabilityRequest.model_validate(
            {"treatmentId": "tr-1", "mode": "time", "date": "2025-08-21", "durationMinutes": 90}
        )

        assert request.treatment_id == "tr-1"
        assert request.duration_minutes == 90
        assert request.service_type == "grooming"

    def test_service_type_alias(self):
        """serviceType selects garden or combined bookings."""
        request = AvailabilityRequest.model_validate({"treatmentId": "tr-1", "serviceType": "both"})

        assert request.service_type == "both"

    def test_unknown_service_type(self):
        """Only grooming, garden and both exist."""
        with pytest.raises(ValidationError):
            AvailabilityRequest.model_validate({"treatmentId": "tr-1", "serviceType": "spa"})

    def test_snake_case_payload(self):
        """Python field names work too."""
        request = AvailabilityRequest(treatment_id="tr-1")

        assert request.mode == "date"
        assert request.date is None

    def test_time_mode_requires_date(self):
        """Times can only be computed for a specific day."""
        with pytest.raises(ValidationError, match="date is required"):
            AvailabilityRequest.model_validate({"treatmentId": "tr-1", "mode": "time"})

    def test_bad_date_format(self):
        """Dates must be ISO calendar dates."""
        with pytest.raises(ValidationError, match="YYYY-MM-DD"):
            AvailabilityRequest.model_validate({"treatmentId": "tr-1", "date": "21.08.2025"})

    def test_unknown_mode(self):
        """Only date and time modes exist."""
        with pytest.raises(ValidationError):
            AvailabilityRequest.model_validate({"treatmentId": "tr-1", "mode": "week"})


class TestHandleAvailabilityRequest:
    """Tests for handle_availability_request."""

    def test_date_mode(self):
        """Date mode answers with availableDates."""
        service = FakeService()

        response = asyncio.run(handle_availability_request(service, {"treatmentId": "tr-1"}))

        assert response == {"success": True, "availableDates": []}
        assert service.calls == [
            ("dates", {"treatment_id": "tr-1", "duration_minutes": None, "service_type": "grooming"})
        ]

    def test_time_mode(self):
        """Time mode answers with availableTimes."""
        service = FakeService()

        response = asyncio.run(
            handle_availability_request(
                service, {"treatmentId": "tr-1", "mode": "time", "date": "2025-08-21", "durationMinutes": 30}
            )
        )

        assert response == {"success": True, "availableTimes": []}
        assert service.calls[0][1]["date_key"] == "2025-08-21"

    def test_service_type_is_passed_on(self):
        """The selected service reaches the service layer."""
        service = FakeService()

        asyncio.run(handle_availability_request(service, {"treatmentId": "tr-1", "serviceType": "garden"}))

        assert service.calls[0][1]["service_type"] == "garden"

    def test_invalid_payload(self):
        """Validation problems become invalid_request."""
        response = asyncio.run(handle_availability_request(FakeService(), {"mode": "date"}))

        assert response["success"] is False
        assert response["errorType"] == "invalid_request"

    def test_upstream_failure_is_not_empty_result(self):
        """Upstream errors are reported as such."""
        service = FakeService(error=UpstreamUnavailableError("timeout"))

        response = asyncio.run(handle_availability_request(service, {"treatmentId": "tr-1"}))

        assert response == {"success": False, "error": "timeout", "errorType": "upstream_unavailable"}
