"""
Domain-specific exception hierarchy for the salon availability calculator.
"""


class SalonSlotsError(Exception):
    """Base class for all application-level errors."""


class UpstreamUnavailableError(SalonSlotsError):
    """Raised when scheduling data cannot be fetched or parsed from its source."""


class TreatmentNotFoundError(SalonSlotsError):
    """Raised when availability is requested for an unknown treatment."""


class InvalidDurationError(SalonSlotsError, ValueError):
    """Raised when a requested duration does not fit the configured granularity."""
