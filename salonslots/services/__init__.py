"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_service import AvailabilityService, SnapshotSourceProtocol
from .request import AvailabilityRequest, handle_availability_request
from .snapshot import AvailabilitySnapshot
from .snapshot_cache import SnapshotCache

__all__ = [
    "AvailabilityRequest",
    "AvailabilityService",
    "AvailabilitySnapshot",
    "SnapshotCache",
    "SnapshotSourceProtocol",
    "handle_availability_request",
]
