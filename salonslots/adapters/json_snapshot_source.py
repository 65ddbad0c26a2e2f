"""
Snapshot source backed by a local JSON export.
"""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import pendulum
from pendulum import DateTime
from pydantic import ValidationError

from ..domain.exceptions import UpstreamUnavailableError
from ..services.snapshot import AvailabilitySnapshot

logger = logging.getLogger(__name__)


def _overlaps(start: datetime, end: datetime, window_start: DateTime, window_end: DateTime) -> bool:
    return pendulum.instance(start, tz="UTC") < window_end and pendulum.instance(end, tz="UTC") > window_start


class JsonSnapshotSource:
    """
    Loads scheduling rows from a JSON file.

    The file holds the snapshot tables at the top level plus an optional
    ``calendar_settings`` object with ``open_days_ahead``. It is re-read on
    every call so edits show up without restarting. Appointments,
    unavailability rows and daycare bookings outside the requested window
    are dropped.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    async def get_open_days_ahead(self) -> Optional[int]:
        """Read the booking window from ``calendar_settings``."""
        data = await asyncio.to_thread(self._read_file)
        settings = data.get("calendar_settings") or {}
        value = settings.get("open_days_ahead")

        if value is None:
            return None
        try:
            return max(0, round(float(value)))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid open_days_ahead value %r in %s", value, self.path)
            return None

    async def load_snapshot(
        self,
        treatment_id: str,
        start_time: DateTime,
        end_time: DateTime,
    ) -> AvailabilitySnapshot:
        """
        Load the snapshot rows relevant to a window.

        Args:
            treatment_id: Treatment being booked (all treatments are kept)
            start_time: Start of the time window
            end_time: End of the time window

        Returns:
            Parsed snapshot

        Raises:
            UpstreamUnavailableError: If the file is missing, unreadable or malformed
        """
        data = await asyncio.to_thread(self._read_file)
        data.pop("calendar_settings", None)

        try:
            snapshot = AvailabilitySnapshot.model_validate(data)
        except ValidationError as exc:
            raise UpstreamUnavailableError(f"Invalid snapshot data in {self.path}: {exc}") from exc

        snapshot.appointments = [
            row for row in snapshot.appointments
            if _overlaps(row.start_at, row.end_at, start_time, end_time)
        ]
        snapshot.unavailability = [
            row for row in snapshot.unavailability
            if _overlaps(row.start_time, row.end_time, start_time, end_time)
        ]
        snapshot.daycare_appointments = [
            row for row in snapshot.daycare_appointments
            if start_time <= pendulum.instance(row.start_at, tz="UTC") <= end_time
        ]

        logger.debug(
            "Loaded snapshot for treatment=%s from %s: %d appointment(s), %d constraint row(s)",
            treatment_id,
            self.path,
            len(snapshot.appointments),
            len(snapshot.unavailability),
        )
        return snapshot

    def _read_file(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as exc:
            raise UpstreamUnavailableError(f"Could not read snapshot file {self.path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise UpstreamUnavailableError(f"Invalid JSON in snapshot file {self.path}: {exc}") from exc

        if not isinstance(data, dict):
            raise UpstreamUnavailableError(f"Snapshot file {self.path} must contain a JSON object")

        return data
