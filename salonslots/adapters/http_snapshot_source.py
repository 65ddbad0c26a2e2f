"""
Snapshot source that fetches scheduling rows over HTTP.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import requests
from pendulum import DateTime
from pydantic import ValidationError

from ..domain.exceptions import UpstreamUnavailableError
from ..services.snapshot import AvailabilitySnapshot

logger = logging.getLogger(__name__)


class HttpSnapshotSource:
    """
    Client for a snapshot endpoint in front of the scheduling database.

    Uses ``GET {base_url}/calendar-settings`` for the booking window and
    ``GET {base_url}/availability-snapshot`` for the rows of a window.
    """

    def __init__(self, base_url: str, api_key: str | None = None, timeout: float = 30.0):
        """
        Initialize the client.

        Args:
            base_url: Endpoint root, without trailing slash
            api_key: Optional bearer token
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Accept": "application/json"}
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"

    async def get_open_days_ahead(self) -> Optional[int]:
        """Fetch the booking window; a missing setting yields None."""
        data = await asyncio.to_thread(self._get, "calendar-settings", {})
        value = data.get("open_days_ahead")

        if value is None:
            return None
        try:
            return max(0, round(float(value)))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid open_days_ahead value %r from %s", value, self.base_url)
            return None

    async def load_snapshot(
        self,
        treatment_id: str,
        start_time: DateTime,
        end_time: DateTime,
    ) -> AvailabilitySnapshot:
        """
        Fetch the snapshot of a window.

        Raises:
            UpstreamUnavailableError: If the request fails or the payload is invalid
        """
        params = {
            "treatmentId": treatment_id,
            "start": start_time.to_iso8601_string(),
            "end": end_time.to_iso8601_string(),
        }
        data = await asyncio.to_thread(self._get, "availability-snapshot", params)

        try:
            return AvailabilitySnapshot.model_validate(data)
        except ValidationError as exc:
            raise UpstreamUnavailableError(f"Invalid snapshot payload from {self.base_url}: {exc}") from exc

    def _get(self, path: str, params: Dict[str, str]) -> Dict[str, Any]:
        url = f"{self.base_url}/{path}"

        try:
            response = requests.get(url, headers=self.headers, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            raise UpstreamUnavailableError(f"Failed to fetch {url}: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamUnavailableError(f"Response from {url} is not valid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise UpstreamUnavailableError(f"Response from {url} must be a JSON object")

        return data
