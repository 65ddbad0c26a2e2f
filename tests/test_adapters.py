"""
Tests for the snapshot source adapters.
"""

import asyncio
import json
from pathlib import Path

import pendulum
import pytest
import requests

from salonslots.adapters import http_snapshot_source
from salonslots.adapters.http_snapshot_source import HttpSnapshotSource
from salonslots.adapters.json_snapshot_source import JsonSnapshotSource
from salonslots.domain.exceptions import UpstreamUnavailableError

SNAPSHOT = {
    "calendar_settings": {"open_days_ahead": 14},
    "treatments": [{"id": "tr-1", "treatment_type_id": "small"}],
    "stations": [{"id": "s1"}],
    "business_hours": [{"weekday": "thursday", "open_time": "09:00", "close_time": "17:00"}],
    "appointments": [
        {"id": "inside", "station_id": "s1", "start_at": "2025-08-21T10:00:00Z", "end_at": "2025-08-21T11:00:00Z"},
        {"id": "before", "station_id": "s1", "start_at": "2025-08-19T10:00:00Z", "end_at": "2025-08-19T11:00:00Z"},
        {"id": "overlapping", "station_id": "s1", "start_at": "2025-08-20T23:00:00Z", "end_at": "2025-08-21T01:00:00Z"},
    ],
    "unavailability": [
        {"id": "later", "station_id": "s1", "start_time": "2025-09-10T10:00:00", "end_time": "2025-09-10T12:00:00"},
        {"id": "today", "station_id": "s1", "start_time": "2025-08-21T12:00:00", "end_time": "2025-08-21T13:00:00"},
    ],
    "daycare_appointments": [
        {"id": "garden-today", "start_at": "2025-08-21T09:00:00Z", "service_type": "hourly"},
        {"id": "garden-later", "start_at": "2025-08-25T09:00:00Z"},
    ],
    "capacity_limits": [{"effective_date": "2025-01-01", "total_limit": 12}],
}

WINDOW_START = pendulum.datetime(2025, 8, 21, tz="UTC")
WINDOW_END = pendulum.datetime(2025, 8, 21, tz="UTC").end_of("day")


def _write(tmp_path: Path, data) -> Path:
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class FakeResponse:
    """Just enough of requests.Response."""

    def __init__(self, payload, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class TestJsonSnapshotSource:
    """Tests for JsonSnapshotSource."""

    def test_open_days_ahead(self, tmp_path: Path):
        """The calendar setting is read from the file."""
        source = JsonSnapshotSource(_write(tmp_path, SNAPSHOT))

        assert asyncio.run(source.get_open_days_ahead()) == 14

    def test_open_days_ahead_missing(self, tmp_path: Path):
        """No calendar setting means no override."""
        source = JsonSnapshotSource(_write(tmp_path, {"treatments": []}))

        assert asyncio.run(source.get_open_days_ahead()) is None

    def test_rows_filtered_to_window(self, tmp_path: Path):
        """Only bookings and constraints touching the window are kept."""
        source = JsonSnapshotSource(_write(tmp_path, SNAPSHOT))

        snapshot = asyncio.run(source.load_snapshot("tr-1", WINDOW_START, WINDOW_END))

        assert [row.id for row in snapshot.appointments] == ["inside", "overlapping"]
        assert [row.id for row in snapshot.unavailability] == ["today"]
        assert snapshot.find_treatment("tr-1") is not None
        assert snapshot.business_hours[0].weekday == "thursday"
        assert [row.id for row in snapshot.daycare_appointments] == ["garden-today"]
        assert snapshot.capacity_limits[0].total_limit == 12

    def test_missing_file(self, tmp_path: Path):
        """An unreadable file is an upstream failure."""
        source = JsonSnapshotSource(tmp_path / "missing.json")

        with pytest.raises(UpstreamUnavailableError, match="Could not read"):
            asyncio.run(source.load_snapshot("tr-1", WINDOW_START, WINDOW_END))

    def test_invalid_json(self, tmp_path: Path):
        """Broken JSON is an upstream failure."""
        path = tmp_path / "snapshot.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(UpstreamUnavailableError, match="Invalid JSON"):
            asyncio.run(JsonSnapshotSource(path).get_open_days_ahead())

    def test_invalid_rows(self, tmp_path: Path):
        """Rows that do not match the data contract are an upstream failure."""
        data = {"business_hours": [{"weekday": "funday", "open_time": "09:00", "close_time": "17:00"}]}
        source = JsonSnapshotSource(_write(tmp_path, data))

        with pytest.raises(UpstreamUnavailableError, match="Invalid snapshot data"):
            asyncio.run(source.load_snapshot("tr-1", WINDOW_START, WINDOW_END))


class TestHttpSnapshotSource:
    """Tests for HttpSnapshotSource."""

    def test_load_snapshot(self, monkeypatch):
        """The window and credentials are sent with the request."""
        captured = {}

        def fake_get(url, headers, params, timeout):
            captured.update(url=url, headers=headers, params=params, timeout=timeout)
            payload = dict(SNAPSHOT)
            payload.pop("calendar_settings")
            return FakeResponse(payload)

        monkeypatch.setattr(http_snapshot_source.requests, "get", fake_get)
        source = HttpSnapshotSource("https://salon.example.com/api/", api_key="secret", timeout=5)

        snapshot = asyncio.run(source.load_snapshot("tr-1", WINDOW_START, WINDOW_END))

        assert captured["url"] == "https://salon.example.com/api/availability-snapshot"
        assert captured["headers"]["Authorization"] == "Bearer secret"
        assert captured["params"]["treatmentId"] == "tr-1"
        assert captured["params"]["start"].startswith("2025-08-21T00:00:00")
        assert captured["timeout"] == 5
        assert len(snapshot.appointments) == 3

    def test_open_days_ahead(self, monkeypatch):
        """The calendar setting endpoint is read."""
        monkeypatch.setattr(
            http_snapshot_source.requests,
            "get",
            lambda url, headers, params, timeout: FakeResponse({"open_days_ahead": "21"}),
        )

        assert asyncio.run(HttpSnapshotSource("https://salon.example.com").get_open_days_ahead()) == 21

    def test_connection_error(self, monkeypatch):
        """Network failures become UpstreamUnavailableError."""

        def fake_get(url, headers, params, timeout):
            raise requests.exceptions.ConnectionError("connection refused")

        monkeypatch.setattr(http_snapshot_source.requests, "get", fake_get)
        source = HttpSnapshotSource("https://salon.example.com")

        with pytest.raises(UpstreamUnavailableError, match="connection refused"):
            asyncio.run(source.load_snapshot("tr-1", WINDOW_START, WINDOW_END))

    def test_http_error_status(self, monkeypatch):
        """Error status codes become UpstreamUnavailableError."""
        monkeypatch.setattr(
            http_snapshot_source.requests,
            "get",
            lambda url, headers, params, timeout: FakeResponse({}, status_code=503),
        )

        with pytest.raises(UpstreamUnavailableError, match="503"):
            asyncio.run(HttpSnapshotSource("https://salon.example.com").get_open_days_ahead())

    def test_non_json_body(self, monkeypatch):
        """An HTML error page is not mistaken for an empty snapshot."""
        monkeypatch.setattr(
            http_snapshot_source.requests,
            "get",
            lambda url, headers, params, timeout: FakeResponse(ValueError("Expecting value")),
        )

        with pytest.raises(UpstreamUnavailableError, match="not valid JSON"):
            asyncio.run(HttpSnapshotSource("https://salon.example.com").load_snapshot("tr-1", WINDOW_START, WINDOW_END))
