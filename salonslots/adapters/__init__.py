"""
Adapters layer - Snapshot sources for the scheduling data.
"""

from .http_snapshot_source import HttpSnapshotSource
from .json_snapshot_source import JsonSnapshotSource

__all__ = ["HttpSnapshotSource", "JsonSnapshotSource"]
