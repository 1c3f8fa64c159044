"""Durable per-instrument snapshot storage."""

from .snapshot_store import SnapshotInfo, SnapshotStore, StorageStats, StoredSnapshot

__all__ = ["SnapshotInfo", "SnapshotStore", "StorageStats", "StoredSnapshot"]
