"""Bounded per-instrument rolling history with snapshot recovery."""

from .models import InstrumentChanges, LoadOutcome, RoundSummary, SnapshotReport, StoreStats
from .timeseries import TimeSeriesStore

__all__ = [
    "InstrumentChanges",
    "LoadOutcome",
    "RoundSummary",
    "SnapshotReport",
    "StoreStats",
    "TimeSeriesStore",
]
