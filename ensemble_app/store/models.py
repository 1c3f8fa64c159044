"""Return types of the time-series store operations."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class LoadOutcome:
    """How one instrument's initial history was obtained."""
    symbol: str
    source: str                 # 'snapshot', 'backfill' or 'empty'
    data_points: int = 0
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class SnapshotReport:
    """Per-instrument results of a snapshot pass."""
    saved: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def saved_count(self) -> int:
        return len(self.saved)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "saved": list(self.saved),
            "skipped": list(self.skipped),
            "failed": dict(self.failed),
            "saved_count": self.saved_count,
            "failed_count": self.failed_count,
        }


@dataclass(frozen=True)
class RoundSummary:
    """Outcome of one live collection round."""
    successful: int
    failed: int
    errors: dict[str, str] = field(default_factory=dict)


@dataclass
class InstrumentChanges:
    """Result of replacing the tracked instrument set."""
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    instruments: tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "changes": {"added": list(self.added), "removed": list(self.removed)},
            "failed": dict(self.failed),
            "instruments": list(self.instruments),
        }


@dataclass
class StoreStats:
    """Running ingestion counters."""
    total_data_points: int = 0
    successful_updates: int = 0
    failed_updates: int = 0
    rejected_observations: int = 0
    last_update: Optional[int] = None   # Epoch ms of the last completed round

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_data_points": self.total_data_points,
            "successful_updates": self.successful_updates,
            "failed_updates": self.failed_updates,
            "rejected_observations": self.rejected_observations,
            "last_update": self.last_update,
        }
