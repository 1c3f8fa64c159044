"""Snapshot persistence layer: one JSON file per instrument with atomic replace."""

import json
import os
import tempfile
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

import structlog

from ..data.models import History
from ..data.validators import validate_history_payload
from ..errors import PersistenceError
from ..utils.time import age_hours, ms_to_datetime, now_ms

logger = structlog.get_logger(__name__)

SNAPSHOT_SUFFIX = "_history.json"


@dataclass
class StoredSnapshot:
    """Snapshot record with metadata."""
    symbol: str
    last_updated: int
    data_point_count: int
    history: History

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "lastUpdated": self.last_updated,
            "dataPointCount": self.data_point_count,
            "history": self.history.to_dict(),
        }


@dataclass(frozen=True)
class SnapshotInfo:
    """Size and freshness of one snapshot file."""
    symbol: str
    size_bytes: int
    data_point_count: int
    last_modified: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "size_bytes": self.size_bytes,
            "data_point_count": self.data_point_count,
            "last_modified": self.last_modified.isoformat(),
        }


@dataclass
class StorageStats:
    """Aggregate storage statistics."""
    instrument_count: int = 0
    per_instrument: list[SnapshotInfo] = field(default_factory=list)
    total_size_bytes: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "instrument_count": self.instrument_count,
            "per_instrument": [info.to_dict() for info in self.per_instrument],
            "total_size_bytes": self.total_size_bytes,
        }


class SnapshotStore:
    """
    File-based snapshot persistence.

    Writes go to a temporary file in the same directory and are published
    with ``os.replace`` so readers never observe a partially written file.
    Unreadable or invalid snapshots load as absent.
    """

    def __init__(self, data_dir: Union[str, Path] = "data/pairs", discard_corrupt: bool = True):
        self.data_dir = Path(data_dir)
        self.discard_corrupt = discard_corrupt
        self._lock = threading.Lock()

        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _file_path(self, symbol: str) -> Path:
        return self.data_dir / f"{symbol.lower()}{SNAPSHOT_SUFFIX}"

    def save(self, symbol: str, history: History) -> bool:
        """
        Write a snapshot of ``history`` for ``symbol``.

        Args:
            symbol: Instrument symbol
            history: History to persist, must be non-empty and consistent

        Returns:
            True once the snapshot has been durably published
        """
        payload = {
            "symbol": symbol,
            "lastUpdated": now_ms(),
            "dataPointCount": len(history),
            "history": history.to_dict(),
        }

        problems = validate_history_payload(payload["history"])
        if problems:
            logger.warning("Refusing to save invalid history", symbol=symbol, problems=problems)
            return False

        path = self._file_path(symbol)
        try:
            with self._lock:
                self._write_atomic(path, payload)
        except PersistenceError as e:
            logger.error("Failed to save snapshot", symbol=symbol, path=str(path), error=str(e))
            return False

        logger.debug("Snapshot saved", symbol=symbol, data_points=len(history), path=str(path))
        return True

    def _write_atomic(self, path: Path, payload: dict[str, Any]) -> None:
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=str(self.data_dir)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass
            raise PersistenceError(
                f"Failed to write snapshot: {e}", operation="save", target=str(path)
            ) from e

    def _read_record(self, path: Path) -> StoredSnapshot:
        """
        Parse and validate one snapshot file.

        Raises:
            FileNotFoundError: If the file does not exist
            PersistenceError: If the file is unreadable or invalid
        """
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise PersistenceError(
                f"Unreadable snapshot: {e}", operation="load", target=str(path)
            ) from e

        if not isinstance(data, dict):
            raise PersistenceError("Snapshot is not an object", operation="load", target=str(path))

        problems = validate_history_payload(data.get("history"))
        if problems:
            raise PersistenceError(
                "Snapshot failed validation",
                operation="load",
                target=str(path),
                context={"problems": problems},
            )

        try:
            history = History.from_dict(data["history"])
        except (TypeError, ValueError, OverflowError) as e:
            raise PersistenceError(
                f"Snapshot history could not be decoded: {e}", operation="load", target=str(path)
            ) from e
        last_updated = data.get("lastUpdated")
        return StoredSnapshot(
            symbol=str(data.get("symbol") or path.name[: -len(SNAPSHOT_SUFFIX)].upper()),
            last_updated=last_updated if isinstance(last_updated, int) else 0,
            data_point_count=len(history),
            history=history,
        )

    def load_record(self, symbol: str) -> Optional[StoredSnapshot]:
        """
        Load the full snapshot record for ``symbol``.

        Returns:
            The record, or None when missing or corrupt. Corrupt files are
            deleted when ``discard_corrupt`` is set.
        """
        path = self._file_path(symbol)
        try:
            record = self._read_record(path)
        except FileNotFoundError:
            return None
        except PersistenceError as e:
            logger.warning("Discarding invalid snapshot",
                           symbol=symbol,
                           path=str(path),
                           error=str(e),
                           problems=e.context.get("problems"))
            if self.discard_corrupt:
                self.delete(symbol)
            return None

        logger.debug("Snapshot loaded", symbol=symbol, data_points=record.data_point_count)
        return record

    def load(self, symbol: str) -> Optional[History]:
        """Load the history for ``symbol``, or None when absent or corrupt."""
        record = self.load_record(symbol)
        return record.history if record is not None else None

    def delete(self, symbol: str) -> bool:
        """Delete the snapshot for ``symbol``. Missing files count as deleted."""
        path = self._file_path(symbol)
        try:
            path.unlink()
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.error("Failed to delete snapshot", symbol=symbol, path=str(path), error=str(e))
            return False

        logger.info("Snapshot deleted", symbol=symbol)
        return True

    def _snapshot_files(self) -> list[Path]:
        try:
            return sorted(
                p for p in self.data_dir.iterdir()
                if p.is_file() and p.name.endswith(SNAPSHOT_SUFFIX)
            )
        except OSError as e:
            logger.error("Failed to list snapshots", data_dir=str(self.data_dir), error=str(e))
            return []

    def list_symbols(self) -> list[str]:
        """Symbols that currently have a snapshot file."""
        return [p.name[: -len(SNAPSHOT_SUFFIX)].upper() for p in self._snapshot_files()]

    def get_stats(self) -> StorageStats:
        """Collect per-file size, point count and modification time."""
        stats = StorageStats()

        for path in self._snapshot_files():
            symbol = path.name[: -len(SNAPSHOT_SUFFIX)].upper()
            try:
                stat = path.stat()
            except OSError as e:
                logger.warning("Failed to stat snapshot", path=str(path), error=str(e))
                continue

            try:
                data_points = self._read_record(path).data_point_count
            except (FileNotFoundError, PersistenceError):
                data_points = 0

            stats.per_instrument.append(SnapshotInfo(
                symbol=symbol,
                size_bytes=stat.st_size,
                data_point_count=data_points,
                last_modified=ms_to_datetime(int(stat.st_mtime * 1000)),
            ))
            stats.total_size_bytes += stat.st_size

        stats.instrument_count = len(stats.per_instrument)
        return stats

    def cleanup_old_snapshots(self, max_age_hours: float = 168.0) -> int:
        """
        Delete snapshots not modified within ``max_age_hours``.

        Returns:
            Number of snapshots removed
        """
        removed = 0

        for path in self._snapshot_files():
            try:
                if age_hours(path.stat().st_mtime) > max_age_hours:
                    path.unlink()
                    removed += 1
                    logger.info("Removed stale snapshot", path=str(path))
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning("Failed to remove stale snapshot", path=str(path), error=str(e))

        if removed:
            logger.info("Snapshot cleanup complete", removed=removed, max_age_hours=max_age_hours)
        return removed
