"""
Time helpers for epoch-millisecond timestamps.

Observation timestamps are wall-clock collection times in milliseconds;
snapshot ages are measured against file modification times.
"""

import time
from datetime import datetime, timezone
from typing import Optional


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_datetime(timestamp_ms: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)


def age_hours(modified_at: float, now: Optional[float] = None) -> float:
    """
    Hours elapsed since a POSIX timestamp.

    Args:
        modified_at: POSIX seconds, e.g. ``stat().st_mtime``
        now: Reference time in POSIX seconds, defaults to the current time

    Returns:
        Elapsed hours, never negative
    """
    reference = time.time() if now is None else now
    return max(0.0, (reference - modified_at) / 3600.0)
