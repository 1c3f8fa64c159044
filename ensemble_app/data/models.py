"""
Core data models for observations and rolling per-instrument history.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional


SERIES_NAMES = ("closes", "highs", "lows", "volumes", "timestamps")


@dataclass(frozen=True)
class Observation:
    """A single price/volume observation for one instrument."""
    timestamp: int          # Epoch milliseconds
    close: float
    high: float
    low: float
    volume: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "close": self.close,
            "high": self.high,
            "low": self.low,
            "volume": self.volume,
        }


@dataclass(frozen=True)
class Tick:
    """Latest market summary returned by the external data source."""
    price: float
    high: Optional[float] = None
    low: Optional[float] = None
    volume: Optional[float] = None

    def to_observation(self, timestamp: int) -> Observation:
        """
        Convert to an observation stamped with the collection time.

        Missing high/low fall back to the last price and a missing volume
        becomes 0, which validation then rejects.
        """
        return Observation(
            timestamp=timestamp,
            close=self.price,
            high=self.high if self.high is not None else self.price,
            low=self.low if self.low is not None else self.price,
            volume=self.volume if self.volume is not None else 0.0,
        )


@dataclass(frozen=True)
class Bar:
    """Historical OHLCV bar returned by the external data source."""
    timestamp: int
    close: float
    high: float
    low: float
    volume: float
    open: Optional[float] = None

    def to_observation(self) -> Observation:
        return Observation(
            timestamp=self.timestamp,
            close=self.close,
            high=self.high,
            low=self.low,
            volume=self.volume,
        )


@dataclass
class History:
    """
    Rolling history for one instrument as five parallel sequences.

    All sequences always have equal length. New points are appended at the
    tail and trimming only ever removes points from the head.
    """
    closes: list[float] = field(default_factory=list)
    highs: list[float] = field(default_factory=list)
    lows: list[float] = field(default_factory=list)
    volumes: list[float] = field(default_factory=list)
    timestamps: list[int] = field(default_factory=list)

    @property
    def prices(self) -> list[float]:
        """Alias of ``closes`` kept for consumers of the snapshot format."""
        return self.closes

    def __len__(self) -> int:
        return len(self.closes)

    def is_empty(self) -> bool:
        return not self.closes

    def is_consistent(self) -> bool:
        """Check that every parallel sequence has the same length."""
        length = len(self.closes)
        return all(len(getattr(self, name)) == length for name in SERIES_NAMES)

    def append(self, observation: Observation) -> None:
        """Append an already validated observation to every sequence."""
        self.closes.append(float(observation.close))
        self.highs.append(float(observation.high))
        self.lows.append(float(observation.low))
        self.volumes.append(float(observation.volume))
        self.timestamps.append(int(observation.timestamp))

    def trim(self, max_length: int) -> int:
        """
        Drop the oldest points until at most ``max_length`` remain.

        Returns:
            Number of points removed
        """
        excess = len(self.closes) - max_length
        if excess <= 0:
            return 0

        for name in SERIES_NAMES:
            del getattr(self, name)[:excess]
        return excess

    def observations(self) -> Iterator[Observation]:
        for i in range(len(self.closes)):
            yield Observation(
                timestamp=self.timestamps[i],
                close=self.closes[i],
                high=self.highs[i],
                low=self.lows[i],
                volume=self.volumes[i],
            )

    @property
    def last_observation(self) -> Optional[Observation]:
        if not self.closes:
            return None
        return Observation(
            timestamp=self.timestamps[-1],
            close=self.closes[-1],
            high=self.highs[-1],
            low=self.lows[-1],
            volume=self.volumes[-1],
        )

    def copy(self) -> "History":
        return History(
            closes=list(self.closes),
            highs=list(self.highs),
            lows=list(self.lows),
            volumes=list(self.volumes),
            timestamps=list(self.timestamps),
        )

    def to_dict(self) -> dict[str, list]:
        """Serialize in snapshot layout, including the ``prices`` alias."""
        return {
            "closes": list(self.closes),
            "highs": list(self.highs),
            "lows": list(self.lows),
            "prices": list(self.closes),
            "volumes": list(self.volumes),
            "timestamps": list(self.timestamps),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "History":
        """Build from snapshot layout. Callers validate the payload first."""
        return cls(
            closes=[float(v) for v in data["closes"]],
            highs=[float(v) for v in data["highs"]],
            lows=[float(v) for v in data["lows"]],
            volumes=[float(v) for v in data["volumes"]],
            timestamps=[int(v) for v in data["timestamps"]],
        )

    @classmethod
    def from_observations(cls, observations: Iterable[Observation]) -> "History":
        history = cls()
        for observation in observations:
            history.append(observation)
        return history


class TrackedInstrumentSet:
    """
    Ordered set of tracked instrument symbols.

    Only ``add``, ``discard`` and ``replace`` mutate it; readers get tuples.
    """

    def __init__(self, symbols: Iterable[str] = ()):
        self._symbols: dict[str, None] = dict.fromkeys(symbols)

    def add(self, symbol: str) -> bool:
        if symbol in self._symbols:
            return False
        self._symbols[symbol] = None
        return True

    def discard(self, symbol: str) -> bool:
        if symbol not in self._symbols:
            return False
        del self._symbols[symbol]
        return True

    def replace(self, symbols: Iterable[str]) -> None:
        self._symbols = dict.fromkeys(symbols)

    def as_tuple(self) -> tuple[str, ...]:
        return tuple(self._symbols)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._symbols

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._symbols))

    def __len__(self) -> int:
        return len(self._symbols)

    def __repr__(self) -> str:
        return f"TrackedInstrumentSet({list(self._symbols)!r})"
