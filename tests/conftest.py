"""Pytest configuration and shared fixtures."""

import tempfile
import shutil
from typing import Any, Callable, Dict, List, Optional

import pytest

from ensemble_app.config.defaults import StoreParams
from ensemble_app.data.models import Bar, History, Observation, Tick

BASE_TIMESTAMP = 1_700_000_000_000
STEP_MS = 300_000


def build_history(closes: List[float], spread: float = 1.0, volume: float = 1000.0) -> History:
    """History whose highs/lows sit ``spread`` above/below each close."""
    return History(
        closes=[float(c) for c in closes],
        highs=[float(c) + spread for c in closes],
        lows=[float(c) - spread for c in closes],
        volumes=[float(volume)] * len(closes),
        timestamps=[BASE_TIMESTAMP + i * STEP_MS for i in range(len(closes))],
    )


def build_bars(count: int, start_price: float = 100.0, step: float = 0.5) -> List[Bar]:
    """Steadily rising bars, oldest first."""
    bars = []
    for i in range(count):
        close = start_price + i * step
        bars.append(Bar(
            timestamp=BASE_TIMESTAMP + i * STEP_MS,
            close=close,
            high=close + 1.0,
            low=close - 1.0,
            volume=1000.0 + i,
        ))
    return bars


class FakeSource:
    """In-memory market data source with switchable failures."""

    def __init__(self, bar_count: int = 60):
        self.bar_count = bar_count
        self.bars: Dict[str, List[Bar]] = {}
        self.ticks: Dict[str, Any] = {}
        self.failing_backfill: set = set()
        self.failing_ticks: set = set()
        self.fail_discovery = False
        self.backfill_calls: List[str] = []
        self.tick_calls: List[str] = []

    async def get_latest_tick(self, symbol: str) -> Tick:
        self.tick_calls.append(symbol)
        if symbol in self.failing_ticks:
            raise ConnectionError(f"ticker unavailable for {symbol}")
        return self.ticks.get(symbol, Tick(price=100.0, high=101.0, low=99.0, volume=500.0))

    async def get_historical_bars(self, symbol: str, resolution: int, count: int) -> List[Bar]:
        self.backfill_calls.append(symbol)
        if symbol in self.failing_backfill:
            raise TimeoutError(f"history request timed out for {symbol}")
        bars = self.bars.get(symbol, build_bars(self.bar_count))
        return bars[-count:]

    async def discover_available_symbols(self) -> List[Dict[str, Any]]:
        if self.fail_discovery:
            raise ConnectionError("exchange list unavailable")
        return [
            {"symbol": "XMR", "name": "Monero"},
            {"symbol": "RVN", "name": "Ravencoin"},
        ]


@pytest.fixture
def temp_dir():
    """Temporary directory removed after the test."""
    path = tempfile.mkdtemp()
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def make_history() -> Callable[..., History]:
    """Factory for histories built from a close series."""
    return build_history


@pytest.fixture
def make_bars() -> Callable[..., List[Bar]]:
    return build_bars


@pytest.fixture
def trending_history() -> History:
    """Sixty steadily rising points, enough for every indicator."""
    return build_history([100.0 + i for i in range(60)])


@pytest.fixture
def sample_observation() -> Observation:
    return Observation(timestamp=BASE_TIMESTAMP, close=100.0, high=101.0, low=99.0, volume=1000.0)


@pytest.fixture
def store_params() -> Callable[..., StoreParams]:
    """Factory for small store parameters suited to tests."""
    def _make(retention: int = 100, instruments: Optional[tuple] = ("XMR", "RVN"), **kwargs) -> StoreParams:
        return StoreParams(
            retention=retention,
            instruments=instruments,
            backfill_count=kwargs.pop("backfill_count", 60),
            update_interval_seconds=kwargs.pop("update_interval_seconds", 3600.0),
            snapshot_interval_seconds=kwargs.pop("snapshot_interval_seconds", 3600.0),
            **kwargs,
        )
    return _make
