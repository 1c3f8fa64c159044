"""
Contract of the external market data source.

The exchange client lives outside this package. Anything implementing these
three coroutines can feed the store; its failures are treated as transient.
"""

from typing import Any, Protocol, runtime_checkable

from .models import Bar, Tick


@runtime_checkable
class MarketDataSource(Protocol):
    """Async market data provider consumed by the time-series store."""

    async def get_latest_tick(self, symbol: str) -> Tick:
        """Latest price, 24h high/low and volume for ``symbol``."""
        ...

    async def get_historical_bars(self, symbol: str, resolution: int, count: int) -> list[Bar]:
        """Up to ``count`` bars of ``resolution`` minutes, oldest first."""
        ...

    async def discover_available_symbols(self) -> list[dict[str, Any]]:
        """Metadata for every symbol the source can serve."""
        ...
