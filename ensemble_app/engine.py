"""
Signal engine coordinator.

Wires the time-series store, the snapshot store, the indicator engine and
the ensemble aggregator together behind one façade:
Market Data → Rolling History → Indicators → Ensemble → Recommendation
"""

import asyncio
from dataclasses import replace
from typing import Any, Iterable, Optional

import structlog
import yaml

from .config.defaults import DefaultConfig, get_default_config
from .config.loader import ConfigLoader
from .data.models import History
from .data.source import MarketDataSource
from .errors import TransientFeedError
from .indicators.engine import IndicatorEngine
from .indicators.ensemble import EnsembleAggregator
from .models.signals import EnsembleResult, IndicatorResult
from .persistence.snapshot_store import SnapshotStore, StorageStats
from .store.models import InstrumentChanges, LoadOutcome, SnapshotReport
from .store.timeseries import TimeSeriesStore

logger = structlog.get_logger(__name__)


class EnsembleSignalEngine:
    """
    Main entry point for consumers of the recommendation system.

    Owns the store lifecycle and answers per-instrument queries. When a
    ``ConfigLoader`` is given, the tracked instrument list is read from and
    written back to its runtime instrument file.
    """

    def __init__(
        self,
        source: MarketDataSource,
        config: Optional[DefaultConfig] = None,
        config_loader: Optional[ConfigLoader] = None
    ) -> None:
        self.source = source
        self.config_loader = config_loader
        if config is None:
            config = config_loader.build_config() if config_loader else get_default_config()
        self.config = config

        self.snapshot_store = SnapshotStore(
            data_dir=config.persistence.data_dir,
            discard_corrupt=config.persistence.discard_corrupt,
        )
        self.store = TimeSeriesStore(source, self.snapshot_store, config.store)
        self.indicator_engine = IndicatorEngine(config)
        self.aggregator = EnsembleAggregator(config.weights)

        logger.info("Signal engine initialized",
                    indicators=self.indicator_engine.indicator_names,
                    data_dir=config.persistence.data_dir)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, instruments: Optional[Iterable[str]] = None) -> dict[str, LoadOutcome]:
        """
        Load every instrument's history and start the timers.

        Args:
            instruments: Symbols to track. Defaults to the runtime instrument
                list when a config loader is present, else the configured list.

        Returns:
            Load outcome per symbol
        """
        if instruments is None and self.config_loader is not None:
            instruments = self.config_loader.load_instruments()

        outcomes = await self.store.initialize(instruments)
        await self.store.start()
        return outcomes

    async def shutdown(self) -> SnapshotReport:
        """Stop the timers and write a final snapshot of every instrument."""
        report = await self.store.shutdown()
        logger.info("Signal engine stopped", saved=report.saved_count, failed=report.failed_count)
        return report

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_history(self, symbol: str) -> Optional[History]:
        return self.store.get_history(symbol)

    def get_all_histories(self) -> dict[str, History]:
        return self.store.get_all_histories()

    def get_indicator_results(self, symbol: str) -> dict[str, IndicatorResult]:
        """Per-indicator results for ``symbol``; neutral results when data is missing."""
        history = self.store.get_history(symbol) or History()
        return self.indicator_engine.calculate_all(history, symbol=symbol)

    def get_ensemble_signal(self, symbol: str) -> EnsembleResult:
        """
        Combined recommendation for one instrument.

        Untracked instruments and short histories yield hold with zero
        confidence rather than an error.
        """
        history = self.store.get_history(symbol) or History()
        results = self.indicator_engine.calculate_all(history, symbol=symbol)
        ensemble = self.aggregator.combine(results)

        metadata = {**ensemble.metadata, "symbol": symbol, "data_points": len(history)}
        if not self.store.has_enough_data(symbol):
            metadata["insufficient_data"] = True

        logger.info("Ensemble signal calculated", symbol=symbol,
                    suggestion=ensemble.suggestion.value, confidence=ensemble.confidence,
                    data_points=len(history))
        return replace(ensemble, metadata=metadata)

    def get_stats(self) -> dict[str, Any]:
        return self.store.get_stats()

    def get_storage_stats(self) -> StorageStats:
        return self.snapshot_store.get_stats()

    async def get_available_instruments(self) -> list[dict[str, Any]]:
        """
        Instruments the market data source can serve.

        Raises:
            TransientFeedError: If the source lookup fails
        """
        try:
            return await self.source.discover_available_symbols()
        except Exception as e:
            logger.error("Symbol discovery failed", error=str(e))
            raise TransientFeedError(
                f"Symbol discovery failed: {e}", operation="discover_available_symbols"
            ) from e

    # ------------------------------------------------------------------
    # Instrument management
    # ------------------------------------------------------------------

    async def _persist_instruments(self) -> bool:
        """
        Write the tracked set to the runtime instrument file off the event loop.

        Returns:
            False if the write failed; the in-memory change stands either way
        """
        if self.config_loader is None or not self.store.instruments:
            return False

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self.config_loader.save_instruments, self.store.instruments)
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to persist instrument list",
                         instruments=list(self.store.instruments), error=str(e))
            return False
        return True

    async def add_instrument(self, symbol: str) -> bool:
        added = await self.store.add_instrument(symbol)
        if added:
            await self._persist_instruments()
        return added

    async def remove_instrument(self, symbol: str, delete_snapshot: bool = True) -> bool:
        removed = await self.store.remove_instrument(symbol, delete_snapshot=delete_snapshot)
        if removed:
            await self._persist_instruments()
        return removed

    async def replace_instruments(
        self,
        symbols: Iterable[str],
        delete_snapshots: bool = True
    ) -> InstrumentChanges:
        changes = await self.store.replace_instruments(symbols, delete_snapshots=delete_snapshots)
        await self._persist_instruments()
        return changes

    # ------------------------------------------------------------------
    # Snapshot maintenance
    # ------------------------------------------------------------------

    async def force_snapshot(self, symbol: Optional[str] = None) -> SnapshotReport:
        """Snapshot one instrument, or all of them when ``symbol`` is None."""
        symbols = None if symbol is None else [symbol.strip().upper()]
        return await self.store.snapshot_all(symbols)

    def cleanup_old_snapshots(self, max_age_hours: Optional[float] = None) -> int:
        if max_age_hours is None:
            max_age_hours = self.config.persistence.cleanup_max_age_hours
        return self.snapshot_store.cleanup_old_snapshots(max_age_hours)
