"""
Rolling time-series store.

Owns one bounded history per tracked instrument, keeps the tracked set,
the in-memory histories and the snapshot files consistent, and drives the
periodic collection and snapshot timers on the running asyncio loop.
"""

import asyncio
from collections.abc import Mapping
from typing import Any, Callable, Iterable, Optional

from ..config.defaults import StoreParams
from ..data.models import Bar, History, Observation, Tick, TrackedInstrumentSet
from ..data.source import MarketDataSource
from ..data.validators import normalize_symbol, validate_observation
from ..errors import TransientFeedError, ValidationError
from ..logging.config import get_store_logger, log_snapshot_result
from ..persistence.snapshot_store import SnapshotStore
from ..utils.time import now_ms
from .models import InstrumentChanges, LoadOutcome, RoundSummary, SnapshotReport, StoreStats

logger = get_store_logger(__name__)


def _dedupe(symbols: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(symbols))


def _tick_to_observation(tick: Any, timestamp: int) -> Observation:
    if isinstance(tick, Mapping):
        tick = Tick(
            price=tick.get("price"),
            high=tick.get("high"),
            low=tick.get("low"),
            volume=tick.get("volume"),
        )
    return tick.to_observation(timestamp)


class TimeSeriesStore:
    """
    Bounded per-instrument history fed by snapshots, backfill and live ticks.

    Appending and trimming a history never suspends, so an ingestion is
    atomic with respect to every other coroutine. Lifecycle operations and
    snapshot writes for one symbol are serialised by a per-symbol lock.
    """

    def __init__(
        self,
        source: MarketDataSource,
        snapshot_store: Optional[SnapshotStore] = None,
        params: Optional[StoreParams] = None
    ):
        self.source = source
        self.snapshot_store = snapshot_store
        self.params = params or StoreParams()
        self.stats = StoreStats()

        self._instruments = TrackedInstrumentSet()
        self._histories: dict[str, History] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._collection_task: Optional[asyncio.Task] = None
        self._snapshot_task: Optional[asyncio.Task] = None
        self._paused = False

    @property
    def instruments(self) -> tuple[str, ...]:
        """Currently tracked symbols, in insertion order."""
        return self._instruments.as_tuple()

    @property
    def is_collecting(self) -> bool:
        task = self._collection_task
        return task is not None and not task.done() and not self._paused

    def _lock_for(self, symbol: str) -> asyncio.Lock:
        lock = self._locks.get(symbol)
        if lock is None:
            lock = self._locks[symbol] = asyncio.Lock()
        return lock

    def _drop_lock(self, symbol: str) -> None:
        """Forget the lock of an untracked symbol unless someone still holds it."""
        lock = self._locks.get(symbol)
        if lock is not None and not lock.locked() and symbol not in self._instruments:
            del self._locks[symbol]

    async def _run_io(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run blocking snapshot I/O in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def initialize(self, instruments: Optional[Iterable[str]] = None) -> dict[str, LoadOutcome]:
        """
        Track the given instruments and load or backfill each one.

        A failure of any kind for one instrument never stops the others; that
        instrument stays tracked with an empty history.

        Args:
            instruments: Symbols to track, defaults to the configured list

        Returns:
            Load outcome per symbol
        """
        requested = self.params.instruments if instruments is None else instruments
        outcomes: dict[str, LoadOutcome] = {}

        for raw_symbol in requested:
            try:
                symbol = normalize_symbol(raw_symbol)
            except ValidationError as e:
                logger.error("Skipping invalid symbol", symbol=raw_symbol, error=str(e))
                outcomes[str(raw_symbol)] = LoadOutcome(str(raw_symbol), "empty", error=str(e))
                continue

            if symbol in outcomes:
                continue

            self._instruments.add(symbol)
            async with self._lock_for(symbol):
                try:
                    outcome = await self._load_or_backfill(symbol)
                except Exception as e:
                    logger.error("Initial load failed, starting empty", symbol=symbol, error=str(e),
                                 error_type=type(e).__name__)
                    self._histories[symbol] = History()
                    outcome = LoadOutcome(symbol, "empty", error=str(e))
            outcomes[symbol] = outcome

        logger.info("Store initialized",
                    instruments=list(self.instruments),
                    from_snapshot=[s for s, o in outcomes.items() if o.source == "snapshot"],
                    from_backfill=[s for s, o in outcomes.items() if o.source == "backfill"],
                    failed=[s for s, o in outcomes.items() if not o.succeeded])
        return outcomes

    async def _load_or_backfill(self, symbol: str) -> LoadOutcome:
        """
        Install the snapshot history for ``symbol``, else a backfilled one.

        Raises:
            TransientFeedError: If no snapshot exists and backfill fails
        """
        if self.snapshot_store is not None:
            history = await self._run_io(self.snapshot_store.load, symbol)
            if history is not None:
                history.trim(self.params.retention)
                self._histories[symbol] = history
                logger.info("Loaded history from snapshot", symbol=symbol, data_points=len(history))
                return LoadOutcome(symbol, "snapshot", len(history))

        history = await self._backfill(symbol)
        self._histories[symbol] = history
        return LoadOutcome(symbol, "backfill", len(history))

    async def _backfill(self, symbol: str) -> History:
        try:
            bars = await self.source.get_historical_bars(
                symbol, self.params.backfill_resolution, self.params.backfill_count
            )
        except Exception as e:
            raise TransientFeedError(
                f"Backfill request failed for {symbol}: {e}",
                symbol=symbol,
                operation="get_historical_bars",
            ) from e

        history = History()
        rejected = 0
        for bar in bars or []:
            candidate = bar.to_observation() if isinstance(bar, Bar) else bar
            try:
                history.append(validate_observation(candidate))
            except ValidationError:
                rejected += 1

        history.trim(self.params.retention)
        logger.info("Backfilled history", symbol=symbol, data_points=len(history), rejected=rejected)
        return history

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def ingest(self, symbol: str, observation: Any) -> bool:
        """
        Validate and append one observation, then trim to the retention limit.

        Returns:
            True if stored; False for untracked symbols or invalid observations
        """
        history = self._histories.get(symbol)
        if history is None or symbol not in self._instruments:
            logger.debug("Ignoring observation for untracked symbol", symbol=symbol)
            return False

        try:
            valid = validate_observation(observation)
        except ValidationError as e:
            self.stats.rejected_observations += 1
            logger.warning("Rejected observation", symbol=symbol, field=e.field, error=str(e))
            return False

        history.append(valid)
        history.trim(self.params.retention)
        self.stats.total_data_points += 1
        return True

    async def _collect_one(self, symbol: str) -> bool:
        try:
            tick = await self.source.get_latest_tick(symbol)
        except Exception as e:
            raise TransientFeedError(
                f"Tick request failed for {symbol}: {e}",
                symbol=symbol,
                operation="get_latest_tick",
            ) from e

        return self.ingest(symbol, _tick_to_observation(tick, now_ms()))

    async def collect_round(self) -> RoundSummary:
        """
        Fetch the latest tick for every tracked instrument concurrently.

        Per-instrument failures are counted and never fail the round.
        """
        symbols = self.instruments
        results = await asyncio.gather(*(self._collect_one(s) for s in symbols), return_exceptions=True)

        successful = 0
        errors: dict[str, str] = {}
        for symbol, result in zip(symbols, results):
            if isinstance(result, Exception):
                errors[symbol] = str(result)
                logger.warning("Collection failed", symbol=symbol, error=str(result),
                               error_type=type(result).__name__)
            elif result:
                successful += 1
            else:
                errors[symbol] = "observation rejected"

        self.stats.successful_updates += successful
        self.stats.failed_updates += len(errors)
        self.stats.last_update = now_ms()

        logger.info("Collection round complete", successful=successful, failed=len(errors),
                    instruments=len(symbols))
        return RoundSummary(successful=successful, failed=len(errors), errors=errors)

    # ------------------------------------------------------------------
    # Instrument lifecycle
    # ------------------------------------------------------------------

    async def add_instrument(self, symbol: str) -> bool:
        """
        Start tracking ``symbol`` and load or backfill its history.

        Returns:
            False if already tracked, True once the history is installed

        Raises:
            ValidationError: If the symbol is malformed
            TransientFeedError: If backfill failed; the symbol is untracked again
        """
        symbol = normalize_symbol(symbol)
        if symbol in self._instruments:
            return False

        async with self._lock_for(symbol):
            if symbol in self._instruments:
                return False

            self._instruments.add(symbol)
            try:
                outcome = await self._load_or_backfill(symbol)
            except TransientFeedError as e:
                self._instruments.discard(symbol)
                self._histories.pop(symbol, None)
                logger.error("Failed to add instrument, rolled back", symbol=symbol, error=str(e))
                raise

        logger.info("Instrument added", symbol=symbol, source=outcome.source,
                    data_points=outcome.data_points)
        return True

    async def remove_instrument(self, symbol: str, delete_snapshot: bool = True) -> bool:
        """
        Stop tracking ``symbol`` and discard its history.

        Returns:
            False if the symbol was not tracked
        """
        symbol = symbol.strip().upper() if isinstance(symbol, str) else symbol
        if symbol not in self._instruments:
            return False

        async with self._lock_for(symbol):
            if not self._instruments.discard(symbol):
                return False
            await self._discard_history(symbol, delete_snapshot)
        self._drop_lock(symbol)

        logger.info("Instrument removed", symbol=symbol, snapshot_deleted=delete_snapshot)
        return True

    async def _discard_history(self, symbol: str, delete_snapshot: bool) -> None:
        self._histories.pop(symbol, None)
        if delete_snapshot and self.snapshot_store is not None:
            deleted = await self._run_io(self.snapshot_store.delete, symbol)
            if not deleted:
                logger.warning("Snapshot deletion failed", symbol=symbol)

    async def _prepare_instrument(self, symbol: str) -> LoadOutcome:
        async with self._lock_for(symbol):
            return await self._load_or_backfill(symbol)

    async def replace_instruments(
        self,
        symbols: Iterable[str],
        delete_snapshots: bool = True
    ) -> InstrumentChanges:
        """
        Replace the tracked set with ``symbols``.

        Dropped instruments lose their history (and optionally snapshot);
        new ones are loaded or backfilled concurrently. Instruments that fail
        to load are left out. The tracked set is swapped once at the end.

        Raises:
            ValidationError: If any symbol is malformed or the list is empty;
                nothing is changed in that case
        """
        new_symbols = _dedupe(normalize_symbol(s) for s in symbols)
        if not new_symbols:
            raise ValidationError("Instrument list must not be empty", field="instruments", value=[])

        current = self.instruments
        removed = [s for s in current if s not in new_symbols]
        added = [s for s in new_symbols if s not in current]
        changes = InstrumentChanges()

        for symbol in removed:
            async with self._lock_for(symbol):
                await self._discard_history(symbol, delete_snapshots)
            changes.removed.append(symbol)

        results = await asyncio.gather(*(self._prepare_instrument(s) for s in added), return_exceptions=True)
        for symbol, result in zip(added, results):
            if isinstance(result, Exception):
                self._histories.pop(symbol, None)
                changes.failed[symbol] = str(result)
                logger.error("Failed to add instrument", symbol=symbol, error=str(result))
            else:
                changes.added.append(symbol)

        final = [s for s in new_symbols if s not in changes.failed]
        self._instruments.replace(final)
        for symbol in [*removed, *changes.failed]:
            self._drop_lock(symbol)
        changes.instruments = tuple(final)

        logger.info("Instrument set replaced", added=changes.added, removed=changes.removed,
                    failed=list(changes.failed), instruments=final)
        return changes

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    async def _snapshot(self, symbol: str) -> Optional[bool]:
        """Save one snapshot; None when there is nothing to save."""
        if self.snapshot_store is None:
            return None

        async with self._lock_for(symbol):
            history = self._histories.get(symbol)
            if symbol not in self._instruments or history is None or history.is_empty():
                return None

            # Copy before suspending so concurrent ingestion cannot tear it
            history = history.copy()
            saved = await self._run_io(self.snapshot_store.save, symbol, history)

        log_snapshot_result(logger, symbol=symbol, saved=saved, data_points=len(history))
        return saved

    async def snapshot_one(self, symbol: str) -> bool:
        """Snapshot one instrument; False if skipped or the write failed."""
        return bool(await self._snapshot(symbol))

    async def snapshot_all(self, symbols: Optional[Iterable[str]] = None) -> SnapshotReport:
        """Snapshot every tracked instrument (or just ``symbols``) with a non-empty history."""
        symbols = self.instruments if symbols is None else tuple(symbols)
        results = await asyncio.gather(*(self._snapshot(s) for s in symbols), return_exceptions=True)

        report = SnapshotReport()
        for symbol, result in zip(symbols, results):
            if isinstance(result, Exception):
                report.failed[symbol] = str(result)
            elif result is None:
                report.skipped.append(symbol)
            elif result:
                report.saved.append(symbol)
            else:
                report.failed[symbol] = "save failed"

        logger.info("Snapshot pass complete", saved=report.saved_count, skipped=len(report.skipped),
                    failed=report.failed_count)
        return report

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    async def _collection_loop(self) -> None:
        while True:
            if not self._paused:
                try:
                    await self.collect_round()
                except Exception as e:
                    logger.error("Collection round crashed", error=str(e), error_type=type(e).__name__)
            await asyncio.sleep(self.params.update_interval_seconds)

    async def _snapshot_loop(self) -> None:
        while True:
            await asyncio.sleep(self.params.snapshot_interval_seconds)
            await self.snapshot_all()

    async def start(self) -> None:
        """Start the collection and snapshot timers. The first round runs immediately."""
        if self._collection_task is None or self._collection_task.done():
            self._collection_task = asyncio.create_task(self._collection_loop())
        if self._snapshot_task is None or self._snapshot_task.done():
            self._snapshot_task = asyncio.create_task(self._snapshot_loop())
        self._paused = False

        logger.info("Store timers started",
                    update_interval_seconds=self.params.update_interval_seconds,
                    snapshot_interval_seconds=self.params.snapshot_interval_seconds)

    def pause(self) -> None:
        """Skip collection rounds until ``resume``; snapshots continue."""
        self._paused = True
        logger.info("Collection paused")

    def resume(self) -> None:
        self._paused = False
        logger.info("Collection resumed")

    async def shutdown(self) -> SnapshotReport:
        """
        Cancel both timers, then take a final snapshot of every instrument.

        Returns:
            Per-instrument results of the final snapshot
        """
        tasks = [t for t in (self._collection_task, self._snapshot_task) if t is not None]
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._collection_task = None
        self._snapshot_task = None

        report = await self.snapshot_all()
        for symbol, error in report.failed.items():
            logger.error("Final snapshot failed", symbol=symbol, error=error)

        logger.info("Store shut down", saved=report.saved_count, failed=report.failed_count)
        return report

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_history(self, symbol: str) -> Optional[History]:
        """A copy of the history for ``symbol``, or None if untracked."""
        history = self._histories.get(symbol)
        if history is None or symbol not in self._instruments:
            return None
        return history.copy()

    def get_all_histories(self) -> dict[str, History]:
        """Copies of every tracked history, keyed by symbol."""
        return {
            symbol: self._histories[symbol].copy()
            for symbol in self.instruments
            if symbol in self._histories
        }

    def has_enough_data(self, symbol: str, min_points: Optional[int] = None) -> bool:
        required = self.params.min_analysis_points if min_points is None else min_points
        history = self._histories.get(symbol)
        return history is not None and len(history) >= required

    def get_stats(self) -> dict[str, Any]:
        return {
            **self.stats.to_dict(),
            "is_collecting": self.is_collecting,
            "instruments": list(self.instruments),
            "data_points_per_instrument": {
                symbol: len(self._histories.get(symbol) or ()) for symbol in self.instruments
            },
        }
