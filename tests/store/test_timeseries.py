"""Tests for the rolling time-series store."""

import asyncio
import json
import os
import threading
from unittest.mock import patch

import pytest

from ensemble_app.data.models import Observation, Tick
from ensemble_app.errors import TransientFeedError, ValidationError
from ensemble_app.persistence.snapshot_store import SnapshotStore
from ensemble_app.store.timeseries import TimeSeriesStore


def _observation(i: int, close: float = 100.0) -> Observation:
    return Observation(timestamp=1_700_000_000_000 + i, close=close, high=close + 1, low=close - 1, volume=10.0)


@pytest.fixture
def snapshot_store(temp_dir):
    return SnapshotStore(temp_dir)


@pytest.fixture
def store(fake_source, snapshot_store, store_params):
    return TimeSeriesStore(fake_source, snapshot_store, store_params())


class TestInitialization:
    """Test loading histories on startup."""

    @pytest.mark.asyncio
    async def test_backfills_when_no_snapshot(self, store, fake_source):
        outcomes = await store.initialize()

        assert set(outcomes) == {"XMR", "RVN"}
        assert all(o.source == "backfill" for o in outcomes.values())
        assert len(store.get_history("XMR")) == 60
        assert fake_source.backfill_calls == ["XMR", "RVN"]

    @pytest.mark.asyncio
    async def test_prefers_snapshot_over_backfill(self, store, snapshot_store, fake_source, make_history):
        snapshot_store.save("XMR", make_history([10.0, 11.0, 12.0]))

        outcomes = await store.initialize()

        assert outcomes["XMR"].source == "snapshot"
        assert store.get_history("XMR").closes == [10.0, 11.0, 12.0]
        assert fake_source.backfill_calls == ["RVN"]

    @pytest.mark.asyncio
    async def test_snapshot_is_trimmed_to_retention(self, fake_source, snapshot_store, store_params, make_history):
        snapshot_store.save("XMR", make_history([10.0 + i for i in range(30)]))
        store = TimeSeriesStore(fake_source, snapshot_store, store_params(retention=10, instruments=("XMR",)))

        await store.initialize()

        assert store.get_history("XMR").closes == [30.0 + i for i in range(10)]

    @pytest.mark.asyncio
    async def test_corrupt_snapshot_falls_back_to_backfill(self, store, temp_dir):
        with open(os.path.join(temp_dir, "xmr_history.json"), "w") as f:
            f.write("{broken")

        outcomes = await store.initialize()

        assert outcomes["XMR"].source == "backfill"
        assert len(store.get_history("XMR")) == 60

    @pytest.mark.asyncio
    async def test_one_failure_does_not_abort_others(self, store, fake_source):
        fake_source.failing_backfill.add("XMR")

        outcomes = await store.initialize()

        assert outcomes["XMR"].succeeded is False
        assert outcomes["XMR"].source == "empty"
        assert outcomes["RVN"].succeeded is True
        assert store.instruments == ("XMR", "RVN")
        assert len(store.get_history("XMR")) == 0
        assert len(store.get_history("RVN")) == 60

    @pytest.mark.asyncio
    async def test_out_of_range_snapshot_does_not_abort_others(self, store, snapshot_store, temp_dir, make_history):
        snapshot_store.save("XMR", make_history([10.0, 11.0, 12.0]))
        path = os.path.join(temp_dir, "xmr_history.json")
        with open(path) as f:
            data = json.load(f)
        data["history"]["closes"][0] = 10**400
        with open(path, "w") as f:
            json.dump(data, f)

        outcomes = await store.initialize()

        assert outcomes["XMR"].source == "backfill"
        assert outcomes["RVN"].source == "backfill"
        assert len(store.get_history("XMR")) == 60

    @pytest.mark.asyncio
    async def test_unexpected_load_error_is_isolated(self, store, snapshot_store):
        original = snapshot_store.load

        def load(symbol):
            if symbol == "XMR":
                raise RuntimeError("disk exploded")
            return original(symbol)

        with patch.object(snapshot_store, "load", side_effect=load):
            outcomes = await store.initialize()

        assert outcomes["XMR"].source == "empty"
        assert "disk exploded" in outcomes["XMR"].error
        assert outcomes["RVN"].source == "backfill"
        assert store.instruments == ("XMR", "RVN")

    @pytest.mark.asyncio
    async def test_invalid_bars_are_skipped(self, store, fake_source, make_bars):
        bars = make_bars(10)
        bars[3] = bars[3].__class__(timestamp=bars[3].timestamp, close=-1.0, high=1.0, low=1.0, volume=1.0)
        fake_source.bars["XMR"] = bars

        await store.initialize(["XMR"])

        assert len(store.get_history("XMR")) == 9


class TestIngest:
    """Test validated appends and FIFO eviction."""

    @pytest.mark.asyncio
    async def test_fifo_eviction_keeps_last_r(self, fake_source, store_params):
        store = TimeSeriesStore(fake_source, None, store_params(retention=5, instruments=("XMR",)))
        fake_source.bars["XMR"] = []
        await store.initialize()

        for i in range(8):
            assert store.ingest("XMR", _observation(i, close=100.0 + i)) is True

        history = store.get_history("XMR")
        assert history.closes == [103.0, 104.0, 105.0, 106.0, 107.0]
        assert history.is_consistent()
        assert store.stats.total_data_points == 8

    @pytest.mark.asyncio
    async def test_lengths_stay_equal_and_bounded(self, store):
        await store.initialize()

        for i in range(150):
            store.ingest("RVN", _observation(i))
            history = store.get_history("RVN")
            assert history.is_consistent()
            assert len(history) <= store.params.retention

    @pytest.mark.asyncio
    async def test_invalid_observation_is_rejected_without_mutation(self, store):
        await store.initialize()
        before = store.get_history("XMR")

        bad = {"timestamp": 1, "close": float("nan"), "high": 1.0, "low": 1.0, "volume": 1.0}
        assert store.ingest("XMR", bad) is False

        assert store.get_history("XMR") == before
        assert store.stats.rejected_observations == 1

    @pytest.mark.asyncio
    async def test_out_of_range_integer_is_rejected(self, store):
        await store.initialize()
        before = store.get_history("XMR")

        bad = {"timestamp": 1_700_000_000_000, "close": 10**400, "high": 10**400, "low": 1.0, "volume": 1.0}
        assert store.ingest("XMR", bad) is False

        assert store.get_history("XMR") == before
        assert store.stats.rejected_observations == 1

    def test_untracked_symbol_is_ignored(self, store):
        assert store.ingest("BTC", _observation(0)) is False
        assert store.stats.rejected_observations == 0


class TestInstrumentLifecycle:
    """Test adding, removing and replacing instruments."""

    @pytest.mark.asyncio
    async def test_add_instrument(self, store):
        await store.initialize()

        assert await store.add_instrument(" doge ") is True
        assert "DOGE" in store.instruments
        assert len(store.get_history("DOGE")) == 60

    @pytest.mark.asyncio
    async def test_duplicate_add_leaves_history_unchanged(self, store):
        await store.initialize()
        store.ingest("XMR", _observation(999, close=123.0))
        before = store.get_history("XMR")

        assert await store.add_instrument("XMR") is False
        assert store.get_history("XMR") == before

    @pytest.mark.asyncio
    async def test_add_with_failing_backfill_rolls_back(self, store, fake_source):
        await store.initialize()
        fake_source.failing_backfill.add("KAS")

        with pytest.raises(TransientFeedError) as exc_info:
            await store.add_instrument("KAS")

        assert exc_info.value.symbol == "KAS"
        assert "KAS" not in store.instruments
        assert store.get_history("KAS") is None

    @pytest.mark.asyncio
    async def test_add_invalid_symbol(self, store):
        with pytest.raises(ValidationError):
            await store.add_instrument("not a symbol")

    @pytest.mark.asyncio
    async def test_remove_instrument_deletes_snapshot(self, store, snapshot_store):
        await store.initialize()
        await store.snapshot_all()
        assert "XMR" in snapshot_store.list_symbols()

        assert await store.remove_instrument("XMR") is True

        assert store.instruments == ("RVN",)
        assert store.get_history("XMR") is None
        assert "XMR" not in snapshot_store.list_symbols()
        assert await store.remove_instrument("XMR") is False

    @pytest.mark.asyncio
    async def test_untracked_symbols_release_their_locks(self, store):
        await store.initialize()
        await store.snapshot_all()
        assert {"XMR", "RVN"} <= set(store._locks)

        await store.remove_instrument("XMR")
        assert "XMR" not in store._locks

        await store.replace_instruments(["BTC"])
        assert "RVN" not in store._locks
        assert "BTC" in store._locks

    @pytest.mark.asyncio
    async def test_remove_can_keep_snapshot(self, store, snapshot_store):
        await store.initialize()
        await store.snapshot_all()

        await store.remove_instrument("XMR", delete_snapshot=False)

        assert "XMR" in snapshot_store.list_symbols()

    @pytest.mark.asyncio
    async def test_replace_instruments(self, store, snapshot_store, fake_source):
        await store.initialize()
        await store.snapshot_all()

        changes = await store.replace_instruments(["BTC", "ETH"])

        assert sorted(changes.removed) == ["RVN", "XMR"]
        assert sorted(changes.added) == ["BTC", "ETH"]
        assert changes.success is True
        assert store.instruments == ("BTC", "ETH")
        assert store.get_history("XMR") is None
        assert snapshot_store.list_symbols() == []
        assert len(store.get_history("BTC")) == 60
        assert "BTC" in fake_source.backfill_calls

    @pytest.mark.asyncio
    async def test_replace_excludes_failed_additions(self, store, fake_source):
        await store.initialize()
        fake_source.failing_backfill.add("ETH")

        changes = await store.replace_instruments(["XMR", "BTC", "ETH"])

        assert changes.added == ["BTC"]
        assert changes.removed == ["RVN"]
        assert "ETH" in changes.failed
        assert store.instruments == ("XMR", "BTC")
        assert changes.to_dict()["success"] is False

    @pytest.mark.asyncio
    async def test_replace_with_invalid_symbol_changes_nothing(self, store):
        await store.initialize()

        with pytest.raises(ValidationError):
            await store.replace_instruments(["BTC", "bad-symbol"])

        assert store.instruments == ("XMR", "RVN")


class TestCollection:
    """Test live collection rounds."""

    @pytest.mark.asyncio
    async def test_round_appends_one_point_per_instrument(self, store):
        await store.initialize()

        summary = await store.collect_round()

        assert summary.successful == 2
        assert summary.failed == 0
        assert len(store.get_history("XMR")) == 61
        assert store.stats.successful_updates == 2
        assert store.stats.last_update is not None

    @pytest.mark.asyncio
    async def test_failures_are_isolated_and_counted(self, store, fake_source):
        await store.initialize()
        fake_source.failing_ticks.add("XMR")

        summary = await store.collect_round()

        assert summary.successful == 1
        assert summary.failed == 1
        assert "XMR" in summary.errors
        assert store.stats.failed_updates == 1
        assert len(store.get_history("XMR")) == 60
        assert len(store.get_history("RVN")) == 61

    @pytest.mark.asyncio
    async def test_mapping_ticks_are_accepted(self, store, fake_source):
        await store.initialize()
        fake_source.ticks["XMR"] = {"price": 150.0, "high": 155.0, "low": 145.0, "volume": 12.0}

        await store.collect_round()

        assert store.get_history("XMR").closes[-1] == 150.0

    @pytest.mark.asyncio
    async def test_tick_without_volume_is_rejected(self, store, fake_source):
        await store.initialize()
        fake_source.ticks["XMR"] = Tick(price=150.0)

        summary = await store.collect_round()

        assert summary.errors["XMR"] == "observation rejected"
        assert store.stats.rejected_observations == 1

    @pytest.mark.asyncio
    async def test_timer_runs_first_round_immediately(self, store, fake_source):
        await store.initialize()
        await store.start()
        await asyncio.sleep(0.05)

        assert store.is_collecting is True
        assert set(fake_source.tick_calls) == {"XMR", "RVN"}

        store.pause()
        assert store.is_collecting is False
        await store.shutdown()


class TestSnapshots:
    """Test snapshot passes and shutdown."""

    @pytest.mark.asyncio
    async def test_snapshot_all_skips_empty_histories(self, store, fake_source, snapshot_store):
        fake_source.bars["RVN"] = []
        await store.initialize()

        report = await store.snapshot_all()

        assert report.saved == ["XMR"]
        assert report.skipped == ["RVN"]
        assert snapshot_store.list_symbols() == ["XMR"]

    @pytest.mark.asyncio
    async def test_snapshot_one(self, store, snapshot_store):
        await store.initialize()

        assert await store.snapshot_one("RVN") is True
        assert await store.snapshot_one("BTC") is False
        assert snapshot_store.load("RVN") == store.get_history("RVN")

    @pytest.mark.asyncio
    async def test_shutdown_snapshots_every_history(self, store, snapshot_store):
        await store.initialize()
        await store.start()
        await asyncio.sleep(0)

        report = await store.shutdown()

        assert sorted(report.saved) == ["RVN", "XMR"]
        assert report.failed_count == 0
        assert store.is_collecting is False
        assert snapshot_store.load("XMR") == store.get_history("XMR")

    @pytest.mark.asyncio
    async def test_restart_recovers_from_snapshot(self, fake_source, snapshot_store, store_params):
        first = TimeSeriesStore(fake_source, snapshot_store, store_params())
        await first.initialize()
        first.ingest("XMR", _observation(10_000_000, close=321.0))
        await first.shutdown()

        second = TimeSeriesStore(fake_source, snapshot_store, store_params())
        outcomes = await second.initialize()

        assert outcomes["XMR"].source == "snapshot"
        assert second.get_history("XMR").closes[-1] == 321.0


class TestConcurrentSnapshots:
    """Snapshot writes running alongside ingestion and removal."""

    @staticmethod
    def _blocking_save(snapshot_store):
        started = threading.Event()
        release = threading.Event()
        original = snapshot_store.save

        def save(symbol, history):
            started.set()
            release.wait(5)
            return original(symbol, history)

        return save, started, release

    @staticmethod
    async def _wait_for(event):
        for _ in range(500):
            if event.is_set():
                return
            await asyncio.sleep(0.01)
        raise AssertionError("save never started")

    @pytest.mark.asyncio
    async def test_ingest_during_pending_save(self, store, snapshot_store):
        await store.initialize()
        save, started, release = self._blocking_save(snapshot_store)

        with patch.object(snapshot_store, "save", side_effect=save):
            task = asyncio.create_task(store.snapshot_one("XMR"))
            await self._wait_for(started)

            assert store.ingest("XMR", _observation(10_000_000, close=555.0)) is True
            release.set()
            assert await task is True

        saved = snapshot_store.load("XMR")
        live = store.get_history("XMR")
        assert len(saved) == 60
        assert 555.0 not in saved.closes
        assert len(live) == 61
        assert live.closes[-1] == 555.0

    @pytest.mark.asyncio
    async def test_remove_during_pending_save_leaves_no_file(self, store, snapshot_store, temp_dir):
        await store.initialize()
        save, started, release = self._blocking_save(snapshot_store)

        with patch.object(snapshot_store, "save", side_effect=save):
            snapshot_task = asyncio.create_task(store.snapshot_one("XMR"))
            await self._wait_for(started)

            remove_task = asyncio.create_task(store.remove_instrument("XMR"))
            await asyncio.sleep(0.05)
            assert remove_task.done() is False

            release.set()
            assert await snapshot_task is True
            assert await remove_task is True

        assert "XMR" not in store.instruments
        assert not os.path.exists(os.path.join(temp_dir, "xmr_history.json"))
        assert snapshot_store.list_symbols() == []


class TestStats:
    """Test runtime statistics."""

    @pytest.mark.asyncio
    async def test_get_stats(self, store):
        await store.initialize()
        stats = store.get_stats()

        assert stats["instruments"] == ["XMR", "RVN"]
        assert stats["data_points_per_instrument"] == {"XMR": 60, "RVN": 60}
        assert stats["is_collecting"] is False

    @pytest.mark.asyncio
    async def test_get_all_histories_returns_copies(self, store):
        await store.initialize()

        histories = store.get_all_histories()
        assert list(histories) == ["XMR", "RVN"]

        histories["XMR"].closes.clear()
        assert len(store.get_history("XMR")) == 60

    @pytest.mark.asyncio
    async def test_has_enough_data(self, store):
        await store.initialize()

        assert store.has_enough_data("XMR") is True
        assert store.has_enough_data("XMR", min_points=61) is False
        assert store.has_enough_data("BTC") is False
