"""
End-to-end tests: backfill, live collection, signals, snapshots and restart.
"""

from dataclasses import replace
from pathlib import Path

import pytest

from ensemble_app.config.defaults import PersistenceParams, get_default_config
from ensemble_app.data.models import Tick
from ensemble_app.engine import EnsembleSignalEngine
from ensemble_app.models.signals import Suggestion


@pytest.fixture
def config(temp_dir, store_params):
    return replace(
        get_default_config(),
        store=store_params(retention=80, instruments=("XMR", "RVN", "KAS")),
        persistence=PersistenceParams(data_dir=str(Path(temp_dir) / "pairs")),
    )


class TestFullPipeline:
    """Test the complete data flow through the engine."""

    @pytest.mark.asyncio
    async def test_collect_analyze_and_recover(self, fake_source, config):
        fake_source.failing_backfill.add("KAS")
        engine = EnsembleSignalEngine(fake_source, config=config)

        outcomes = await engine.store.initialize()
        assert outcomes["KAS"].succeeded is False

        # Prices keep climbing across thirty live rounds
        for i in range(30):
            price = 130.0 + i
            fake_source.ticks["XMR"] = Tick(price=price, high=price + 1, low=price - 1, volume=900.0)
            fake_source.ticks["RVN"] = Tick(price=price, high=price + 1, low=price - 1, volume=900.0)
            fake_source.ticks["KAS"] = Tick(price=price, high=price + 1, low=price - 1, volume=900.0)
            await engine.store.collect_round()

        xmr = engine.get_history("XMR")
        assert len(xmr) == 80
        assert xmr.is_consistent()
        assert xmr.closes[-1] == 159.0
        assert len(engine.get_history("KAS")) == 30

        signal = engine.get_ensemble_signal("XMR")
        assert signal.metadata["valid_indicator_count"] == 11
        assert signal.suggestion in (Suggestion.BUY, Suggestion.SELL, Suggestion.HOLD)

        kas_signal = engine.get_ensemble_signal("KAS")
        assert kas_signal.metadata["insufficient_data"] is True
        assert kas_signal.metadata["valid_indicator_count"] < 11

        report = await engine.shutdown()
        assert sorted(report.saved) == ["KAS", "RVN", "XMR"]

        # A fresh engine over the same data directory resumes from snapshots
        restarted = EnsembleSignalEngine(fake_source, config=config)
        backfills_before = len(fake_source.backfill_calls)
        restarted_outcomes = await restarted.store.initialize()

        assert all(o.source == "snapshot" for o in restarted_outcomes.values())
        assert len(fake_source.backfill_calls) == backfills_before
        assert restarted.get_history("XMR") == xmr

        stats = restarted.get_storage_stats()
        assert stats.instrument_count == 3
        assert {info.symbol: info.data_point_count for info in stats.per_instrument}["KAS"] == 30

    @pytest.mark.asyncio
    async def test_replacing_instruments_end_to_end(self, fake_source, config):
        engine = EnsembleSignalEngine(fake_source, config=config)
        await engine.store.initialize()
        await engine.force_snapshot()

        changes = await engine.replace_instruments(["XMR", "BTC", "ETH"])

        assert sorted(changes.added) == ["BTC", "ETH"]
        assert sorted(changes.removed) == ["KAS", "RVN"]
        assert engine.store.instruments == ("XMR", "BTC", "ETH")
        assert engine.snapshot_store.list_symbols() == ["XMR"]
        assert engine.get_ensemble_signal("BTC").metadata["data_points"] == 60
        await engine.shutdown()
