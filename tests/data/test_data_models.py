"""Tests for observations, rolling histories and the tracked instrument set."""

from ensemble_app.data.models import Bar, History, Observation, Tick, TrackedInstrumentSet


def _observation(i: int) -> Observation:
    return Observation(timestamp=1_000 + i, close=10.0 + i, high=11.0 + i, low=9.0 + i, volume=100.0 + i)


class TestHistory:
    """Test History behaviour."""

    def test_append_keeps_series_parallel(self):
        history = History()
        for i in range(5):
            history.append(_observation(i))

        assert len(history) == 5
        assert history.is_consistent()
        assert history.timestamps == [1000, 1001, 1002, 1003, 1004]
        assert history.prices == history.closes

    def test_trim_drops_oldest_points(self):
        history = History.from_observations(_observation(i) for i in range(10))

        removed = history.trim(4)

        assert removed == 6
        assert history.closes == [16.0, 17.0, 18.0, 19.0]
        assert history.is_consistent()

    def test_trim_noop_when_short(self):
        history = History.from_observations(_observation(i) for i in range(3))
        assert history.trim(10) == 0
        assert len(history) == 3

    def test_copy_is_independent(self):
        history = History.from_observations(_observation(i) for i in range(3))
        copied = history.copy()
        copied.append(_observation(3))

        assert len(history) == 3
        assert len(copied) == 4

    def test_dict_round_trip(self):
        history = History.from_observations(_observation(i) for i in range(3))
        data = history.to_dict()

        assert data["prices"] == data["closes"]
        assert History.from_dict(data) == history

    def test_last_observation(self):
        assert History().last_observation is None
        history = History.from_observations(_observation(i) for i in range(3))
        assert history.last_observation == _observation(2)
        assert list(history.observations())[0] == _observation(0)


class TestSourceRecords:
    """Test conversion of source ticks and bars."""

    def test_tick_falls_back_to_price(self):
        observation = Tick(price=5.0, volume=10.0).to_observation(123)
        assert observation == Observation(timestamp=123, close=5.0, high=5.0, low=5.0, volume=10.0)

    def test_tick_without_volume_gets_zero(self):
        assert Tick(price=5.0).to_observation(1).volume == 0.0

    def test_bar_drops_open(self):
        bar = Bar(timestamp=1, close=2.0, high=3.0, low=1.0, volume=4.0, open=1.5)
        assert bar.to_observation() == Observation(timestamp=1, close=2.0, high=3.0, low=1.0, volume=4.0)


class TestTrackedInstrumentSet:
    """Test the owned instrument set."""

    def test_add_and_discard(self):
        instruments = TrackedInstrumentSet(["XMR"])

        assert instruments.add("RVN") is True
        assert instruments.add("RVN") is False
        assert instruments.discard("XMR") is True
        assert instruments.discard("XMR") is False
        assert instruments.as_tuple() == ("RVN",)

    def test_replace_preserves_order(self):
        instruments = TrackedInstrumentSet(["XMR", "RVN"])
        instruments.replace(["BTC", "ETH"])

        assert list(instruments) == ["BTC", "ETH"]
        assert "XMR" not in instruments
        assert len(instruments) == 2

    def test_iteration_is_over_a_copy(self):
        instruments = TrackedInstrumentSet(["XMR", "RVN"])
        for symbol in instruments:
            instruments.discard(symbol)
        assert len(instruments) == 0
