"""Tests for epoch-millisecond time helpers."""

from datetime import datetime, timezone
from unittest.mock import patch

from ensemble_app.utils.time import age_hours, ms_to_datetime, now_ms


class TestNowMs:
    """Test now_ms function."""

    def test_uses_wall_clock_in_milliseconds(self):
        with patch("ensemble_app.utils.time.time.time", return_value=1_700_000_000.5):
            assert now_ms() == 1_700_000_000_500


class TestMsToDatetime:
    """Test ms_to_datetime function."""

    def test_returns_aware_utc_datetime(self):
        result = ms_to_datetime(1_672_574_400_000)
        assert result == datetime(2023, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestAgeHours:
    """Test age_hours function."""

    def test_elapsed_hours(self):
        assert age_hours(0.0, now=7200.0) == 2.0

    def test_future_modification_is_zero(self):
        assert age_hours(10_000.0, now=0.0) == 0.0
