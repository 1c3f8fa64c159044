"""Moving Average Convergence Divergence"""

from typing import Optional

from ..models.signals import IndicatorResult, Suggestion
from .base import BaseIndicator, ema, ema_series

EPSILON = 0.000001


def calculate_macd_history(closes: list[float], fast_period: int = 12, slow_period: int = 26) -> list[float]:
    """
    MACD line for every prefix long enough for both EMAs.

    Element ``k`` is fast EMA minus slow EMA of ``closes[:max(fast, slow) + k]``.
    """
    start = max(fast_period, slow_period)
    fast = ema_series(closes, fast_period)
    slow = ema_series(closes, slow_period)

    # ema_series element j covers the prefix of length period + j
    return [
        fast[i - fast_period] - slow[i - slow_period]
        for i in range(start, len(closes) + 1)
    ]


class MACDIndicator(BaseIndicator):
    """MACD with signal-line and zero-line crossovers plus histogram momentum."""

    name = "macd"

    def __init__(self, fast_period: int = 12, slow_period: int = 26, signal_period: int = 9):
        self.fast_period = fast_period
        self.slow_period = slow_period
        self.signal_period = signal_period

    @property
    def min_data_points(self) -> int:
        return self.slow_period + self.signal_period

    def neutral_values(self) -> dict:
        return {"macd_line": 0.0, "signal_line": 0.0, "histogram": 0.0}

    def _calculate(self, series: dict[str, list[float]]) -> IndicatorResult:
        history = calculate_macd_history(series["closes"], self.fast_period, self.slow_period)
        macd_line = history[-1]
        signal_line = ema(history, self.signal_period)
        histogram = macd_line - signal_line
        self._require_finite(macd_line=macd_line, signal_line=signal_line)

        previous = history[:-1]
        prev_signal = ema(previous, self.signal_period) if len(previous) >= self.signal_period else signal_line
        prev_macd = history[-2] if len(history) >= 2 else macd_line

        suggestion, confidence, strength, crossover, interpretation = self._signal(
            macd_line, signal_line, histogram, prev_macd, prev_signal
        )

        return IndicatorResult(
            name=self.name,
            suggestion=suggestion,
            confidence=round(confidence, 4),
            strength=round(strength, 4),
            values={
                "macd_line": round(macd_line, 6),
                "signal_line": round(signal_line, 6),
                "histogram": round(histogram, 6),
            },
            metadata={
                "fast_period": self.fast_period,
                "slow_period": self.slow_period,
                "signal_period": self.signal_period,
                "crossover": crossover,
                "interpretation": interpretation,
            },
        )

    @staticmethod
    def _signal(
        macd_line: float,
        signal_line: float,
        histogram: float,
        prev_macd: float,
        prev_signal: float
    ) -> tuple[Suggestion, float, float, Optional[str], str]:
        signal_scale = abs(signal_line) or EPSILON

        if prev_macd <= prev_signal and macd_line > signal_line:
            confidence = min(1.0, abs(histogram) / signal_scale)
            return Suggestion.BUY, confidence, confidence, "bullish", "Bullish MACD crossover"

        if prev_macd >= prev_signal and macd_line < signal_line:
            confidence = min(1.0, abs(histogram) / signal_scale)
            return Suggestion.SELL, confidence, confidence, "bearish", "Bearish MACD crossover"

        if prev_macd <= 0 < macd_line:
            confidence = min(0.7, abs(macd_line) / 0.001)
            return Suggestion.BUY, confidence, confidence * 0.8, "zero_bullish", "MACD crossed above zero"

        if prev_macd >= 0 > macd_line:
            confidence = min(0.7, abs(macd_line) / 0.001)
            return Suggestion.SELL, confidence, confidence * 0.8, "zero_bearish", "MACD crossed below zero"

        if abs(histogram) > abs(signal_line) * 0.1:
            if histogram > 0 and macd_line > signal_line:
                confidence = min(0.5, histogram / signal_scale)
                return Suggestion.BUY, confidence, confidence * 0.6, None, "Strong bullish momentum"
            if histogram < 0 and macd_line < signal_line:
                confidence = min(0.5, abs(histogram) / signal_scale)
                return Suggestion.SELL, confidence, confidence * 0.6, None, "Strong bearish momentum"

        return Suggestion.HOLD, 0.0, 0.0, None, "No clear MACD signal"
