"""Simple moving average crossover"""

from ..models.signals import IndicatorResult, Suggestion
from .base import BaseIndicator, sma


class MovingAverageCrossoverIndicator(BaseIndicator):
    """Fast/slow SMA crossover compared against the previous bar."""

    name = "moving_average"

    def __init__(self, fast_period: int = 10, slow_period: int = 21):
        self.fast_period = fast_period
        self.slow_period = slow_period

    @property
    def min_data_points(self) -> int:
        # One extra point for the previous-bar comparison
        return max(self.fast_period, self.slow_period) + 1

    def neutral_values(self) -> dict:
        return {"fast_ma": 0.0, "slow_ma": 0.0, "spread": 0.0, "spread_percent": 0.0}

    def _calculate(self, series: dict[str, list[float]]) -> IndicatorResult:
        closes = series["closes"]
        fast = sma(closes, self.fast_period)
        slow = sma(closes, self.slow_period)
        prev_fast = sma(closes[:-1], self.fast_period)
        prev_slow = sma(closes[:-1], self.slow_period)
        price = closes[-1]

        spread_percent = abs(fast - slow) / slow * 100
        self._require_finite(spread_percent=spread_percent)

        if fast > slow:
            trend = "bullish"
        elif fast < slow:
            trend = "bearish"
        else:
            trend = "neutral"

        crossover = None
        if prev_fast <= prev_slow and fast > slow:
            crossover = "golden_cross"
            suggestion, confidence = Suggestion.BUY, min(1.0, spread_percent / 2)
            strength = confidence
            interpretation = "Golden cross - fast MA crossed above slow MA"
        elif prev_fast >= prev_slow and fast < slow:
            crossover = "death_cross"
            suggestion, confidence = Suggestion.SELL, min(1.0, spread_percent / 2)
            strength = confidence
            interpretation = "Death cross - fast MA crossed below slow MA"
        elif fast > slow and spread_percent > 1:
            suggestion, confidence = Suggestion.BUY, min(0.6, spread_percent / 5)
            strength = confidence * 0.7
            interpretation = "Strong uptrend"
        elif fast < slow and spread_percent > 1:
            suggestion, confidence = Suggestion.SELL, min(0.6, spread_percent / 5)
            strength = confidence * 0.7
            interpretation = "Strong downtrend"
        elif price > fast > slow or price < fast < slow:
            suggestion, confidence, strength = Suggestion.HOLD, 0.2, 0.1
            interpretation = "Trend intact without a strong signal"
        else:
            suggestion, confidence, strength = Suggestion.HOLD, 0.0, 0.0
            interpretation = "No clear MA signal - averages too close"

        return IndicatorResult(
            name=self.name,
            suggestion=suggestion,
            confidence=round(confidence, 4),
            strength=round(strength, 4),
            values={
                "fast_ma": round(fast, 6),
                "slow_ma": round(slow, 6),
                "spread": round(fast - slow, 6),
                "spread_percent": round((fast - slow) / slow * 100, 4),
            },
            metadata={
                "fast_period": self.fast_period,
                "slow_period": self.slow_period,
                "crossover": crossover,
                "trend": trend,
                "trend_strength": _trend_strength(fast, slow),
                "interpretation": interpretation,
            },
        )


def _trend_strength(fast: float, slow: float) -> str:
    spread_percent = abs(fast - slow) / max(fast, slow) * 100
    if spread_percent > 5:
        return "Very Strong"
    if spread_percent > 2:
        return "Strong"
    if spread_percent > 1:
        return "Moderate"
    if spread_percent > 0.5:
        return "Weak"
    return "Very Weak"
