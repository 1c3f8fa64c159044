"""Stochastic oscillator"""

from typing import Optional

from ..models.signals import IndicatorResult, Suggestion
from .base import BaseIndicator


def calculate_k_values(highs: list[float], lows: list[float], closes: list[float], k_period: int) -> list[float]:
    """%K for every bar with a full lookback window; 50 when the range is zero."""
    k_values = []
    for i in range(k_period - 1, len(closes)):
        highest = max(highs[i - k_period + 1:i + 1])
        lowest = min(lows[i - k_period + 1:i + 1])
        if highest == lowest:
            k_values.append(50.0)
        else:
            k_values.append((closes[i] - lowest) / (highest - lowest) * 100)
    return k_values


class StochasticIndicator(BaseIndicator):
    """%K/%D crossovers, weighted up inside the 30/70 zones."""

    name = "stochastic"
    required_series = ("highs", "lows", "closes")

    def __init__(self, k_period: int = 14, d_period: int = 3):
        self.k_period = k_period
        self.d_period = d_period

    @property
    def min_data_points(self) -> int:
        return self.k_period + self.d_period - 1

    def neutral_values(self) -> dict:
        return {"k": 50.0, "d": 50.0}

    def _calculate(self, series: dict[str, list[float]]) -> IndicatorResult:
        k_values = calculate_k_values(series["highs"], series["lows"], series["closes"], self.k_period)

        d_values = []
        for i in range(self.d_period - 1, len(k_values)):
            d_values.append(sum(k_values[i - self.d_period + 1:i + 1]) / self.d_period)

        current_k = k_values[-1]
        current_d = d_values[-1] if d_values else current_k
        prev_k = k_values[-2] if len(k_values) > 1 else current_k
        prev_d = d_values[-2] if len(d_values) > 1 else current_d
        self._require_finite(k=current_k, d=current_d)

        suggestion, confidence, strength, crossover = self._signal(current_k, current_d, prev_k, prev_d)

        return IndicatorResult(
            name=self.name,
            suggestion=suggestion,
            confidence=round(confidence, 4),
            strength=round(strength, 4),
            values={"k": round(current_k, 2), "d": round(current_d, 2)},
            metadata={
                "k_period": self.k_period,
                "d_period": self.d_period,
                "crossover": crossover,
                "has_enough_data": bool(d_values),
            },
        )

    @staticmethod
    def _signal(k: float, d: float, prev_k: float, prev_d: float) -> tuple[Suggestion, float, float, Optional[str]]:
        bullish_cross = prev_k <= prev_d and k > d
        bearish_cross = prev_k >= prev_d and k < d

        if bullish_cross and k < 30:
            confidence = min(1.0, (30 - k) / 20 + 0.3)
            return Suggestion.BUY, confidence, confidence, "bullish"
        if bearish_cross and k > 70:
            confidence = min(1.0, (k - 70) / 20 + 0.3)
            return Suggestion.SELL, confidence, confidence, "bearish"
        if bullish_cross:
            return Suggestion.BUY, 0.6, 0.5, "bullish"
        if bearish_cross:
            return Suggestion.SELL, 0.6, 0.5, "bearish"
        if k > 80 and d > 80:
            confidence = min(0.7, (k - 80) / 20)
            return Suggestion.SELL, confidence, confidence * 0.8, None
        if k < 20 and d < 20:
            confidence = min(0.7, (20 - k) / 20)
            return Suggestion.BUY, confidence, confidence * 0.8, None
        return Suggestion.HOLD, 0.0, 0.0, None
