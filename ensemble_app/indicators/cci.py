"""Commodity Channel Index"""

from typing import Optional

from ..models.signals import IndicatorResult, Suggestion
from .base import BaseIndicator

CCI_FACTOR = 0.015


def typical_prices(highs: list[float], lows: list[float], closes: list[float]) -> list[float]:
    return [(h + l + c) / 3 for h, l, c in zip(highs, lows, closes)]


def calculate_cci(typical: list[float], period: int = 20) -> float:
    """CCI of the last ``period`` typical prices; 0 when there is no deviation."""
    recent = typical[-period:]
    mean = sum(recent) / period
    mean_deviation = sum(abs(tp - mean) for tp in recent) / period
    if mean_deviation == 0:
        return 0.0
    return (typical[-1] - mean) / (CCI_FACTOR * mean_deviation)


class CCIIndicator(BaseIndicator):
    """CCI levels with divergence and zero-line cross adjustments."""

    name = "cci"
    required_series = ("highs", "lows", "closes")

    def __init__(self, period: int = 20):
        self.period = period

    @property
    def min_data_points(self) -> int:
        return self.period

    def neutral_values(self) -> dict:
        return {"cci": 0.0}

    def _calculate(self, series: dict[str, list[float]]) -> IndicatorResult:
        typical = typical_prices(series["highs"], series["lows"], series["closes"])
        cci = calculate_cci(typical, self.period)
        self._require_finite(cci=cci)

        if cci > 200:
            level = "Extremely Overbought"
        elif cci > 100:
            level = "Overbought"
        elif cci > 0:
            level = "Bullish"
        elif cci > -100:
            level = "Bearish"
        elif cci > -200:
            level = "Oversold"
        else:
            level = "Extremely Oversold"

        if cci > 200:
            suggestion, confidence = Suggestion.SELL, min(1.0, (cci - 200) / 100)
            strength = confidence
        elif cci > 100:
            suggestion, confidence = Suggestion.SELL, min(0.7, (cci - 100) / 100)
            strength = confidence * 0.8
        elif cci < -200:
            suggestion, confidence = Suggestion.BUY, min(1.0, (-200 - cci) / 100)
            strength = confidence
        elif cci < -100:
            suggestion, confidence = Suggestion.BUY, min(0.7, (-100 - cci) / 100)
            strength = confidence * 0.8
        elif cci != 0:
            suggestion, confidence, strength = Suggestion.HOLD, 0.2, 0.1
        else:
            suggestion, confidence, strength = Suggestion.HOLD, 0.0, 0.0

        divergence = None
        if len(typical) >= self.period * 2:
            divergence = self._divergence(typical, cci)
            if divergence:
                confidence *= 1.1

        prev_cci = calculate_cci(typical[:-1], self.period) if len(typical) > self.period else 0.0
        zero_cross = None
        if prev_cci <= 0 < cci:
            zero_cross = "bullish"
            if suggestion == Suggestion.HOLD:
                suggestion, confidence, strength = Suggestion.BUY, 0.4, 0.3
        elif prev_cci >= 0 > cci:
            zero_cross = "bearish"
            if suggestion == Suggestion.HOLD:
                suggestion, confidence, strength = Suggestion.SELL, 0.4, 0.3

        return IndicatorResult(
            name=self.name,
            suggestion=suggestion,
            confidence=round(min(confidence, 1.0), 4),
            strength=round(strength, 4),
            values={
                "cci": round(cci, 2),
                "typical_price": round(typical[-1], 6),
            },
            metadata={
                "period": self.period,
                "factor": CCI_FACTOR,
                "level": level,
                "divergence": divergence,
                "zero_cross": zero_cross,
                "previous_cci": round(prev_cci, 2),
            },
        )

    def _divergence(self, typical: list[float], cci: float) -> Optional[str]:
        """
        Compare the latest window with the one before it.

        A lower low in price with a higher CCI is bullish; a higher high in
        price with a lower CCI is bearish.
        """
        recent = typical[-self.period:]
        older = typical[-2 * self.period:-self.period]
        older_cci = calculate_cci(typical[:-self.period], self.period)

        if min(recent) < min(older) and cci > older_cci:
            return "bullish"
        if max(recent) > max(older) and cci < older_cci:
            return "bearish"
        return None
