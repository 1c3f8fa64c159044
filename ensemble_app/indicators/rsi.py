"""Relative Strength Index"""

from ..models.signals import IndicatorResult, Suggestion
from .base import BaseIndicator, wilder_series


def calculate_rsi_averages(closes: list[float], period: int = 14) -> tuple[float, float]:
    """
    Wilder-smoothed average gain and average loss.

    Args:
        closes: Close prices, at least ``period + 1`` of them
        period: RSI period

    Returns:
        (average gain, average loss)
    """
    gains = []
    losses = []
    for i in range(1, len(closes)):
        change = closes[i] - closes[i - 1]
        gains.append(max(change, 0.0))
        losses.append(max(-change, 0.0))

    return wilder_series(gains, period)[-1], wilder_series(losses, period)[-1]


class RSIIndicator(BaseIndicator):
    """RSI with threshold-distance scaled overbought/oversold signals."""

    name = "rsi"

    def __init__(self, period: int = 14):
        self.period = period

    @property
    def min_data_points(self) -> int:
        return self.period + 1

    def neutral_values(self) -> dict:
        return {"value": 50.0}

    def _calculate(self, series: dict[str, list[float]]) -> IndicatorResult:
        avg_gain, avg_loss = calculate_rsi_averages(series["closes"], self.period)
        metadata = {
            "period": self.period,
            "avg_gain": round(avg_gain, 8),
            "avg_loss": round(avg_loss, 8),
        }

        # Checked before avg_gain, so flat prices also read as 100
        if avg_loss == 0:
            return IndicatorResult(
                name=self.name,
                suggestion=Suggestion.SELL,
                confidence=1.0,
                strength=1.0,
                values={"value": 100.0},
                metadata={**metadata, "interpretation": "Extremely overbought - no losses in period"},
            )

        if avg_gain == 0:
            return IndicatorResult(
                name=self.name,
                suggestion=Suggestion.BUY,
                confidence=1.0,
                strength=1.0,
                values={"value": 0.0},
                metadata={**metadata, "interpretation": "Extremely oversold - no gains in period"},
            )

        rs = avg_gain / avg_loss
        value = 100 - (100 / (1 + rs))
        self._require_finite(rsi=value)

        suggestion, confidence, strength, interpretation = self._signal(value)
        return IndicatorResult(
            name=self.name,
            suggestion=suggestion,
            confidence=round(confidence, 4),
            strength=round(strength, 4),
            values={"value": round(value, 2)},
            metadata={**metadata, "interpretation": interpretation},
        )

    @staticmethod
    def _signal(value: float) -> tuple[Suggestion, float, float, str]:
        if value > 80:
            confidence = (value - 80) / 20
            return Suggestion.SELL, confidence, confidence, "Extremely overbought"
        if value > 70:
            confidence = min(1.0, (value - 70) / 30)
            return Suggestion.SELL, confidence, confidence * 0.8, "Overbought"
        if value < 20:
            confidence = (20 - value) / 20
            return Suggestion.BUY, confidence, confidence, "Extremely oversold"
        if value < 30:
            confidence = (30 - value) / 30
            return Suggestion.BUY, confidence, confidence * 0.8, "Oversold"
        return Suggestion.HOLD, 0.0, 0.0, "Neutral"
