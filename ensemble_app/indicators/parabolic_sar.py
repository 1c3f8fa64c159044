"""Parabolic SAR"""

from dataclasses import dataclass

from ..models.signals import IndicatorResult, Suggestion
from .base import BaseIndicator


@dataclass(frozen=True)
class SARPoint:
    """SAR state after one bar."""
    sar: float
    trend: str      # 'uptrend' or 'downtrend'
    af: float
    ep: float


def initial_trend(highs: list[float], lows: list[float], closes: list[float]) -> str:
    if closes[1] > closes[0] and highs[1] > highs[0]:
        return "uptrend"
    if closes[1] < closes[0] and lows[1] < lows[0]:
        return "downtrend"
    return "uptrend"


def calculate_sar_series(
    highs: list[float],
    lows: list[float],
    closes: list[float],
    acceleration_factor: float = 0.02,
    max_acceleration_factor: float = 0.2,
    acceleration_increment: float = 0.02
) -> list[SARPoint]:
    """
    Recompute the SAR bar by bar from the first bar.

    Args:
        highs: High prices
        lows: Low prices
        closes: Close prices
        acceleration_factor: Starting and reset acceleration factor
        max_acceleration_factor: Acceleration factor ceiling
        acceleration_increment: Step added on each new extreme point

    Returns:
        One SARPoint per bar
    """
    trend = initial_trend(highs, lows, closes)
    af = acceleration_factor
    ep = highs[0] if trend == "uptrend" else lows[0]
    sar = lows[0] if trend == "uptrend" else highs[0]
    points = [SARPoint(sar=sar, trend=trend, af=af, ep=ep)]

    for i in range(1, len(highs)):
        next_sar = sar + af * (ep - sar)

        if trend == "uptrend":
            next_sar = min(next_sar, lows[i], lows[i - 1])
            if lows[i] <= next_sar:
                trend = "downtrend"
                next_sar = ep
                ep = lows[i]
                af = acceleration_factor
            elif highs[i] > ep:
                ep = highs[i]
                af = min(af + acceleration_increment, max_acceleration_factor)
        else:
            next_sar = max(next_sar, highs[i], highs[i - 1])
            if highs[i] >= next_sar:
                trend = "uptrend"
                next_sar = ep
                ep = highs[i]
                af = acceleration_factor
            elif lows[i] < ep:
                ep = lows[i]
                af = min(af + acceleration_increment, max_acceleration_factor)

        sar = next_sar
        points.append(SARPoint(sar=sar, trend=trend, af=af, ep=ep))

    return points


class ParabolicSARIndicator(BaseIndicator):
    """Reversals signal new trends; continuation scales with AF and SAR distance."""

    name = "parabolic_sar"
    required_series = ("highs", "lows", "closes")

    def __init__(
        self,
        acceleration_factor: float = 0.02,
        max_acceleration_factor: float = 0.2,
        acceleration_increment: float = 0.02
    ):
        self.acceleration_factor = acceleration_factor
        self.max_acceleration_factor = max_acceleration_factor
        self.acceleration_increment = acceleration_increment

    @property
    def min_data_points(self) -> int:
        return 3

    def neutral_values(self) -> dict:
        return {"sar": 0.0, "trend": "neutral", "af": self.acceleration_factor}

    def _calculate(self, series: dict[str, list[float]]) -> IndicatorResult:
        closes = series["closes"]
        points = calculate_sar_series(
            series["highs"], series["lows"], closes,
            self.acceleration_factor, self.max_acceleration_factor, self.acceleration_increment,
        )
        current = points[-1]
        price = closes[-1]
        reversal = current.trend != points[-2].trend
        self._require_finite(sar=current.sar)

        max_af = self.max_acceleration_factor
        if current.af >= max_af * 0.8:
            trend_strength = "Very Strong"
        elif current.af >= max_af * 0.6:
            trend_strength = "Strong"
        elif current.af >= max_af * 0.4:
            trend_strength = "Moderate"
        else:
            trend_strength = "Weak"

        distance = abs(price - current.sar) / price
        uptrend = current.trend == "uptrend"

        if reversal:
            suggestion = Suggestion.BUY if uptrend else Suggestion.SELL
            confidence, strength = 0.7 * 1.2, 0.6
        elif (uptrend and price > current.sar) or (not uptrend and price < current.sar):
            suggestion = Suggestion.BUY if uptrend else Suggestion.SELL
            confidence = min(0.6, 0.2 + distance * 10 + (current.af / max_af) * 0.3)
            strength = confidence * 0.8
        else:
            suggestion, confidence, strength = Suggestion.HOLD, 0.2, 0.1

        # Price hugging the SAR means a choppy market
        if distance < 0.01:
            confidence *= 0.7
        confidence = min(confidence, 1.0)

        return IndicatorResult(
            name=self.name,
            suggestion=suggestion,
            confidence=round(confidence, 4),
            strength=round(strength, 4),
            values={
                "sar": round(current.sar, 6),
                "trend": current.trend,
                "af": round(current.af, 3),
                "ep": round(current.ep, 6),
            },
            metadata={
                "acceleration_factor": self.acceleration_factor,
                "max_acceleration_factor": self.max_acceleration_factor,
                "acceleration_increment": self.acceleration_increment,
                "reversal": reversal,
                "trend_strength": trend_strength,
                "sar_distance": round(distance, 6),
            },
        )
