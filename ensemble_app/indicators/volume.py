"""Volume confirmation: volume ratio, OBV and volume-price trend"""

from ..models.signals import IndicatorResult, Suggestion
from .base import BaseIndicator


def calculate_obv(closes: list[float], volumes: list[float]) -> float:
    """On-balance volume over the whole series."""
    obv = 0.0
    for i in range(1, len(closes)):
        if closes[i] > closes[i - 1]:
            obv += volumes[i]
        elif closes[i] < closes[i - 1]:
            obv -= volumes[i]
    return obv


def calculate_vpt(closes: list[float], volumes: list[float]) -> float:
    """Volume-price trend: volume weighted by fractional price change."""
    vpt = 0.0
    for i in range(1, len(closes)):
        vpt += volumes[i] * (closes[i] - closes[i - 1]) / closes[i - 1]
    return vpt


def volume_trend(volumes: list[float]) -> str:
    """Direction of the last three volumes."""
    if len(volumes) < 3:
        return "neutral"
    first, second, third = volumes[-3:]
    if third > second > first:
        return "increasing"
    if third < second < first:
        return "decreasing"
    return "neutral"


class VolumeIndicator(BaseIndicator):
    """Volume spikes with concurrent price moves confirm direction."""

    name = "volume"
    required_series = ("closes", "volumes")

    def __init__(self, period: int = 20):
        self.period = period

    @property
    def min_data_points(self) -> int:
        return self.period

    def neutral_values(self) -> dict:
        return {"volume_ratio": 1.0, "obv": 0.0, "vpt": 0.0}

    def _calculate(self, series: dict[str, list[float]]) -> IndicatorResult:
        closes = series["closes"]
        volumes = series["volumes"]
        recent_volumes = volumes[-self.period:]

        avg_volume = sum(recent_volumes) / self.period
        current_volume = volumes[-1]
        price = closes[-1]
        prev_price = closes[-2] if len(closes) >= 2 else price

        ratio = current_volume / avg_volume
        price_change = price - prev_price
        price_change_percent = price_change / prev_price * 100
        trend = volume_trend(recent_volumes)
        obv = calculate_obv(closes, volumes)
        vpt = calculate_vpt(closes, volumes)
        self._require_finite(ratio=ratio, obv=obv, vpt=vpt)

        if ratio > 2.0:
            spike, confirmation = True, "very_strong"
        elif ratio > 1.5:
            spike, confirmation = True, "strong"
        elif ratio > 1.2:
            spike, confirmation = False, "moderate"
        else:
            spike, confirmation = False, "weak"

        move = abs(price_change_percent)
        if spike and move > 1:
            confidence = min(1.0, ratio * move / 10)
            suggestion = Suggestion.BUY if price_change > 0 else Suggestion.SELL
            strength = confidence
            interpretation = "Volume spike confirms price move"
        elif ratio > 1.5 and move < 0.5:
            if obv > 0 and vpt > 0:
                suggestion, confidence = Suggestion.BUY, min(0.6, ratio / 3)
                strength = confidence * 0.8
                interpretation = "High volume with little price change - accumulation"
            elif obv < 0 and vpt < 0:
                suggestion, confidence = Suggestion.SELL, min(0.6, ratio / 3)
                strength = confidence * 0.8
                interpretation = "High volume with little price change - distribution"
            else:
                suggestion, confidence, strength = Suggestion.HOLD, 0.3, 0.2
                interpretation = "High volume with mixed flow"
        elif trend == "increasing" and price_change > 0:
            suggestion, confidence = Suggestion.BUY, min(0.5, ratio / 2)
            strength = confidence * 0.7
            interpretation = "Rising volume supports the advance"
        elif trend == "increasing" and price_change < 0:
            suggestion, confidence = Suggestion.SELL, min(0.5, ratio / 2)
            strength = confidence * 0.7
            interpretation = "Rising volume supports the decline"
        elif ratio < 0.5 and move > 1:
            suggestion, confidence, strength = Suggestion.HOLD, 0.2, 0.1
            interpretation = "Price move on thin volume - weak"
        else:
            suggestion, confidence, strength = Suggestion.HOLD, 0.0, 0.0
            interpretation = "Normal volume"

        return IndicatorResult(
            name=self.name,
            suggestion=suggestion,
            confidence=round(confidence, 4),
            strength=round(strength, 4),
            values={
                "current_volume": round(current_volume, 6),
                "avg_volume": round(avg_volume, 6),
                "volume_ratio": round(ratio, 2),
                "price_change": round(price_change, 6),
                "price_change_percent": round(price_change_percent, 2),
                "volume_trend": trend,
                "obv": round(obv, 6),
                "vpt": round(vpt, 6),
            },
            metadata={
                "period": self.period,
                "volume_spike": spike,
                "confirmation_strength": confirmation,
                "interpretation": interpretation,
            },
        )
