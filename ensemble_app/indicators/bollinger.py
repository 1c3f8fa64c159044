"""Bollinger Bands"""

from ..models.signals import IndicatorResult, Suggestion
from .base import BaseIndicator, population_std

SQUEEZE_BANDWIDTH = 0.1


class BollingerBandsIndicator(BaseIndicator):
    """
    SMA +/- ``std_dev`` population standard deviations.

    A band narrower than 10% of its midpoint is a squeeze. Prices outside
    the bands are scored by their distance in standard deviations, prices
    inside by %B.
    """

    name = "bollinger"

    def __init__(self, period: int = 20, std_dev: float = 2.0):
        self.period = period
        self.std_dev = std_dev

    @property
    def min_data_points(self) -> int:
        return self.period

    def neutral_values(self) -> dict:
        return {"upper_band": 0.0, "middle_band": 0.0, "lower_band": 0.0, "percent_b": 0.5, "bandwidth": 0.0}

    def _calculate(self, series: dict[str, list[float]]) -> IndicatorResult:
        closes = series["closes"]
        recent = closes[-self.period:]
        middle = sum(recent) / self.period
        std = population_std(recent, middle)
        price = closes[-1]
        metadata = {"period": self.period, "std_dev_multiplier": self.std_dev, "std_dev": round(std, 6)}

        if std == 0:
            return IndicatorResult(
                name=self.name,
                values={
                    "upper_band": middle,
                    "middle_band": middle,
                    "lower_band": middle,
                    "current_price": price,
                    "percent_b": 0.5,
                    "bandwidth": 0.0,
                },
                metadata={**metadata, "squeeze": False, "interpretation": "No volatility - price is flat"},
            )

        upper = middle + self.std_dev * std
        lower = middle - self.std_dev * std
        percent_b = (price - lower) / (upper - lower)
        bandwidth = (upper - lower) / middle
        self._require_finite(percent_b=percent_b, bandwidth=bandwidth)

        suggestion, confidence, strength, squeeze, interpretation = self._signal(
            price, upper, lower, percent_b, std
        )

        return IndicatorResult(
            name=self.name,
            suggestion=suggestion,
            confidence=round(confidence, 4),
            strength=round(strength, 4),
            values={
                "upper_band": round(upper, 6),
                "middle_band": round(middle, 6),
                "lower_band": round(lower, 6),
                "current_price": round(price, 6),
                "percent_b": round(percent_b, 4),
                "bandwidth": round(bandwidth, 6),
            },
            metadata={**metadata, "squeeze": squeeze, "interpretation": interpretation},
        )

    @staticmethod
    def _signal(
        price: float,
        upper: float,
        lower: float,
        percent_b: float,
        std: float
    ) -> tuple[Suggestion, float, float, bool, str]:
        band_width = (upper - lower) / ((upper + lower) / 2)

        if band_width < SQUEEZE_BANDWIDTH:
            return Suggestion.HOLD, 0.3, 0.2, True, "Bollinger squeeze - volatility breakout expected"

        if price < lower:
            confidence = min(1.0, (lower - price) / std)
            return Suggestion.BUY, confidence, confidence, False, "Price below lower band - oversold"

        if price > upper:
            confidence = min(1.0, (price - upper) / std)
            return Suggestion.SELL, confidence, confidence, False, "Price above upper band - overbought"

        if percent_b < 0.2:
            confidence = min(0.7, (0.2 - percent_b) * 5)
            return Suggestion.BUY, confidence, confidence * 0.8, False, "Price near lower band"

        if percent_b > 0.8:
            confidence = min(0.7, (percent_b - 0.8) * 5)
            return Suggestion.SELL, confidence, confidence * 0.8, False, "Price near upper band"

        if 0.4 <= percent_b <= 0.6:
            return Suggestion.HOLD, 0.0, 0.0, False, "Price near middle band"

        return Suggestion.HOLD, 0.2, 0.1, False, "Price between middle and outer band"
