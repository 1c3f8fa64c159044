"""Williams %R"""

from ..models.signals import IndicatorResult, Suggestion
from .base import BaseIndicator


def calculate_williams_r(highs: list[float], lows: list[float], closes: list[float], period: int = 14) -> float:
    """%R on the -100..0 scale; -50 when the window has no range."""
    highest = max(highs[-period:])
    lowest = min(lows[-period:])
    if highest == lowest:
        return -50.0
    return (highest - closes[-1]) / (highest - lowest) * -100


class WilliamsRIndicator(BaseIndicator):
    """Extremes beyond -90/-10 plus momentum breakouts of -80/-20."""

    name = "williams_r"
    required_series = ("highs", "lows", "closes")

    def __init__(self, period: int = 14):
        self.period = period

    @property
    def min_data_points(self) -> int:
        return self.period

    def neutral_values(self) -> dict:
        return {"value": -50.0}

    def _calculate(self, series: dict[str, list[float]]) -> IndicatorResult:
        highs, lows, closes = series["highs"], series["lows"], series["closes"]
        value = calculate_williams_r(highs, lows, closes, self.period)

        previous = None
        if len(closes) > self.period:
            previous = calculate_williams_r(highs[:-1], lows[:-1], closes[:-1], self.period)

        if value > -20:
            level = "Overbought"
        elif value < -80:
            level = "Oversold"
        else:
            level = "Neutral"

        if value < -90:
            suggestion, confidence = Suggestion.BUY, min(1.0, (-90 - value) / 10)
            strength = confidence
        elif value < -80:
            suggestion, confidence = Suggestion.BUY, min(0.7, (-80 - value) / 20)
            strength = confidence * 0.8
        elif value > -10:
            suggestion, confidence = Suggestion.SELL, min(1.0, (value + 10) / 10)
            strength = confidence
        elif value > -20:
            suggestion, confidence = Suggestion.SELL, min(0.7, (value + 20) / 20)
            strength = confidence * 0.8
        elif previous is not None and previous < -80 < value:
            suggestion, confidence, strength = Suggestion.BUY, 0.5, 0.4
        elif previous is not None and previous > -20 > value:
            suggestion, confidence, strength = Suggestion.SELL, 0.5, 0.4
        else:
            suggestion, confidence, strength = Suggestion.HOLD, 0.0, 0.0

        return IndicatorResult(
            name=self.name,
            suggestion=suggestion,
            confidence=round(confidence, 4),
            strength=round(strength, 4),
            values={"value": round(value, 2)},
            metadata={
                "period": self.period,
                "level": level,
                "previous_value": round(previous, 2) if previous is not None else None,
            },
        )
