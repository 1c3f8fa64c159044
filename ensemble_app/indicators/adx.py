"""Average Directional Index"""

import math

from ..errors import InsufficientDataError
from ..models.signals import IndicatorResult, Suggestion
from .base import BaseIndicator, wilder_series


def directional_movement(
    highs: list[float],
    lows: list[float],
    closes: list[float]
) -> tuple[list[float], list[float], list[float]]:
    """True range, +DM and -DM for every bar after the first."""
    true_ranges, plus_dm, minus_dm = [], [], []
    for i in range(1, len(highs)):
        true_ranges.append(max(
            highs[i] - lows[i],
            abs(highs[i] - closes[i - 1]),
            abs(lows[i] - closes[i - 1]),
        ))

        up_move = highs[i] - highs[i - 1]
        down_move = lows[i - 1] - lows[i]
        plus_dm.append(up_move if up_move > down_move and up_move > 0 else 0.0)
        minus_dm.append(down_move if down_move > up_move and down_move > 0 else 0.0)

    return true_ranges, plus_dm, minus_dm


def _directional_index(smoothed_plus: float, smoothed_minus: float, smoothed_tr: float) -> tuple[float, float, float]:
    if smoothed_tr == 0:
        return math.nan, math.nan, math.nan
    plus_di = smoothed_plus / smoothed_tr * 100
    minus_di = smoothed_minus / smoothed_tr * 100
    total = plus_di + minus_di
    dx = abs(plus_di - minus_di) / total * 100 if total else math.nan
    return plus_di, minus_di, dx


class ADXIndicator(BaseIndicator):
    """Trend strength from Wilder-smoothed directional movement; trades only when ADX >= 25."""

    name = "adx"
    required_series = ("highs", "lows", "closes")

    def __init__(self, period: int = 14):
        self.period = period

    @property
    def min_data_points(self) -> int:
        return self.period * 2

    def neutral_values(self) -> dict:
        return {"adx": 0.0, "plus_di": 0.0, "minus_di": 0.0, "dx": 0.0}

    def _calculate(self, series: dict[str, list[float]]) -> IndicatorResult:
        true_ranges, plus_dm, minus_dm = directional_movement(series["highs"], series["lows"], series["closes"])

        smoothed_tr = wilder_series(true_ranges, self.period)
        smoothed_plus = wilder_series(plus_dm, self.period)
        smoothed_minus = wilder_series(minus_dm, self.period)

        # DX for every prefix long enough to smooth, skipping undefined ones
        dx_history = []
        for tr, plus, minus in zip(smoothed_tr, smoothed_plus, smoothed_minus):
            dx = _directional_index(plus, minus, tr)[2]
            if math.isfinite(dx):
                dx_history.append(dx)

        if len(dx_history) < self.period:
            raise InsufficientDataError(
                f"adx: only {len(dx_history)} defined DX values, need {self.period}",
                required_count=self.period,
                available_count=len(dx_history),
            )

        plus_di, minus_di, dx = _directional_index(smoothed_plus[-1], smoothed_minus[-1], smoothed_tr[-1])
        adx = wilder_series(dx_history, self.period)[-1]
        self._require_finite(adx=adx, plus_di=plus_di, minus_di=minus_di)

        if adx < 20:
            trend_strength = "No Trend"
        elif adx < 25:
            trend_strength = "Emerging Trend"
        elif adx < 40:
            trend_strength = "Strong Trend"
        elif adx < 50:
            trend_strength = "Very Strong Trend"
        else:
            trend_strength = "Extremely Strong Trend"

        if plus_di > minus_di:
            trend_direction = "uptrend"
        elif minus_di > plus_di:
            trend_direction = "downtrend"
        else:
            trend_direction = "neutral"

        suggestion, confidence = Suggestion.HOLD, 0.0
        if adx >= 25 and trend_direction != "neutral":
            confidence = min(1.0, (adx / 50) * (abs(plus_di - minus_di) / 20))
            suggestion = Suggestion.BUY if trend_direction == "uptrend" else Suggestion.SELL
        strength = confidence

        # Rising DX strengthens the reading, falling DX weakens it
        if len(dx_history) >= 2:
            if dx_history[-1] > dx_history[-2] and adx > 20:
                confidence *= 1.1
            elif dx_history[-1] < dx_history[-2] and adx > 25:
                confidence *= 0.9
        confidence = min(confidence, 1.0)

        return IndicatorResult(
            name=self.name,
            suggestion=suggestion,
            confidence=round(confidence, 4),
            strength=round(strength, 4),
            values={
                "adx": round(adx, 2),
                "plus_di": round(plus_di, 2),
                "minus_di": round(minus_di, 2),
                "dx": round(dx, 2) if math.isfinite(dx) else 0.0,
            },
            metadata={
                "period": self.period,
                "trend_strength": trend_strength,
                "trend_direction": trend_direction,
            },
        )
