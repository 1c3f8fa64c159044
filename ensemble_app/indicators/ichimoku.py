"""Ichimoku cloud"""

from ..models.signals import IndicatorResult, Suggestion
from .base import BaseIndicator


def midpoint(highs: list[float], lows: list[float], period: int) -> float:
    """Midpoint of the highest high and lowest low over ``period`` bars."""
    return (max(highs[-period:]) + min(lows[-period:])) / 2


class IchimokuIndicator(BaseIndicator):
    """
    Ichimoku cloud scored additively.

    Confidence accumulates from price vs cloud, conversion vs base line,
    price vs both lines, lagging span confirmation and cloud thickness.
    Anything under 0.3 is downgraded to hold.
    """

    name = "ichimoku"
    required_series = ("highs", "lows", "closes")

    def __init__(
        self,
        conversion_period: int = 9,
        base_period: int = 26,
        span_b_period: int = 52,
        displacement: int = 26
    ):
        self.conversion_period = conversion_period
        self.base_period = base_period
        self.span_b_period = span_b_period
        self.displacement = displacement

    @property
    def min_data_points(self) -> int:
        return max(self.conversion_period, self.base_period, self.span_b_period, self.displacement) + 1

    def neutral_values(self) -> dict:
        return {"tenkan_sen": 0.0, "kijun_sen": 0.0, "senkou_span_a": 0.0, "senkou_span_b": 0.0,
                "cloud_color": "neutral"}

    def _calculate(self, series: dict[str, list[float]]) -> IndicatorResult:
        highs, lows, closes = series["highs"], series["lows"], series["closes"]

        tenkan = midpoint(highs, lows, self.conversion_period)
        kijun = midpoint(highs, lows, self.base_period)
        span_a = (tenkan + kijun) / 2
        span_b = midpoint(highs, lows, self.span_b_period)
        chikou = closes[-1]
        price = closes[-1]

        cloud_top = max(span_a, span_b)
        cloud_bottom = min(span_a, span_b)
        cloud_color = "bullish" if span_a > span_b else "bearish"

        suggestion = Suggestion.HOLD
        confidence = 0.0
        signals = []

        if price > cloud_top:
            signals.append("price_above_cloud")
            suggestion = Suggestion.BUY
            confidence += 0.4 if cloud_color == "bullish" else 0.2
        elif price < cloud_bottom:
            signals.append("price_below_cloud")
            suggestion = Suggestion.SELL
            confidence += 0.4 if cloud_color == "bearish" else 0.2
        else:
            signals.append("price_in_cloud")

        if tenkan > kijun:
            signals.append("tenkan_above_kijun")
            if price > max(tenkan, kijun):
                confidence += 0.2
        elif tenkan < kijun:
            signals.append("tenkan_below_kijun")
            if price < min(tenkan, kijun):
                confidence += 0.2

        if price > tenkan and price > kijun:
            signals.append("price_above_lines")
            confidence += 0.1
        elif price < tenkan and price < kijun:
            signals.append("price_below_lines")
            confidence += 0.1

        reference = closes[-self.displacement]
        if chikou > reference:
            signals.append("chikou_bullish")
            confidence += 0.15
        elif chikou < reference:
            signals.append("chikou_bearish")
            confidence += 0.15

        thickness_ratio = (cloud_top - cloud_bottom) / price
        if thickness_ratio > 0.02:
            signals.append("thick_cloud")
            confidence += 0.1
        elif thickness_ratio < 0.005:
            signals.append("thin_cloud")
            confidence *= 0.8

        confidence = min(confidence, 1.0)
        if confidence < 0.3:
            suggestion = Suggestion.HOLD

        return IndicatorResult(
            name=self.name,
            suggestion=suggestion,
            confidence=round(confidence, 4),
            strength=round(confidence, 4),
            values={
                "tenkan_sen": round(tenkan, 6),
                "kijun_sen": round(kijun, 6),
                "senkou_span_a": round(span_a, 6),
                "senkou_span_b": round(span_b, 6),
                "chikou_span": round(chikou, 6),
                "cloud_top": round(cloud_top, 6),
                "cloud_bottom": round(cloud_bottom, 6),
                "cloud_thickness": round(cloud_top - cloud_bottom, 6),
                "cloud_color": cloud_color,
            },
            metadata={
                "conversion_period": self.conversion_period,
                "base_period": self.base_period,
                "span_b_period": self.span_b_period,
                "displacement": self.displacement,
                "trend": self._trend(price, cloud_top, cloud_bottom, cloud_color, signals),
                "signals": signals,
            },
        )

    @staticmethod
    def _trend(price: float, cloud_top: float, cloud_bottom: float, cloud_color: str, signals: list[str]) -> str:
        if "price_above_cloud" in signals and cloud_color == "bullish" and "tenkan_above_kijun" in signals:
            return "strong_uptrend"
        if "price_below_cloud" in signals and cloud_color == "bearish" and "tenkan_below_kijun" in signals:
            return "strong_downtrend"
        if "price_in_cloud" in signals:
            return "consolidation"

        if cloud_color == "bullish":
            if price > cloud_top:
                return "strong_uptrend"
            return "uptrend" if price > cloud_bottom else "neutral"
        if price < cloud_bottom:
            return "strong_downtrend"
        return "downtrend" if price < cloud_top else "neutral"
