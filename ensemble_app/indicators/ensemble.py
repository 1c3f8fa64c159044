"""Weighted combination of indicator results into one recommendation."""

from typing import Mapping, Optional

from ..config.defaults import EnsembleWeights
from ..models.signals import EnsembleResult, IndicatorResult, Suggestion


class EnsembleAggregator:
    """
    Combines indicator results with fixed per-indicator weights.

    Buy and sell results add ``confidence * weight`` to their bucket while
    hold results add their full weight to the hold bucket. The winning
    bucket must be strictly greater than both others, so any tie resolves
    to hold. Errored results are ignored.
    """

    def __init__(self, weights: Optional[EnsembleWeights] = None):
        self.weights = weights or EnsembleWeights()

    def combine(self, results: Mapping[str, IndicatorResult]) -> EnsembleResult:
        """
        Combine per-indicator results.

        Args:
            results: Indicator results keyed by indicator name

        Returns:
            Ensemble result; hold with zero confidence when nothing is valid
        """
        buy_score = 0.0
        sell_score = 0.0
        hold_score = 0.0
        total_confidence = 0.0
        valid_count = 0

        for name, result in results.items():
            if not result.is_valid:
                continue

            weight = self.weights.weight_for(name)
            weighted = result.confidence * weight

            if result.suggestion == Suggestion.BUY:
                buy_score += weighted
            elif result.suggestion == Suggestion.SELL:
                sell_score += weighted
            else:
                hold_score += weight

            total_confidence += weighted
            valid_count += 1

        metadata = {
            "buy_score": round(buy_score, 4),
            "sell_score": round(sell_score, 4),
            "hold_score": round(hold_score, 4),
            "valid_indicator_count": valid_count,
            "total_indicator_count": len(results),
        }

        if valid_count == 0:
            return EnsembleResult(
                suggestion=Suggestion.HOLD,
                confidence=0.0,
                strength=0.0,
                per_indicator_results=dict(results),
                metadata={**metadata, "reason": "No valid indicators"},
            )

        if buy_score > sell_score and buy_score > hold_score:
            suggestion = Suggestion.BUY
        elif sell_score > buy_score and sell_score > hold_score:
            suggestion = Suggestion.SELL
        else:
            suggestion = Suggestion.HOLD

        confidence = round(min(1.0, total_confidence / valid_count), 4)

        return EnsembleResult(
            suggestion=suggestion,
            confidence=confidence,
            strength=confidence,
            per_indicator_results=dict(results),
            metadata=metadata,
        )
