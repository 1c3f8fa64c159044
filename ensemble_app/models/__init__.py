"""Result models produced by the indicator engine and the ensemble."""

from .signals import EnsembleResult, IndicatorOutcome, IndicatorResult, Suggestion

__all__ = ["EnsembleResult", "IndicatorOutcome", "IndicatorResult", "Suggestion"]
