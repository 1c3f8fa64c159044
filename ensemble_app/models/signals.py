"""Data models for indicator and ensemble results"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Suggestion(str, Enum):
    """Trading suggestion emitted by an indicator or the ensemble."""
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


def clamp_unit(value: float) -> float:
    """Clamp a score to [0, 1]; NaN becomes 0."""
    if value != value:
        return 0.0
    return max(0.0, min(1.0, float(value)))


@dataclass(frozen=True)
class IndicatorResult:
    """Output of one indicator calculator."""
    name: str
    suggestion: Suggestion = Suggestion.HOLD
    confidence: float = 0.0
    strength: float = 0.0
    values: dict[str, Any] = field(default_factory=dict)      # Primary indicator outputs
    metadata: dict[str, Any] = field(default_factory=dict)    # Diagnostic fields
    error: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "suggestion", Suggestion(self.suggestion))
        object.__setattr__(self, "confidence", clamp_unit(self.confidence))
        object.__setattr__(self, "strength", clamp_unit(self.strength))

    @property
    def is_valid(self) -> bool:
        return self.error is None

    @classmethod
    def neutral(cls, name: str, error: str, values: Optional[dict[str, Any]] = None) -> "IndicatorResult":
        """Hold result with zero confidence carrying a failure reason."""
        return cls(
            name=name,
            suggestion=Suggestion.HOLD,
            confidence=0.0,
            strength=0.0,
            values=dict(values or {}),
            metadata={"error": error},
            error=error,
        )

    def to_dict(self) -> dict[str, Any]:
        result = {
            "name": self.name,
            "suggestion": self.suggestion.value,
            "confidence": self.confidence,
            "strength": self.strength,
            **self.values,
            "metadata": dict(self.metadata),
        }
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass(frozen=True)
class IndicatorOutcome:
    """Either a calculated result or the error that prevented it."""
    name: str
    result: Optional[IndicatorResult] = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, result: IndicatorResult) -> "IndicatorOutcome":
        return cls(name=result.name, result=result)

    @classmethod
    def failure(cls, name: str, error: Exception) -> "IndicatorOutcome":
        return cls(name=name, error=error)

    @property
    def is_success(self) -> bool:
        return self.result is not None


@dataclass(frozen=True)
class EnsembleResult:
    """Weighted combination of all indicator results."""
    suggestion: Suggestion
    confidence: float
    strength: float
    per_indicator_results: dict[str, IndicatorResult]
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "suggestion": self.suggestion.value,
            "confidence": self.confidence,
            "strength": self.strength,
            "per_indicator_results": {
                name: result.to_dict() for name, result in self.per_indicator_results.items()
            },
            "metadata": dict(self.metadata),
        }
