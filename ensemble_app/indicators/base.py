"""Shared calculator contract and numeric helpers for all indicators."""

import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Sequence

import structlog

from ..data.validators import validate_price_array
from ..errors import (
    IndicatorCalculationError,
    InsufficientDataError,
    MissingDataError,
    ValidationError,
)
from ..models.signals import IndicatorOutcome, IndicatorResult

logger = structlog.get_logger(__name__)


def sma(values: Sequence[float], period: int) -> float:
    """Simple moving average of the last ``period`` values."""
    if len(values) < period:
        raise InsufficientDataError(
            f"Insufficient data for SMA: need {period}, got {len(values)}",
            required_count=period,
            available_count=len(values),
        )
    recent = values[-period:]
    return sum(recent) / period


def ema_series(values: Sequence[float], period: int) -> list[float]:
    """
    Exponential moving average for every prefix of at least ``period`` values.

    The EMA is seeded with the SMA of the first ``period`` values and uses
    the multiplier ``2 / (period + 1)``. Element ``j`` of the result is the
    EMA of ``values[:period + j]``.
    """
    if len(values) < period:
        raise InsufficientDataError(
            f"Insufficient data for EMA: need {period}, got {len(values)}",
            required_count=period,
            available_count=len(values),
        )

    multiplier = 2 / (period + 1)
    current = sum(values[:period]) / period
    series = [current]
    for value in values[period:]:
        current = value * multiplier + current * (1 - multiplier)
        series.append(current)
    return series


def ema(values: Sequence[float], period: int) -> float:
    """EMA of the whole sequence."""
    return ema_series(values, period)[-1]


def wilder_series(values: Sequence[float], period: int) -> list[float]:
    """
    Wilder smoothing for every prefix of at least ``period`` values.

    Seeded with the SMA of the first ``period`` values, then
    ``s = (s * (period - 1) + x) / period``.
    """
    if len(values) < period:
        raise InsufficientDataError(
            f"Insufficient data for Wilder smoothing: need {period}, got {len(values)}",
            required_count=period,
            available_count=len(values),
        )

    current = sum(values[:period]) / period
    series = [current]
    for value in values[period:]:
        current = (current * (period - 1) + value) / period
        series.append(current)
    return series


def population_std(values: Sequence[float], mean: float) -> float:
    return math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))


def _get_series(history: Any, name: str) -> Any:
    if isinstance(history, Mapping):
        return history.get(name)
    return getattr(history, name, None)


class BaseIndicator(ABC):
    """
    Common contract for the eleven calculators.

    ``calculate`` validates the required series and raises on bad input.
    ``evaluate`` wraps it into an ``IndicatorOutcome`` and never raises.
    """

    name: str = ""
    required_series: tuple[str, ...] = ("closes",)

    @property
    @abstractmethod
    def min_data_points(self) -> int:
        """Minimum number of points ``calculate`` accepts."""

    def neutral_values(self) -> dict[str, Any]:
        """Primary output values reported when the indicator cannot run."""
        return {}

    def neutral_result(self, error: str) -> IndicatorResult:
        return IndicatorResult.neutral(self.name, error, self.neutral_values())

    def prepare(self, history: Any) -> dict[str, list[float]]:
        """
        Extract and validate the series this indicator needs.

        Raises:
            MissingDataError: If a required series is absent
            ValidationError: If series lengths differ or values are invalid
            InsufficientDataError: If fewer than ``min_data_points`` points exist
        """
        series = {}
        for series_name in self.required_series:
            values = _get_series(history, series_name)
            if values is None:
                raise MissingDataError(f"{self.name}: missing {series_name}", data_type=series_name)
            if not isinstance(values, (list, tuple)):
                raise ValidationError(f"{self.name}: {series_name} must be a sequence", field=series_name)
            series[series_name] = values

        lengths = {len(values) for values in series.values()}
        if len(lengths) > 1:
            raise ValidationError(
                f"{self.name}: input arrays must have the same length",
                context={name: len(values) for name, values in series.items()},
            )

        available = lengths.pop()
        if available < self.min_data_points:
            raise InsufficientDataError(
                f"{self.name}: need at least {self.min_data_points} data points, got {available}",
                required_count=self.min_data_points,
                available_count=available,
            )

        for series_name, values in series.items():
            if not validate_price_array(values, self.min_data_points):
                raise ValidationError(f"{self.name}: {series_name} contains invalid values", field=series_name)

        return {name: [float(v) for v in values] for name, values in series.items()}

    def calculate(self, history: Any) -> IndicatorResult:
        """
        Calculate the indicator from a history or mapping of series.

        Raises:
            DataQualityError: On missing, invalid or insufficient input
            IndicatorCalculationError: If the computation is not finite
        """
        return self._calculate(self.prepare(history))

    @abstractmethod
    def _calculate(self, series: dict[str, list[float]]) -> IndicatorResult:
        """Compute the result from validated series."""

    def evaluate(self, history: Any) -> IndicatorOutcome:
        """Run ``calculate`` and capture any failure as an outcome."""
        try:
            return IndicatorOutcome.success(self.calculate(history))
        except Exception as e:
            logger.debug("Indicator failed", indicator=self.name, error=str(e),
                         error_type=type(e).__name__)
            return IndicatorOutcome.failure(self.name, e)

    def _require_finite(self, **values: float) -> None:
        bad = {k: v for k, v in values.items() if not math.isfinite(v)}
        if bad:
            raise IndicatorCalculationError(
                f"Invalid {self.name} calculation result",
                indicator_name=self.name,
                calculation_input=bad,
            )
