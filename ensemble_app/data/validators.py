"""
Validation predicates for observations, symbols, price series and snapshots.

The ``is_*`` and ``validate_*_array`` helpers are pure predicates that never
raise. ``validate_observation`` and ``normalize_symbol`` raise
``ValidationError`` so callers can report which field was rejected.
"""

import math
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ..errors import ValidationError
from .models import SERIES_NAMES, Observation

SYMBOL_PATTERN = re.compile(r"^[A-Z0-9]{2,10}$")

OBSERVATION_FIELDS = ("timestamp", "close", "high", "low", "volume")


def is_valid_number(value: Any) -> bool:
    """A finite, strictly positive int or float. Booleans are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value) and value > 0
    except OverflowError:
        # int beyond float range
        return False


def is_valid_timestamp(value: Any) -> bool:
    """A strictly positive integer millisecond timestamp."""
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _field(observation: Union[Observation, Mapping[str, Any]], name: str) -> Any:
    if isinstance(observation, Mapping):
        return observation.get(name)
    return getattr(observation, name, None)


def validate_observation(observation: Union[Observation, Mapping[str, Any], None]) -> Observation:
    """
    Validate an observation and return it as an ``Observation``.

    Args:
        observation: Observation dataclass or mapping with the same keys

    Returns:
        The validated observation

    Raises:
        ValidationError: If any field is missing or out of range
    """
    if observation is None:
        raise ValidationError("Observation is missing", field="observation")

    timestamp = _field(observation, "timestamp")
    if not is_valid_timestamp(timestamp):
        raise ValidationError("Timestamp must be a positive integer", field="timestamp", value=timestamp)

    values = {}
    for name in ("close", "high", "low", "volume"):
        value = _field(observation, name)
        if not is_valid_number(value):
            raise ValidationError(f"{name} must be a finite positive number", field=name, value=value)
        values[name] = value

    if values["high"] < values["low"]:
        raise ValidationError("High is below low", field="high", value=values["high"])

    if not values["low"] <= values["close"] <= values["high"]:
        raise ValidationError("Close is outside the high/low range", field="close", value=values["close"])

    if isinstance(observation, Observation):
        return observation

    return Observation(timestamp=timestamp, **values)


def is_valid_observation(observation: Any) -> bool:
    """Predicate form of ``validate_observation``."""
    try:
        validate_observation(observation)
    except ValidationError:
        return False
    return True


def validate_array(values: Any, min_length: int = 1) -> bool:
    """A list or tuple with at least ``min_length`` elements."""
    return isinstance(values, (list, tuple)) and len(values) >= min_length


def validate_price_array(values: Any, min_length: int = 1) -> bool:
    """An array long enough whose every element is a valid number."""
    if not validate_array(values, min_length):
        return False
    return all(is_valid_number(v) for v in values)


def sanitize_array(values: Any) -> list[float]:
    """Keep only the valid numbers of a sequence, in order."""
    if not isinstance(values, Sequence) or isinstance(values, (str, bytes)):
        return []
    return [float(v) for v in values if is_valid_number(v)]


@dataclass(frozen=True)
class InputValidationResult:
    """Outcome of validating a set of indicator input series."""
    is_valid: bool
    errors: list[str] = field(default_factory=list)


def validate_technical_inputs(
    highs: Any,
    lows: Any,
    closes: Any,
    volumes: Optional[Any] = None
) -> InputValidationResult:
    """
    Validate the OHLCV series an indicator consumes.

    Args:
        highs: High prices
        lows: Low prices
        closes: Close prices
        volumes: Optional volumes

    Returns:
        Result with every problem found, not just the first
    """
    errors = []
    series = {"highs": highs, "lows": lows, "closes": closes}
    if volumes is not None:
        series["volumes"] = volumes

    for name, values in series.items():
        if not validate_price_array(values):
            errors.append(f"Invalid {name} array")

    if not errors:
        lengths = {len(values) for values in series.values()}
        if len(lengths) > 1:
            errors.append("Array lengths do not match")

    return InputValidationResult(is_valid=not errors, errors=errors)


def is_valid_symbol(symbol: Any) -> bool:
    """Symbols are 2-10 uppercase letters or digits."""
    return isinstance(symbol, str) and SYMBOL_PATTERN.match(symbol) is not None


def normalize_symbol(symbol: Any) -> str:
    """
    Strip and uppercase a symbol, then validate it.

    Raises:
        ValidationError: If the result is not a valid symbol
    """
    if not isinstance(symbol, str):
        raise ValidationError("Symbol must be a string", field="symbol", value=symbol)

    normalized = symbol.strip().upper()
    if not is_valid_symbol(normalized):
        raise ValidationError(
            "Symbol must be 2-10 uppercase letters or digits",
            field="symbol",
            value=symbol,
        )
    return normalized


def validate_history_payload(payload: Any) -> list[str]:
    """
    Check a serialized history against the rolling history invariants.

    ``closes`` must be a non-empty list of valid numbers and every other
    series must match its length. ``prices`` is optional but must match too.

    Returns:
        List of problems, empty when the payload is usable
    """
    if not isinstance(payload, Mapping):
        return ["History is not an object"]

    closes = payload.get("closes")
    if not validate_price_array(closes, 1):
        return ["closes must be a non-empty array of positive numbers"]

    errors = []
    length = len(closes)
    for name in SERIES_NAMES[1:]:
        values = payload.get(name)
        if not isinstance(values, list) or len(values) != length:
            errors.append(f"{name} length does not match closes")
            continue
        if name == "timestamps":
            if not all(is_valid_timestamp(v) for v in values):
                errors.append("timestamps must be positive integers")
        elif not validate_price_array(values):
            errors.append(f"{name} must contain positive numbers")

    prices = payload.get("prices")
    if prices is not None and (not isinstance(prices, list) or len(prices) != length):
        errors.append("prices length does not match closes")

    return errors
