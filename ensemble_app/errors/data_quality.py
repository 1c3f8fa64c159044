"""
Data quality error classifications for observations and indicator inputs.

These errors are always recoverable: a rejected observation is simply not
stored, and an indicator that cannot run degrades to a neutral result.
"""

from typing import Any, Dict, Optional


class DataQualityError(Exception):
    """Base class for data quality issues that can be handled gracefully."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class ValidationError(DataQualityError):
    """Observation, symbol or indicator input failed validation."""

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class MissingDataError(DataQualityError):
    """A required input series is completely missing."""

    def __init__(self, message: str, data_type: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.data_type = data_type


class InsufficientDataError(DataQualityError):
    """Not enough historical data points for an indicator."""

    def __init__(self, message: str, required_count: Optional[int] = None,
                 available_count: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.required_count = required_count
        self.available_count = available_count
