"""
System failure error classifications.

These represent failures of the machinery itself rather than of the data:
numeric breakdowns inside a calculator, snapshot I/O, or bad configuration.
"""

from typing import Any, Dict, List, Optional


class SystemFailureError(Exception):
    """Base class for unrecoverable system failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class IndicatorCalculationError(SystemFailureError):
    """An indicator produced non-finite or otherwise unusable values."""

    def __init__(self, message: str, indicator_name: Optional[str] = None,
                 calculation_input: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.indicator_name = indicator_name
        self.calculation_input = calculation_input


class PersistenceError(SystemFailureError):
    """Snapshot file system failures or corrupted snapshot contents."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target


class ConfigurationError(SystemFailureError):
    """Configuration failed validation."""

    def __init__(self, message: str, issues: Optional[List[Any]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.issues = issues or []
