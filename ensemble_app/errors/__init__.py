"""
Error classification system for the time-series store and indicator engine.

Errors are grouped by how they are handled: data quality problems are
rejected or converted to neutral results, system failures are logged and
counted, and transient feed failures are left to the next collection cycle.
"""

from .data_quality import (
    DataQualityError,
    ValidationError,
    MissingDataError,
    InsufficientDataError,
)
from .system_failures import (
    SystemFailureError,
    IndicatorCalculationError,
    PersistenceError,
    ConfigurationError,
)
from .recovery import (
    RecoverableError,
    TransientFeedError,
)

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "ValidationError",
    "MissingDataError",
    "InsufficientDataError",
    # System Failures
    "SystemFailureError",
    "IndicatorCalculationError",
    "PersistenceError",
    "ConfigurationError",
    # Recovery Categories
    "RecoverableError",
    "TransientFeedError",
]
