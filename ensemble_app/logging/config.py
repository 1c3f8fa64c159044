"""
Centralized logging configuration for the ensemble signal engine.

All components log through structlog with keyword event fields so that
store, persistence and indicator events share one structured format.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_store_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound to the time-series store subsystem.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger carrying ``subsystem="timeseries_store"`` on every event
    """
    return get_logger(name).bind(subsystem="timeseries_store")


def log_indicator_result(
    logger: FilteringBoundLogger,
    symbol: str,
    indicator_name: str,
    suggestion: str,
    confidence: float,
    error: Optional[str] = None
) -> None:
    """
    Log a single indicator outcome with standardized fields.

    Errored indicators are logged at warning level, valid ones at debug.
    """
    bound_logger = logger.bind(
        symbol=symbol,
        indicator=indicator_name,
        suggestion=suggestion,
        confidence=confidence,
    )

    if error:
        bound_logger.warning("Indicator degraded to neutral result", error=error)
    else:
        bound_logger.debug("Indicator calculated")


def log_snapshot_result(
    logger: FilteringBoundLogger,
    symbol: str,
    saved: bool,
    data_points: int,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log the outcome of one snapshot write.

    Args:
        logger: Structlog logger instance
        symbol: Instrument whose history was written
        saved: Whether the write was published
        data_points: Number of points in the snapshot
        context: Additional context data
    """
    bound_logger = logger.bind(symbol=symbol, data_points=data_points)

    if context:
        bound_logger = bound_logger.bind(context=context)

    if saved:
        bound_logger.debug("Snapshot saved")
    else:
        bound_logger.warning("Snapshot save failed")
