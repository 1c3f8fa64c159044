"""
Logging configuration and utilities for the ensemble signal engine.
"""
from .config import configure_logging, get_logger, get_store_logger

__all__ = ["configure_logging", "get_logger", "get_store_logger"]
