"""
Recovery strategy classifications for error handling.

These categorise errors by their recovery characteristics and guide how the
store reacts to them.
"""

from typing import Optional


class RecoverableError(Exception):
    """Errors that are expected to clear up on their own."""

    def __init__(self, message: str, retry_count: int = 0,
                 max_retries: int = 3, **kwargs):
        super().__init__(message)
        self.retry_count = retry_count
        self.max_retries = max_retries
        self.recoverable = True


class TransientFeedError(RecoverableError):
    """The external market data source failed a request.

    The core never retries these itself; the next collection cycle is the
    retry.
    """

    def __init__(self, message: str, symbol: Optional[str] = None,
                 operation: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.symbol = symbol
        self.operation = operation

