"""Utility modules for the sports edge engine."""

from .logging import setup_logging
from .retry import retry_with_backoff
from .cancellation import CancellationToken
from .diagnostics import Diagnostics, FallbackEvent
from .numbers import coerce_float, coerce_int

__all__ = [
    "setup_logging",
    "retry_with_backoff",
    "CancellationToken",
    "Diagnostics",
    "FallbackEvent",
    "coerce_float",
    "coerce_int",
]
