"""Retry with exponential backoff for flaky local I/O.

Usage:
    from sports_edge.utils.retry import retry_with_backoff

    @retry_with_backoff(max_retries=2, initial_delay=0.2)
    def write_blob(path, text):
        path.write_text(text)
"""

import time
import logging
from functools import wraps
from typing import Tuple, Type, Callable, TypeVar

T = TypeVar('T')

BACKOFF_FACTOR = 2.0


def retry_with_backoff(
    max_retries: int = 2,
    initial_delay: float = 0.2,
    exceptions: Tuple[Type[Exception], ...] = (OSError,),
) -> Callable:
    """Retry the wrapped call, doubling the pause after each failure.

    Args:
        max_retries: Retries after the first attempt; 0 disables retrying
        initial_delay: Seconds to wait before the first retry
        exceptions: Exception types worth retrying; anything else propagates at once

    The last failure is re-raised once the retries are used up.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            logger = logging.getLogger(func.__module__)
            attempts = max_retries + 1
            delay = initial_delay

            for attempt in range(1, attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == attempts:
                        logger.error(f"{func.__name__} failed after {attempts} attempts: {e}")
                        raise
                    logger.warning(
                        f"{func.__name__} attempt {attempt}/{attempts} failed: {e}. "
                        f"Retrying in {delay:.2f}s"
                    )
                    time.sleep(delay)
                    delay *= BACKOFF_FACTOR

        return wrapper
    return decorator
