"""
Document store utility functions and decorators.

Provides:
- Retry decorator for transient read errors
- Helpers for splitting `in` filters into store-sized chunks
"""

import asyncio
import logging
from functools import wraps
from typing import TypeVar, Callable, Any, Iterator, List, Sequence

from google.api_core.exceptions import (
    Aborted,
    DeadlineExceeded,
    InternalServerError,
    ServiceUnavailable,
)
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from src.constants import STORE_MAX_IN_VALUES

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Define which exceptions are retryable
RETRYABLE_EXCEPTIONS = (
    Aborted,
    DeadlineExceeded,
    InternalServerError,
    ServiceUnavailable,
    asyncio.TimeoutError,
    ConnectionResetError,
)


def create_store_retry(
    max_attempts: int = 3,
    min_wait: float = 0.5,
    max_wait: float = 8,
):
    """
    Create a tenacity retry decorator for document store reads.

    Args:
        max_attempts: Maximum number of attempts
        min_wait: Minimum wait time between retries (seconds)
        max_wait: Maximum wait time between retries (seconds)

    Returns:
        Configured retry decorator
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


# Default retry decorator for reads
store_retry = create_store_retry()


def with_store_retry(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to add retry logic to async read operations.

    Only wrap idempotent reads. Commits and deletes are left to the
    scheduler's retry policy so a partially applied pass is re-run as a whole.
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        @store_retry
        async def inner():
            return await func(*args, **kwargs)
        return await inner()

    return wrapper


def chunked(values: Sequence[T], size: int = STORE_MAX_IN_VALUES) -> Iterator[List[T]]:
    """
    Split values into lists of at most `size` items.

    Example:
        >>> list(chunked(["a", "b", "c"], 2))
        [['a', 'b'], ['c']]
    """
    if size < 1:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(values), size):
        yield list(values[start:start + size])
