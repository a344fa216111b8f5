"""Async execution utilities for sync/async interoperability.

This module provides utilities for running async code from synchronous
entry points (Cloud Functions handlers, the operator CLI) and for bounded
fan-out of I/O calls.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Coroutine, Iterable, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run an async coroutine from a sync context.

    Every call gets a fresh event loop, so it must not be used from inside
    a running loop.

    Example:
        >>> async def fetch_data():
        ...     return "data"
        >>> run_async(fetch_data())
        'data'
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    coro.close()
    raise RuntimeError("run_async() cannot be called from a running event loop")


async def gather_bounded(
    func: Callable[[T], Awaitable[R]],
    items: Iterable[T],
    concurrency: int,
) -> List[R]:
    """
    Apply an async function to every item with at most `concurrency` in flight.

    Results keep the order of `items`. The first exception propagates.

    Example:
        >>> results = await gather_bounded(storage.exists, keys, concurrency=10)
    """
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    semaphore = asyncio.Semaphore(concurrency)

    async def run_one(item: T) -> R:
        async with semaphore:
            return await func(item)

    return list(await asyncio.gather(*(run_one(item) for item in items)))
