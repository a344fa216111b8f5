"""Dedicated thread pool for blocking backend I/O.

The google-cloud-storage client is synchronous. Its calls are dispatched to a
bounded I/O pool so existence checks can fan out without blocking the event
loop or starving other work on the default executor.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Optional
import os
import logging

logger = logging.getLogger(__name__)

# Sized to the largest reconciliation concurrency accepted by the admin API
IO_POOL_SIZE = int(os.getenv("IO_EXECUTOR_POOL_SIZE", "50"))


class ExecutorRegistry:
    """Owns the I/O thread pool.

    Attributes:
        io_executor: Pool for blob store operations (list, exists, delete)
    """

    def __init__(self, io_pool_size: int = IO_POOL_SIZE):
        self.io_pool_size = io_pool_size
        self.io_executor = ThreadPoolExecutor(
            max_workers=io_pool_size,
            thread_name_prefix="io-"
        )
        logger.info(f"ExecutorRegistry initialized: io={io_pool_size} threads")

    def shutdown(self, wait: bool = True, cancel_futures: bool = False):
        """Shutdown the pool.

        Args:
            wait: If True, wait for all pending futures to complete.
            cancel_futures: If True, cancel pending futures.
        """
        logger.info(f"Shutting down ExecutorRegistry (wait={wait})")
        self.io_executor.shutdown(wait=wait, cancel_futures=cancel_futures)

    def get_stats(self) -> dict:
        """Return executor configuration for the health endpoint."""
        return {
            "io_pool": {
                "max_workers": self.io_pool_size,
                "thread_prefix": "io-"
            }
        }


# Module-level singleton instance
_registry: Optional[ExecutorRegistry] = None


def get_executors() -> ExecutorRegistry:
    """Get or create the global executor registry singleton."""
    global _registry
    if _registry is None:
        _registry = ExecutorRegistry()
    return _registry


def shutdown_executors(wait: bool = True):
    """Shutdown the global executor registry if initialized."""
    global _registry
    if _registry is not None:
        _registry.shutdown(wait=wait)
        _registry = None
