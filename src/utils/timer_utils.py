"""Elapsed-time helpers used for request timing and job durations."""

import time
from typing import Optional


def elapsed_ms(start_time: float) -> float:
    """
    Milliseconds elapsed since `start_time` (a `time.time()` value).

    Example:
        >>> start = time.time()
        >>> duration = elapsed_ms(start)
    """
    return (time.time() - start_time) * 1000


class Timer:
    """
    Context manager measuring a block in milliseconds.

    Usage:
        >>> with Timer() as t:
        ...     pass
        >>> t.elapsed_ms >= 0
        True
    """

    def __init__(self):
        self.start_time: Optional[float] = None
        self.stop_time: Optional[float] = None

    @property
    def elapsed_ms(self) -> float:
        """Elapsed time so far, or the final duration once stopped."""
        if self.start_time is None:
            return 0.0
        end = self.stop_time if self.stop_time is not None else time.time()
        return (end - self.start_time) * 1000

    def __enter__(self) -> "Timer":
        self.start_time = time.time()
        self.stop_time = None
        return self

    def __exit__(self, *args) -> None:
        self.stop_time = time.time()
