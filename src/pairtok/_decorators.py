"""Reusable decorators for training utilities."""

import functools
import logging
import time
from typing import Callable

log = logging.getLogger(__name__)


def measure_time(func: Callable) -> Callable:
    """Log wall-clock time spent in the wrapped callable at DEBUG level."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        # report elapsed time even if the call raises
        finally:
            elapsed = time.perf_counter() - start
            log.debug(
                "%s completed in %.2f s (%.2f mins)",
                func.__qualname__,
                elapsed,
                elapsed / 60,
            )

    return wrapper
