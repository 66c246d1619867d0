"""
Timing instrumentation for network operations.

``timed_async`` wraps a coroutine function and logs how long each call took,
escalating to a warning above YEELIGHT_PERF_THRESHOLD_MS. Disabled entirely
when YEELIGHT_PERF_TRACKING is off.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from yeelight_lan.logging_abstraction import YeelightLogger, get_logger

__all__ = [
    "measure_time",
    "timed_async",
]

P = ParamSpec("P")
T = TypeVar("T")

logger = get_logger(__name__)


def measure_time(start_time: float) -> float:
    """Return milliseconds elapsed since ``start_time`` (from time.perf_counter())."""
    return (time.perf_counter() - start_time) * 1000


def timed_async(
    operation_name: str | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Decorator for timing async functions with threshold warnings.

    Args:
        operation_name: Name for the operation (defaults to function name)

    Example:
        @timed_async("discover")
        async def discover_reply(timeout: float) -> DiscoveryReply:
            ...
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            from yeelight_lan.const import YEELIGHT_PERF_THRESHOLD_MS, YEELIGHT_PERF_TRACKING

            if not YEELIGHT_PERF_TRACKING:
                return await func(*args, **kwargs)

            op_name = operation_name or func.__name__
            start_time = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                _log_timing(logger, op_name, measure_time(start_time), YEELIGHT_PERF_THRESHOLD_MS)

        return wrapper

    return decorator


def _log_timing(log: YeelightLogger, operation_name: str, elapsed_ms: float, threshold_ms: int) -> None:
    context = {
        "operation": operation_name,
        "duration_ms": round(elapsed_ms, 2),
        "threshold_ms": threshold_ms,
    }
    if elapsed_ms > threshold_ms:
        log.warning(
            "[%s] completed in %.1fms (threshold: %dms)",
            operation_name,
            elapsed_ms,
            threshold_ms,
            extra={**context, "exceeded_threshold": True},
        )
    else:
        log.debug(
            "[%s] completed in %.1fms",
            operation_name,
            elapsed_ms,
            extra={**context, "exceeded_threshold": False},
        )
