"""Async retry helpers shared by gateway calls and webhook reconciliation."""

import asyncio
from typing import Awaitable, Callable, Sequence, TypeVar

from common.core.otel_axiom_exporter import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
AsyncFactory = Callable[[], Awaitable[T]]
RetryPredicate = Callable[[BaseException], bool]


def exponential_delays(max_attempts: int, initial_delay: float) -> list[float]:
    """Sleep schedule between attempts: initial, 2x initial, 4x initial, ..."""
    return [initial_delay * (2**i) for i in range(max(0, max_attempts - 1))]


def fixed_delays(retries: int, delay: float) -> list[float]:
    return [delay] * retries


async def retry_async(
    operation: AsyncFactory[T],
    *,
    should_retry: RetryPredicate,
    delays: Sequence[float],
    operation_name: str = "operation",
) -> T:
    """
    Run ``operation`` until it succeeds or the schedule runs out.

    Makes ``len(delays) + 1`` attempts, sleeping ``delays[i]`` after the
    i-th failure. Errors rejected by ``should_retry`` are raised immediately;
    the last error is raised once the schedule is exhausted.
    """
    max_attempts = len(delays) + 1
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= max_attempts or not should_retry(exc):
                raise
            delay = delays[attempt - 1]
            logger.warning(
                f"Retrying {operation_name} after attempt {attempt}/{max_attempts}",
                extra={
                    "operation": operation_name,
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "delay_seconds": delay,
                    "error_type": type(exc).__name__,
                },
            )
            await asyncio.sleep(delay)
            attempt += 1
