from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Backoff = Callable[[int], float]
Sleep = Callable[[float], Awaitable[None]]


def linear_backoff(base_s: float) -> Backoff:
    """Delay of ``attempt * base_s`` after the given (1-based) failed attempt."""
    return lambda attempt: attempt * base_s


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    backoff: Backoff,
    retryable: Callable[[BaseException], bool],
    sleep: Sleep = asyncio.sleep,
    label: str = "operation",
) -> T:
    """Await ``operation`` up to ``attempts`` times.

    Errors for which ``retryable`` is false, and the error of the final
    attempt, propagate unchanged.
    """
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= attempts or not retryable(e):
                raise
            delay = backoff(attempt)
            logger.info("%s failed (attempt %d/%d): %s; retrying in %.1fs", label, attempt, attempts, e, delay)
            await sleep(delay)
            attempt += 1
