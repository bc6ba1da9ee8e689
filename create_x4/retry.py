"""Generic async retry with exponential backoff.

The sleep function is injectable so callers (and tests) control timing
without real timers.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]
RetryHook = Callable[[int, float, BaseException], None]


class RetryError(Exception):
    """Raised when every attempt of a retried operation failed."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Operation failed after {attempts} attempts: {last_error}")


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay before retrying after failed *attempt* (1-based): ``base * 2**(attempt-1)``."""
    return base_delay * (2 ** (attempt - 1))


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    base_delay: float = 1.0,
    sleep: Sleep = asyncio.sleep,
    on_retry: RetryHook | None = None,
    retry_on: tuple[type[Exception], ...] = (Exception,),
) -> T:
    """Await *operation* until it succeeds or *attempts* are used up.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt.
        attempts: Total number of attempts (>= 1).
        base_delay: Seconds to wait after the first failure; doubled after
            each further failure.  No wait follows the final failure.
        sleep: Awaitable sleep function.
        on_retry: Called as ``on_retry(attempt, delay, exc)`` before sleeping.
        retry_on: Exception types that trigger a retry; anything else
            propagates immediately.

    Returns:
        The value returned by the first successful attempt.

    Raises:
        RetryError: If every attempt raised one of *retry_on*.
        ValueError: If *attempts* is less than 1.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")

    last_error: BaseException | None = None
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as exc:
            last_error = exc
            if attempt < attempts:
                delay = backoff_delay(attempt, base_delay)
                if on_retry is not None:
                    on_retry(attempt, delay, exc)
                await sleep(delay)

    assert last_error is not None
    raise RetryError(attempts, last_error) from last_error
