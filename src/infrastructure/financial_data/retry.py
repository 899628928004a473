"""
Bounded retry for provider calls.

A RetryPolicy value describes the budget and backoff; retry_async applies it to
any coroutine factory. Each sub-fetch runs its own retry loop, so one call's
backoff never delays another.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from src.domain.errors import PermanentProviderError, RateLimitedError, TransientProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_seconds: float = 0.5
    rate_limit_backoff_seconds: float = 1.0

    def delay_for(self, exc: BaseException) -> float:
        if isinstance(exc, RateLimitedError):
            return self.rate_limit_backoff_seconds
        return self.backoff_seconds


NO_RETRY = RetryPolicy(max_attempts=1)


def is_retryable_provider_error(exc: BaseException) -> bool:
    """429 and transient failures are retried; permanent 4xx are not."""
    if isinstance(exc, PermanentProviderError):
        return False
    return isinstance(exc, (RateLimitedError, TransientProviderError))


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    is_retryable: Callable[[BaseException], bool] = is_retryable_provider_error,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    description: str = "request",
) -> T:
    """Await ``operation()`` until it succeeds or the budget is spent.

    Args:
        operation:    Zero-argument callable returning a fresh awaitable per attempt.
        policy:       Attempt budget and backoff durations.
        is_retryable: Decides whether a raised exception earns another attempt.
        sleep:        Backoff coroutine; injected as a no-op in tests.
        description:  Label used in log lines.

    Raises:
        The last exception once attempts are exhausted, or the first
        non-retryable exception immediately.
    """
    attempts = max(1, policy.max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as exc:
            if not is_retryable(exc):
                raise
            if attempt == attempts:
                logger.warning(
                    "%s failed after %d attempts: %s", description, attempt, exc
                )
                raise
            delay = policy.delay_for(exc)
            logger.warning(
                "%s attempt %d/%d failed (%s); retrying in %.2fs",
                description,
                attempt,
                attempts,
                exc,
                delay,
            )
            await sleep(delay)
    raise AssertionError("unreachable")
