"""Retry configuration and rate-limit retry loop for the text client."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from .errors import RateLimitedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[None]]


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Total attempts (first call included) before giving up.
        default_wait_seconds: Wait used when a rate-limit carries no hint.
        max_wait_seconds: Upper bound for any single wait.
    """

    max_attempts: int = 5
    default_wait_seconds: float = 5.0
    max_wait_seconds: float = 120.0


async def with_rate_limit_retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig,
    sleep: Sleeper = asyncio.sleep,
) -> T:
    """
    Execute an operation, sleeping and retrying only on rate limits.

    Every other ProviderError propagates on first occurrence.

    Args:
        operation: Async callable to execute
        config: Retry configuration
        sleep: Awaitable sleep function (injectable for tests)

    Returns:
        Result of the operation

    Raises:
        RateLimitedError: If every attempt was rate limited
    """
    attempts = max(config.max_attempts, 1)

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except RateLimitedError as e:
            if attempt == attempts:
                logger.error(f"All {attempts} attempts were rate limited. Last error: {e}")
                raise RateLimitedError(
                    f"Rate limited after {attempts} attempts: {e}",
                    e.status_code,
                    wait_seconds=e.wait_seconds,
                ) from e

            delay = e.wait_seconds if e.wait_seconds is not None else config.default_wait_seconds
            delay = min(max(delay, 0.0), config.max_wait_seconds)

            logger.warning(f"Attempt {attempt} rate limited. Retrying in {delay:.3f}s...")
            await sleep(delay)

    # Should not reach here, but just in case
    raise RateLimitedError("Unexpected retry loop exit")
