"""Retry logic with exponential backoff for backend reads.

Only idempotent reads go through this path; writes to the backend are never
retried, since a retried insert could duplicate posts or mention rows.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts (including initial).
        base_delay_ms: Base delay in milliseconds for exponential backoff.
        max_delay_ms: Maximum delay in milliseconds.
    """

    max_attempts: int = 3
    base_delay_ms: int = 300
    max_delay_ms: int = 3000

    def get_delay_ms(self, attempt: int) -> int:
        """Calculate delay for a given attempt using exponential backoff.

        Args:
            attempt: The current attempt number (0-indexed).

        Returns:
            Delay in milliseconds before the next retry.
        """
        if attempt <= 0:
            return 0
        delay = self.base_delay_ms * (2 ** (attempt - 1))
        return min(delay, self.max_delay_ms)

    async def wait_before_retry(self, attempt: int) -> None:
        """Wait before retrying based on the attempt number."""
        delay_ms = self.get_delay_ms(attempt)
        if delay_ms > 0:
            logger.debug("Waiting %dms before retry attempt %d", delay_ms, attempt + 1)
            await asyncio.sleep(delay_ms / 1000.0)


def is_retryable_error(error: Exception) -> bool:
    """Determine if an error should trigger a retry.

    Retryable errors are transport failures (timeouts, refused connections),
    429 Too Many Requests and 5xx responses. Other 4xx responses, such as
    validation or permission errors, are not retried.

    Args:
        error: The exception to check.

    Returns:
        True if the error is retryable.
    """
    cause = error.__cause__ if error.__cause__ is not None else error
    if isinstance(cause, httpx.TransportError):
        return True

    status_code = getattr(error, "status_code", None)
    if status_code is not None:
        return status_code == 429 or 500 <= status_code < 600

    error_str = str(error).lower()
    return any(term in error_str for term in ("timeout", "timed out", "unavailable"))


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig,
    description: str = "backend call",
) -> T:
    """Run an async operation, retrying retryable failures with backoff.

    Args:
        operation: Zero-argument coroutine factory to invoke per attempt.
        config: Retry configuration.
        description: Short label used in log messages.

    Returns:
        The operation's result.

    Raises:
        Exception: The last error when attempts are exhausted or the error
            is not retryable.
    """
    attempts = max(config.max_attempts, 1)
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            attempt += 1
            if attempt >= attempts or not is_retryable_error(e):
                raise
            logger.warning(
                "%s failed (attempt %d/%d), retrying: %s",
                description,
                attempt,
                attempts,
                e,
            )
            await config.wait_before_retry(attempt)
