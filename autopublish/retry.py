"""Bounded exponential backoff retry for platform API calls.

Wraps callables with a RetryPolicy (max attempts, base delay, delay cap)
and a caller-supplied predicate deciding whether a failure is worth
another attempt. Also provides FallbackStrategy for primary/fallback
operation pairs where each side is retried on its own.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry limits. Delay doubles per attempt and is capped at max_delay."""
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0

    def delay(self, attempt: int) -> float:
        """Delay to wait after the given failed attempt (counted from 1)."""
        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)

    def capped(self, max_attempts: int) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=min(self.max_attempts, max_attempts),
            base_delay=self.base_delay,
            max_delay=self.max_delay,
        )


class RetryError(Exception):
    """Raised when an operation gives up, either exhausted or not retryable."""

    def __init__(self, attempts: int, last_error: Exception) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Failed after {attempts} attempts: {last_error}")

    @property
    def retries(self) -> int:
        return self.attempts - 1


def _always(_: Exception) -> bool:
    return True


def with_retry(
    operation: Callable[[], T],
    policy: RetryPolicy | None = None,
    should_retry: Callable[[Exception], bool] | None = None,
    sleep_func: Callable[[float], None] | None = None,
) -> tuple[T, int]:
    """Execute operation with exponential backoff retry.

    Args:
        operation: Zero-argument callable to execute.
        policy: Retry limits. Uses defaults if None.
        should_retry: Predicate on the raised error. Defaults to always True.
        sleep_func: Sleep function (injectable for testing). Defaults to time.sleep.

    Returns:
        A (result, attempts_used) tuple.

    Raises:
        RetryError: When attempts are exhausted or should_retry declines.
            The original exception is available as ``last_error``.
    """
    cfg = policy or RetryPolicy()
    retryable = should_retry or _always
    do_sleep = sleep_func or time.sleep

    for attempt in range(1, cfg.max_attempts + 1):
        try:
            return operation(), attempt
        except Exception as exc:
            if attempt >= cfg.max_attempts or not retryable(exc):
                raise RetryError(attempt, exc) from exc
            delay = cfg.delay(attempt)
            logger.warning(
                "Attempt %d/%d failed: %s; retrying in %.1fs",
                attempt, cfg.max_attempts, exc, delay,
            )
            do_sleep(delay)

    raise ValueError("RetryPolicy.max_attempts must be at least 1")


@dataclass
class FallbackStrategy(Generic[T]):
    """Primary operation with a fallback that runs only after the primary gave up.

    Both sides are retried independently under the same policy. The attempt
    count returned by run() belongs to whichever side produced the result.
    """
    primary: Callable[[], T] | None
    fallback: Callable[[], T]
    policy: RetryPolicy | None = None
    should_retry: Callable[[Exception], bool] | None = None
    sleep_func: Callable[[float], None] | None = None
    should_fallback: Callable[[Exception], bool] | None = None

    def try_primary(self) -> tuple[T, int]:
        if self.primary is None:
            raise ValueError("No primary operation configured")
        return with_retry(self.primary, self.policy, self.should_retry, self.sleep_func)

    def try_fallback(self) -> tuple[T, int]:
        return with_retry(self.fallback, self.policy, self.should_retry, self.sleep_func)

    def run(self) -> tuple[T, int]:
        if self.primary is None:
            return self.try_fallback()
        try:
            return self.try_primary()
        except RetryError as exc:
            if self.should_fallback and not self.should_fallback(exc.last_error):
                raise
            logger.warning(
                "Primary operation failed after %d attempts (%s); using fallback",
                exc.attempts, exc.last_error,
            )
        return self.try_fallback()
