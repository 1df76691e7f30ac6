"""Bounded retry with linear backoff for fallible async operations."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger

from analogenie.config import settings
from analogenie.models.errors import ClassifiedError
from analogenie.services.error_classifier import classify, is_retryable

T = TypeVar("T")

RetryHook = Callable[[int, BaseException], Any]
Sleeper = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_retries: int = 3
    retry_delay: float = 1.0
    should_retry: Callable[[ClassifiedError], bool] = field(default=is_retryable)

    @property
    def max_attempts(self) -> int:
        return max(int(self.max_retries), 0) + 1

    def delay_for(self, attempt: int) -> float:
        """Delay before the retry that follows failed attempt number `attempt` (1-based)."""
        return max(float(self.retry_delay), 0.0) * attempt


def default_policy() -> RetryPolicy:
    return RetryPolicy(
        max_retries=settings.retry_max,
        retry_delay=settings.retry_delay_seconds,
    )


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    on_retry: RetryHook | None = None,
    sleep: Sleeper = asyncio.sleep,
    label: str = "operation",
) -> T:
    """Run `operation` until it succeeds, a terminal error occurs, or attempts run out.

    Terminal errors and the final failure are re-raised unchanged. `on_retry` is
    called with the 1-based number of the failed attempt and its exception,
    once per scheduled retry.
    """
    policy = policy or default_policy()
    attempts = policy.max_attempts

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as exc:
            classified = classify(exc)
            if not policy.should_retry(classified):
                logger.warning(
                    f"{label} failed with terminal {classified.kind.value} error on attempt {attempt}: {exc}"
                )
                raise
            if attempt == attempts:
                logger.error(f"{label} failed after {attempts} attempts ({classified.kind.value}): {exc}")
                raise

            delay = policy.delay_for(attempt)
            logger.warning(
                f"{label} attempt {attempt}/{attempts} failed ({classified.kind.value}); "
                f"retrying in {delay:.2f}s"
            )
            if on_retry is not None:
                on_retry(attempt, exc)
            await sleep(delay)

    raise RuntimeError(f"{label} exhausted retries without a result")  # pragma: no cover
