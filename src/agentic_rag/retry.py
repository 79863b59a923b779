"""Exponential backoff shared by the embedding and generation clients."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


def backoff_delay(base_delay_seconds: float, failed_attempt: int) -> float:
    """Delay after the 0-based `failed_attempt`: `base * 2**failed_attempt`."""

    return base_delay_seconds * (2**failed_attempt)


def exponential_wait(base_delay_seconds: float) -> Callable[[RetryCallState], float]:
    def _wait(retry_state: RetryCallState) -> float:
        return backoff_delay(base_delay_seconds, retry_state.attempt_number - 1)

    return _wait


def build_retrying(
    *,
    max_retries: int,
    base_delay_seconds: float,
    operation: str,
    sleep: SleepFn | None = None,
) -> AsyncRetrying:
    """Return a retrying controller for `max_retries + 1` attempts.

    The last error is re-raised unchanged once attempts are exhausted.
    """

    def _log_retry(retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        error = outcome.exception() if outcome is not None else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            "%s attempt %d/%d failed: %s; retrying in %.2fs",
            operation,
            retry_state.attempt_number,
            max_retries + 1,
            error,
            delay,
        )

    return AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=exponential_wait(base_delay_seconds),
        before_sleep=_log_retry,
        sleep=sleep or asyncio.sleep,
        reraise=True,
    )
