# Copyright (c)
# SPDX-License-Identifier: MIT
"""Retry utilities (async) with jittered exponential backoff.

Used by the ingestion orchestrator around partner downloads. Partner
adapters never retry themselves; the orchestrator decides which failures
are transient via the ``retry_on`` predicate.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry attempts."""

    total: int  # number of retries (not counting the first attempt)
    base: float = 0.5  # base backoff seconds
    cap: float = 10.0  # max backoff seconds
    jitter: bool = True  # add full jitter if True

    def backoff(self, attempt: int) -> float:
        """Return the sleep (seconds) before retry number ``attempt + 1``."""
        delay = min(self.cap, self.base * (2**attempt))
        if self.jitter:
            delay = random.uniform(0, delay)  # noqa: S311
        return delay


def retry_on_exceptions(*types: type[BaseException]) -> Callable[[BaseException], bool]:
    """Build a ``retry_on`` predicate matching the given exception types."""

    def _predicate(exc: BaseException) -> bool:
        return isinstance(exc, types)

    return _predicate


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    retry_on: Callable[[BaseException], bool],
    label: str = "operation",
) -> T:
    """Retry an async function with backoff until success or budget exhausted.

    Args:
        fn: Zero-arg async function to execute.
        policy: RetryPolicy defining count/backoff.
        retry_on: Predicate that returns True when the exception is retryable.
        label: Short name used in retry log lines.

    Returns:
        The return value of ``fn`` if successful.

    Raises:
        The last exception if retries are exhausted or it is not retryable.
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as exc:  # noqa: BLE001
            if attempt >= policy.total or not retry_on(exc):
                raise
            delay = policy.backoff(attempt)
            _log.warning(
                "retry.scheduled",
                extra={
                    "extra": {
                        "operation": label,
                        "attempt": attempt + 1,
                        "max_retries": policy.total,
                        "sleep_s": round(delay, 3),
                        "error_type": type(exc).__name__,
                        "error": str(exc),
                    }
                },
            )
        await asyncio.sleep(delay)
        attempt += 1
