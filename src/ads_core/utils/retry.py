"""Retry policy and a generic async retry helper with exponential backoff and jitter."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from ..constants.retry_policy import DEFAULT_BASE_DELAY_SECONDS, DEFAULT_MAX_ATTEMPTS
from ..exceptions import RetriesExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def default_jitter() -> float:
    """Uniform jitter in [0, 0.5]."""
    return random.uniform(0.0, 0.5)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Backoff schedule for transient failures.

    The delay slept after failed attempt ``n`` (0-based) is
    ``base_delay * 2**n * (0.5 + jitter())``. With jitter in [0, 0.5] the
    delay is bounded by ``base_delay * 2**n``.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS
    jitter: Callable[[], float] = field(default=default_jitter, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    def delay_for(self, attempt: int) -> float:
        jitter = min(max(self.jitter(), 0.0), 0.5)
        return self.base_delay * (2 ** attempt) * (0.5 + jitter)

    def max_delay_for(self, attempt: int) -> float:
        return self.base_delay * (2 ** attempt)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    is_transient: Callable[[BaseException], bool],
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    description: str = "operation",
) -> T:
    """
    Run ``operation`` until it succeeds, fails non-transiently, or the attempt budget runs out.

    Non-transient errors propagate unchanged on first occurrence. When every
    attempt failed transiently, RetriesExhaustedError wraps the last error.
    """
    last_error: Optional[BaseException] = None
    for attempt in range(policy.max_attempts):
        try:
            return await operation()
        except Exception as exc:
            if not is_transient(exc):
                raise
            last_error = exc
            if attempt + 1 >= policy.max_attempts:
                break
            delay = policy.delay_for(attempt)
            logger.warning(
                "Transient failure, backing off | operation=%s | attempt=%s/%s | delay=%.2fs | error=%s",
                description,
                attempt + 1,
                policy.max_attempts,
                delay,
                exc,
            )
            await sleep(delay)

    logger.error(
        "Retries exhausted | operation=%s | attempts=%s | last_error=%s",
        description,
        policy.max_attempts,
        last_error,
    )
    raise RetriesExhaustedError(policy.max_attempts, last_error) from last_error
