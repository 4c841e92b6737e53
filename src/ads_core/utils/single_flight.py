"""In-process single-flight: concurrent callers for one key share one in-flight coroutine."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlight:
    """
    Collapse concurrent calls per key into one execution.

    The first caller for a key runs the coroutine; callers arriving while it
    is in flight await the same task and receive its result or exception.
    The key is released as soon as the task finishes, so the next call runs
    fresh.
    """

    def __init__(self) -> None:
        self._inflight: Dict[str, asyncio.Task] = {}

    async def run(self, key: str, func: Callable[[], Awaitable[T]]) -> T:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(func())
            self._inflight[key] = task
            task.add_done_callback(lambda done, k=key: self._release(k, done))
        else:
            logger.debug("Joining in-flight call | key=%s", key)
        # shield: a cancelled waiter must not cancel the shared call for the others
        return await asyncio.shield(task)

    def _release(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # Mark the exception retrieved when every waiter was cancelled.
            task.exception()

    def in_flight(self, key: str) -> bool:
        return key in self._inflight

    def __len__(self) -> int:
        return len(self._inflight)
