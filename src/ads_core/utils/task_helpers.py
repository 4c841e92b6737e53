"""Task utility helpers for Celery async tasks."""

import asyncio
import logging
from functools import wraps
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def _get_worker_event_loop() -> asyncio.AbstractEventLoop:
    """
    Provide a stable event loop for Celery worker processes.

    asyncpg connections, the httpx client and the Redis client are bound to
    the loop they were created on, so one loop is created lazily per process
    and reused for every task.
    """
    loop = getattr(_get_worker_event_loop, "_loop", None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        _get_worker_event_loop._loop = loop  # type: ignore[attr-defined]
    return loop


def _close_worker_event_loop() -> None:
    """Close the cached worker event loop (used in tests to avoid warnings)."""
    loop: Optional[asyncio.AbstractEventLoop] = getattr(_get_worker_event_loop, "_loop", None)  # type: ignore[attr-defined]
    if loop is not None and not loop.is_closed():
        loop.close()
    if hasattr(_get_worker_event_loop, "_loop"):
        delattr(_get_worker_event_loop, "_loop")


def async_task(celery_task_func: Callable):
    """Decorator for Celery tasks that run async functions without loop churn."""

    @wraps(celery_task_func)
    def wrapper(*args, **kwargs):
        loop = _get_worker_event_loop()
        asyncio.set_event_loop(loop)
        return loop.run_until_complete(celery_task_func(*args, **kwargs))

    return wrapper
