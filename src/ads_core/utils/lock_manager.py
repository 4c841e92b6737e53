"""Redis lock manager for cross-process coordination of credential refreshes."""

import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from redis import asyncio as redis_async
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ..config import settings
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Delete the key only if we still own it (the lock may have expired and been re-taken).
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


class LockManager:
    """
    Centralized Redis lock management.

    Locks are ``SET key token NX EX timeout``; release only deletes a key
    still holding this holder's token.
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        client: Optional[redis_async.Redis] = None,
        poll_interval: float = 0.1,
    ):
        self.redis_url = redis_url or settings.redis.url
        self._client: Optional[redis_async.Redis] = client
        self.poll_interval = poll_interval

    @property
    def client(self) -> redis_async.Redis:
        """Lazy Redis client initialization."""
        if self._client is None:
            self._client = redis_async.Redis.from_url(self.redis_url)
        return self._client

    @asynccontextmanager
    async def acquire(
        self,
        lock_key: str,
        timeout: int = 30,
        wait: bool = False,
        wait_timeout: Optional[float] = None,
    ):
        """
        Acquire distributed lock with automatic release.

        Args:
            lock_key: Unique lock identifier
            timeout: Lock expiration in seconds
            wait: Whether to poll until the lock becomes available
            wait_timeout: Give up waiting after this many seconds (defaults to ``timeout``)

        Yields True when the lock is held, False when it could not be taken.

        Usage:
            async with lock_manager.acquire(f"credential-refresh:{credential_id}", wait=True) as held:
                ...
        """
        token = uuid.uuid4().hex
        acquired = await self._try_set(lock_key, token, timeout)

        if not acquired and wait:
            deadline = time.monotonic() + (wait_timeout if wait_timeout is not None else timeout)
            while not acquired and time.monotonic() < deadline:
                await asyncio.sleep(self.poll_interval)
                acquired = await self._try_set(lock_key, token, timeout)

        if not acquired:
            logger.info("Lock not acquired | lock_key=%s", lock_key)
            yield False
            return

        try:
            yield True
        finally:
            await self._release(lock_key, token)

    async def _try_set(self, lock_key: str, token: str, timeout: int) -> bool:
        try:
            return bool(await self.client.set(lock_key, token, nx=True, ex=timeout))
        except (RedisConnectionError, RedisTimeoutError) as exc:
            logger.error("Lock backend unavailable | lock_key=%s | error=%s", lock_key, exc)
            raise ConfigurationError("Lock backend is unavailable") from exc

    async def _release(self, lock_key: str, token: str) -> None:
        try:
            await self._delete_if_owner(lock_key, token)
        except (RedisConnectionError, RedisTimeoutError) as exc:
            logger.warning("Lock release failed, key expires with its TTL | lock_key=%s | error=%s", lock_key, exc)
            return
        logger.debug("Released lock: %s", lock_key)

    async def _delete_if_owner(self, lock_key: str, token: str) -> None:
        try:
            await self.client.eval(_RELEASE_LUA, 1, lock_key, token)
        except ResponseError as exc:
            # Some test doubles (fakeredis without lupa) or managed services lack Lua scripting.
            message = str(exc).lower()
            if "unknown command" not in message and "noscript" not in message:
                raise
            current = await self.client.get(lock_key)
            if isinstance(current, bytes):
                current = current.decode("utf-8")
            if current == token:
                await self.client.delete(lock_key)

    async def is_locked(self, lock_key: str) -> bool:
        """Check if lock is currently held."""
        return await self.client.exists(lock_key) > 0

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
