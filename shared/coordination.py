"""Redis-backed coordination: generator rate limiting and the worker lease."""
import asyncio
import logging
import time
from typing import Optional

import redis.asyncio as redis

from shared.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Fixed-window rate limiter shared by every process talking to the generator.

    Each window is a Redis counter key that expires with the window, so the
    limit holds across the worker and all streaming connections.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        max_requests: Optional[int] = None,
        window: Optional[int] = None,
        key_prefix: Optional[str] = None
    ):
        self.redis = redis_client
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window = window or settings.rate_limit_window
        self.key_prefix = key_prefix or settings.rate_limit_key

    async def acquire(self):
        """Wait until a request slot is available in the current window."""
        while True:
            now = time.time()
            bucket = int(now // self.window)
            key = f"{self.key_prefix}:{bucket}"

            count = await self.redis.incr(key)
            if count == 1:
                await self.redis.expire(key, self.window)

            if count <= self.max_requests:
                return

            wait = self.window - (now % self.window)
            logger.info(f"Generator rate limit reached ({self.max_requests}/{self.window}s), waiting {wait:.1f}s")
            await asyncio.sleep(wait)


class WorkerLease:
    """
    Lease that allows a single worker per deployment to claim items.

    The key holds the owner's worker ID and expires after ttl seconds unless
    the owner refreshes it.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        owner: str,
        key: Optional[str] = None,
        ttl: Optional[int] = None
    ):
        self.redis = redis_client
        self.owner = owner
        self.key = key or settings.redis_lease_key
        self.ttl_ms = int((ttl or settings.worker_lease_ttl) * 1000)

    async def acquire(self) -> bool:
        """Take the lease, or refresh it if already held. Returns True when held."""
        if await self.redis.set(self.key, self.owner, nx=True, px=self.ttl_ms):
            logger.info(f"Worker {self.owner} acquired lease {self.key}")
            return True

        current = await self.redis.get(self.key)
        if current == self.owner:
            await self.redis.pexpire(self.key, self.ttl_ms)
            return True
        return False

    async def release(self):
        """Release the lease if this worker holds it."""
        current = await self.redis.get(self.key)
        if current == self.owner:
            await self.redis.delete(self.key)
            logger.info(f"Worker {self.owner} released lease {self.key}")
