"""Fixed-window rate limiting over the key-value store."""

import time
from dataclasses import dataclass

from loguru import logger

from auracoach.core.errors import PersistenceError, RateLimitExceededError
from auracoach.storage.keys import rate_limit_key
from auracoach.storage.kv import KeyValueStore


@dataclass(frozen=True)
class RateLimitStatus:
    limit: int
    remaining: int
    reset_in: int

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_in),
        }


class RateLimiter:
    """Counts requests per client in fixed windows of ``window_seconds``.

    A store failure lets the request through; rate limiting is never allowed
    to take the service down.
    """

    def __init__(self, store: KeyValueStore, prefix: str, limit: int, window_seconds: int):
        self._store = store
        self.prefix = prefix
        self.limit = limit
        self.window_seconds = window_seconds

    async def check(self, client_id: str, now: float | None = None) -> RateLimitStatus:
        """Count one request for ``client_id``.

        Raises:
            RateLimitExceededError: If the client is over the limit for the current window
        """
        now = time.time() if now is None else now
        window_start = int(now // self.window_seconds) * self.window_seconds
        reset_in = max(1, int(window_start + self.window_seconds - now))

        try:
            count = await self._store.increment(
                rate_limit_key(self.prefix, client_id, window_start),
                ttl_seconds=self.window_seconds,
            )
        except PersistenceError as e:
            logger.warning("Rate limit store unavailable, allowing request", prefix=self.prefix, error=str(e))
            return RateLimitStatus(limit=self.limit, remaining=self.limit, reset_in=reset_in)

        if count > self.limit:
            logger.warning("Rate limit exceeded", prefix=self.prefix, client_id=client_id, count=count)
            raise RateLimitExceededError(limit=self.limit, reset_in=reset_in)
        return RateLimitStatus(limit=self.limit, remaining=self.limit - count, reset_in=reset_in)
