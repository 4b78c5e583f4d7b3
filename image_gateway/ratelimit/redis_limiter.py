import logging
import time
from redis.asyncio import Redis

from image_gateway.ratelimit.base import RateLimiter

log = logging.getLogger(__name__)

COUNTER_KEY_PREFIX = "rate_limit"

# -------------------------
# Redis fixed window
# -------------------------
class RedisRateLimiter(RateLimiter):
    """Fixed window counter shared by every gateway worker.

    Keys: ``rate_limit:{name}:{key}:{window_id}`` holding the request count,
    expiring with the window.
    """

    def __init__(self, redis: Redis, name: str, limit: int, window_seconds: int):
        self._redis = redis
        self.name = name
        self.limit = limit
        self.window_seconds = window_seconds

    def _counter_key(self, key: str, window_id: int) -> str:
        return f"{COUNTER_KEY_PREFIX}:{self.name}:{key}:{window_id}"

    async def allow(self, key: str) -> bool:
        window_id = int(time.time()) // self.window_seconds
        counter_key = self._counter_key(key, window_id)

        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.incr(counter_key)
            pipe.expire(counter_key, self.window_seconds)
            count, _ = await pipe.execute()

        if int(count) > self.limit:
            log.warning("Rate limit %s exceeded for %s (%s/%d)", self.name, key, count, self.limit)
            return False
        return True
