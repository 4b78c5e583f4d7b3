from typing import Callable, Tuple
import logging
import time
from cachetools import TTLCache

from image_gateway.ratelimit.base import RateLimiter

log = logging.getLogger(__name__)

# -------------------------
# In-process fixed window
# -------------------------
class FixedWindowRateLimiter(RateLimiter):
    """Fixed window counter held in process memory.

    Only suitable for a single worker (local development, tests); deployments
    with several workers should use the Redis limiter. Counters expire with
    their window and at most ``max_keys`` are tracked at once.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
        max_keys: int = 10000,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: TTLCache = TTLCache(maxsize=max_keys, ttl=window_seconds, timer=clock)

    async def allow(self, key: str) -> bool:
        window_id = int(self._clock()) // self.window_seconds
        current: Tuple[int, int] = self._windows.get(key, (window_id, 0))
        current_window, count = current
        if current_window != window_id:
            count = 0
        if count >= self.limit:
            log.warning("Rate limit exceeded for %s (%d/%d)", key, count, self.limit)
            return False
        self._windows[key] = (window_id, count + 1)
        return True

    def __len__(self) -> int:
        return len(self._windows)
