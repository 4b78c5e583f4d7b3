from typing import Callable, Optional
import time
from cachetools import TLRUCache

from image_gateway.cache.base import ResponseCache, cache_ttl
from image_gateway.image_service.models import CachedResponse

class InMemoryResponseCache(ResponseCache):
    """Bounded per-process cache; each entry lives for its own max-age."""

    def __init__(
        self,
        default_ttl: int = 86400,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = 1024,
    ):
        super().__init__(default_ttl)
        self._entries: TLRUCache = TLRUCache(maxsize=max_entries, ttu=self._expires_at, timer=clock)

    def _expires_at(self, key: str, response: CachedResponse, now: float) -> float:
        return now + cache_ttl(response.headers, self.default_ttl)

    def __len__(self) -> int:
        return len(self._entries)

    async def match(self, key: str) -> Optional[CachedResponse]:
        return self._entries.get(key)

    async def put(self, key: str, response: CachedResponse):
        if cache_ttl(response.headers, self.default_ttl) <= 0:
            return
        self._entries[key] = response
