from abc import ABC, abstractmethod
from typing import Mapping, Optional
import re

from image_gateway.image_service.models import CachedResponse

MAX_AGE_PATTERN = re.compile(r"(?:^|,)\s*max-age\s*=\s*(\d+)", re.IGNORECASE)

def cache_ttl(headers: Mapping[str, str], default: int) -> int:
    """Seconds a response may be cached, from its Cache-Control header."""
    for name, value in headers.items():
        if name.lower() == "cache-control":
            if "no-store" in value.lower():
                return 0
            match = MAX_AGE_PATTERN.search(value)
            if match:
                return int(match.group(1))
    return default

class ResponseCache(ABC):
    """Edge cache for full responses keyed by canonical request URL."""

    def __init__(self, default_ttl: int = 86400):
        self.default_ttl = default_ttl

    @abstractmethod
    async def match(self, key: str) -> Optional[CachedResponse]:
        ...

    @abstractmethod
    async def put(self, key: str, response: CachedResponse):
        ...

class NullResponseCache(ResponseCache):
    """Cache that never stores anything; used when caching is disabled."""

    async def match(self, key: str) -> Optional[CachedResponse]:
        return None

    async def put(self, key: str, response: CachedResponse):
        return None
