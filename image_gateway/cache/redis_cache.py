from typing import Optional
import base64
import json
import logging
from redis.asyncio import Redis

from image_gateway.cache.base import ResponseCache, cache_ttl
from image_gateway.image_service.models import CachedResponse

log = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "response_cache:"

class RedisResponseCache(ResponseCache):
    """Responses serialized as JSON (body base64 encoded), expiring with their max-age."""

    def __init__(self, redis: Redis, default_ttl: int = 86400):
        super().__init__(default_ttl)
        self._redis = redis

    async def match(self, key: str) -> Optional[CachedResponse]:
        raw = await self._redis.get(f"{CACHE_KEY_PREFIX}{key}")
        if raw is None:
            return None
        data = json.loads(raw)
        return CachedResponse(
            status_code=data["status_code"],
            headers=data["headers"],
            body=base64.b64decode(data["body"]),
        )

    async def put(self, key: str, response: CachedResponse):
        ttl = cache_ttl(response.headers, self.default_ttl)
        if ttl <= 0:
            return
        payload = json.dumps({
            "status_code": response.status_code,
            "headers": response.headers,
            "body": base64.b64encode(response.body).decode("ascii"),
        })
        await self._redis.set(f"{CACHE_KEY_PREFIX}{key}", payload, ex=ttl)
        log.debug("Cached %s for %ds", key, ttl)
