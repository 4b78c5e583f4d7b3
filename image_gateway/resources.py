"""
    Builds the gateway's backing resources from settings.
"""
from typing import Optional, Tuple
import logging
from redis.asyncio import Redis

from image_gateway.cache.base import NullResponseCache, ResponseCache
from image_gateway.cache.memory import InMemoryResponseCache
from image_gateway.cache.redis_cache import RedisResponseCache
from image_gateway.ratelimit.base import RateLimiter
from image_gateway.ratelimit.memory import FixedWindowRateLimiter
from image_gateway.ratelimit.redis_limiter import RedisRateLimiter
from image_gateway.settings import Settings
from image_gateway.storage.base import ObjectStore
from image_gateway.storage.memory import InMemoryObjectStore
from image_gateway.storage.s3 import S3ObjectStore

log = logging.getLogger(__name__)

def build_redis(settings: Settings) -> Optional[Redis]:
    """Shared Redis client, only when some backend needs it."""
    if settings.rate_limiter_backend == "redis" or settings.cache_backend == "redis":
        log.info("Initialized Redis client")
        return Redis.from_url(settings.redis_url)
    return None

def build_object_store(settings: Settings) -> ObjectStore:
    if settings.storage_backend == "s3":
        return S3ObjectStore(settings)
    if settings.storage_backend == "memory":
        log.info("Using in-memory object store")
        return InMemoryObjectStore()
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")

def build_rate_limiters(settings: Settings, redis: Optional[Redis] = None) -> Tuple[RateLimiter, RateLimiter]:
    """Returns the (upload, read) limiters."""
    if settings.rate_limiter_backend == "redis":
        return (
            RedisRateLimiter(redis, "upload", settings.upload_rate_limit, settings.upload_rate_window_seconds),
            RedisRateLimiter(redis, "read", settings.read_rate_limit, settings.read_rate_window_seconds),
        )
    if settings.rate_limiter_backend == "memory":
        return (
            FixedWindowRateLimiter(
                settings.upload_rate_limit,
                settings.upload_rate_window_seconds,
                max_keys=settings.rate_limiter_max_keys,
            ),
            FixedWindowRateLimiter(
                settings.read_rate_limit,
                settings.read_rate_window_seconds,
                max_keys=settings.rate_limiter_max_keys,
            ),
        )
    raise ValueError(f"Unknown rate limiter backend: {settings.rate_limiter_backend}")

def build_response_cache(settings: Settings, redis: Optional[Redis] = None) -> ResponseCache:
    if settings.cache_backend == "redis":
        return RedisResponseCache(redis, default_ttl=settings.default_cache_max_age)
    if settings.cache_backend == "memory":
        return InMemoryResponseCache(
            default_ttl=settings.default_cache_max_age,
            max_entries=settings.memory_cache_max_entries,
        )
    if settings.cache_backend == "none":
        return NullResponseCache(default_ttl=settings.default_cache_max_age)
    raise ValueError(f"Unknown cache backend: {settings.cache_backend}")
