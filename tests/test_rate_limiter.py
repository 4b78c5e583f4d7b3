import pytest

from image_gateway.ratelimit.memory import FixedWindowRateLimiter
from image_gateway.ratelimit.redis_limiter import RedisRateLimiter


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


# ------------------------------
# FixedWindowRateLimiter
# ------------------------------

@pytest.mark.asyncio
async def test_fixed_window_allows_up_to_limit():
    limiter = FixedWindowRateLimiter(limit=3, window_seconds=60, clock=FakeClock())
    results = [await limiter.allow("user-1") for _ in range(4)]
    assert results == [True, True, True, False]


@pytest.mark.asyncio
async def test_fixed_window_keys_are_independent():
    limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=FakeClock())
    assert await limiter.allow("10.0.0.1") is True
    assert await limiter.allow("10.0.0.1") is False
    assert await limiter.allow("10.0.0.2") is True


@pytest.mark.asyncio
async def test_fixed_window_resets_on_next_window():
    clock = FakeClock(now=1200.0)
    limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)
    assert await limiter.allow("u") is True
    assert await limiter.allow("u") is False
    clock.now += 60
    assert await limiter.allow("u") is True


# ------------------------------
# RedisRateLimiter
# ------------------------------

def make_redis(mocker, count):
    pipe = mocker.MagicMock()
    pipe.execute = mocker.AsyncMock(return_value=[count, True])
    ctx = mocker.MagicMock()
    ctx.__aenter__ = mocker.AsyncMock(return_value=pipe)
    ctx.__aexit__ = mocker.AsyncMock(return_value=False)
    redis = mocker.MagicMock()
    redis.pipeline.return_value = ctx
    return redis, pipe


@pytest.mark.asyncio
async def test_redis_limiter_allows_within_limit(mocker):
    mocker.patch("image_gateway.ratelimit.redis_limiter.time.time", return_value=1200.0)
    redis, pipe = make_redis(mocker, count=5)
    limiter = RedisRateLimiter(redis, "upload", limit=5, window_seconds=60)

    assert await limiter.allow("user-1") is True
    pipe.incr.assert_called_once_with("rate_limit:upload:user-1:20")
    pipe.expire.assert_called_once_with("rate_limit:upload:user-1:20", 60)
    redis.pipeline.assert_called_once_with(transaction=True)


@pytest.mark.asyncio
async def test_redis_limiter_denies_over_limit(mocker):
    redis, _ = make_redis(mocker, count=6)
    limiter = RedisRateLimiter(redis, "read", limit=5, window_seconds=60)
    assert await limiter.allow("10.0.0.1") is False


@pytest.mark.asyncio
async def test_fixed_window_tracks_bounded_number_of_keys():
    limiter = FixedWindowRateLimiter(limit=5, window_seconds=60, clock=FakeClock(), max_keys=10)
    for i in range(30):
        assert await limiter.allow(f"203.0.113.{i}") is True
    assert len(limiter) <= 10


@pytest.mark.asyncio
async def test_fixed_window_forgets_keys_after_window():
    clock = FakeClock(now=1200.0)
    limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)
    await limiter.allow("a")
    await limiter.allow("b")
    clock.now += 120
    limiter._windows.expire()
    assert len(limiter) == 0
