"""TimeBoxedCache: TTL, stale fallback, единственный fetch при конкурентном промахе."""

import asyncio

import pytest
from aiocache import SimpleMemoryCache

from bot.utils.cache import TimeBoxedCache, _build_redis_config


class CountingFetch:
    def __init__(self) -> None:
        self.calls = 0
        self.fail = False

    async def __call__(self) -> list[int]:
        self.calls += 1
        await asyncio.sleep(0)
        if self.fail:
            raise ConnectionError("upstream down")
        return [self.calls]


@pytest.fixture
def fetch() -> CountingFetch:
    return CountingFetch()


@pytest.fixture
def cache(fetch, clock) -> TimeBoxedCache:
    return TimeBoxedCache("test", 60, fetch, backend=SimpleMemoryCache(), clock=clock)


class TestTimeBoxedCache:
    async def test_single_fetch_within_ttl(self, cache, fetch, clock):
        first = await cache.get()
        clock.advance(59)
        second = await cache.get()
        assert fetch.calls == 1
        assert first == second == [1]

    async def test_refetch_after_expiry(self, cache, fetch, clock):
        await cache.get()
        clock.advance(60)
        assert await cache.get() == [2]
        assert fetch.calls == 2

    async def test_stale_value_served_when_refresh_fails(self, cache, fetch, clock):
        await cache.get()
        clock.advance(3_600)
        fetch.fail = True
        assert await cache.get() == [1]
        assert fetch.calls == 2

    async def test_failure_without_prior_value_propagates(self, cache, fetch):
        fetch.fail = True
        with pytest.raises(ConnectionError):
            await cache.get()

    async def test_concurrent_misses_share_one_fetch(self, cache, fetch):
        results = await asyncio.gather(*(cache.get() for _ in range(5)))
        assert fetch.calls == 1
        assert all(result == [1] for result in results)

    async def test_invalidate_forces_refetch(self, cache, fetch):
        await cache.get()
        await cache.invalidate()
        assert await cache.peek() is None
        await cache.get()
        assert fetch.calls == 2

    async def test_successful_refresh_replaces_value(self, cache, fetch, clock):
        await cache.get()
        clock.advance(61)
        await cache.get()
        entry = await cache.peek()
        assert entry.value == [2]
        assert entry.fetched_at == clock.now

    def test_ttl_must_be_positive(self, fetch):
        with pytest.raises(ValueError):
            TimeBoxedCache("bad", 0, fetch)


class TestRedisConfig:
    def test_parses_tls_dsn(self):
        config = _build_redis_config("rediss://:secret@cache.internal:6380/2")
        assert config == {
            "endpoint": "cache.internal",
            "port": 6380,
            "password": "secret",
            "db": 2,
            "ssl": True,
        }

    def test_rejects_unknown_scheme(self):
        with pytest.raises(ValueError):
            _build_redis_config("memcached://localhost")

    def test_requires_dsn(self):
        with pytest.raises(RuntimeError):
            _build_redis_config(None)
