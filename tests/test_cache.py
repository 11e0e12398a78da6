"""Tests for the Redis read cache and its use by the service."""

import asyncio
import json

import pytest

from shortlinks.lib.database.cache import RedisCache
from shortlinks.lib.database.memory import LinkStoreMemory
from shortlinks.lib.database.models import Link
from shortlinks.lib.exceptions import LinkNotFoundError
from shortlinks.lib.service import LinkService


class FakeRedis:
    """Dictionary stand-in for the redis.asyncio client."""
    
    def __init__(self, fail: bool = False):
        self.data = {}
        self.fail = fail
        self.closed = False
    
    def _check(self):
        if self.fail:
            raise ConnectionError("redis down")
    
    async def get(self, key):
        self._check()
        return self.data.get(key)
    
    async def setex(self, key, ttl, value):
        self._check()
        self.data[key] = value
    
    async def set(self, key, value, nx=False, ex=None):
        self._check()
        if nx and key in self.data:
            return None
        self.data[key] = value
        return True
    
    async def eval(self, script, numkeys, key, expected, value, ttl):
        """Runs the fill compare-and-set."""
        self._check()
        if self.data.get(key) != expected:
            return None
        self.data[key] = value
        return "OK"
    
    async def delete(self, key):
        self._check()
        return 1 if self.data.pop(key, None) is not None else 0
    
    async def ping(self):
        self._check()
        return True
    
    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis, logger):
    cache = RedisCache(redis_url="redis://localhost:6379/0", ttl_seconds=60, logger=logger)
    cache.client = fake_redis
    return cache


class SlowReadStore(LinkStoreMemory):
    """Store whose reads yield to the loop after taking the snapshot."""
    
    async def get_link(self, code):
        link = await super().get_link(code)
        await asyncio.sleep(0)
        return link


@pytest.fixture
def cached_service(store, cache, clock, logger):
    return LinkService(db=store, cache=cache, logger=logger, clock=clock)


@pytest.fixture
def slow_service(cache, clock, logger):
    return LinkService(db=SlowReadStore(logger=logger), cache=cache, logger=logger, clock=clock)


class TestRedisCache:
    """Test the cache wrapper."""
    
    def test_disabled_without_url(self):
        assert not RedisCache(redis_url=None).enabled
    
    async def test_disabled_cache_is_a_miss(self):
        cache = RedisCache(redis_url=None)
        
        assert await cache.get("k") is None
        assert await cache.set("k", "v") is False
        assert await cache.delete("k") is False
        assert await cache.ping() is False
    
    async def test_link_round_trip(self, cache, fake_redis, clock):
        now = clock()
        link = Link(code="abcdef", target_url="https://x.com", created_at=now, updated_at=now)
        
        lease = await cache.acquire_fill_lease("abcdef")
        assert lease is not None
        assert await cache.get_link("abcdef") is None
        assert await cache.fill_link(link, lease)
        assert "shortlinks:link:abcdef" in fake_redis.data
        assert await cache.get_link("abcdef") == link
        
        assert await cache.invalidate("abcdef")
        assert await cache.get_link("abcdef") is None
    
    async def test_lease_is_exclusive(self, cache):
        assert await cache.acquire_fill_lease("abcdef")
        assert await cache.acquire_fill_lease("abcdef") is None
    
    async def test_fill_fails_once_lease_is_gone(self, cache, fake_redis, clock):
        now = clock()
        link = Link(code="abcdef", target_url="https://x.com", created_at=now, updated_at=now)
        lease = await cache.acquire_fill_lease("abcdef")
    
        await cache.invalidate("abcdef")
    
        assert not await cache.fill_link(link, lease)
        assert "shortlinks:link:abcdef" not in fake_redis.data
    
    async def test_bad_payload_is_discarded(self, cache, fake_redis):
        fake_redis.data["shortlinks:link:abcdef"] = json.dumps({"short_code": "abcdef"})
        
        assert await cache.get_link("abcdef") is None
        assert "shortlinks:link:abcdef" not in fake_redis.data
    
    async def test_errors_become_misses(self, cache, fake_redis):
        fake_redis.fail = True
        
        assert await cache.get("k") is None
        assert await cache.set("k", "v") is False
        assert await cache.ping() is False
    
    async def test_close(self, cache, fake_redis):
        await cache.close()
        assert fake_redis.closed


class TestServiceWithCache:
    """Mutations must never leave a stale snapshot behind."""
    
    async def test_get_populates_cache(self, cached_service, fake_redis):
        code = (await cached_service.create_link("https://x.com")).link.code
        
        await cached_service.get_link(code)
        
        assert f"shortlinks:link:{code}" in fake_redis.data
    
    async def test_click_invalidates(self, cached_service):
        code = (await cached_service.create_link("https://x.com")).link.code
        await cached_service.get_link(code)
        
        await cached_service.record_click(code)
        
        assert (await cached_service.get_link(code)).total_clicks == 1
    
    async def test_repeat_create_invalidates(self, cached_service):
        code = (await cached_service.create_link("https://x.com")).link.code
        await cached_service.get_link(code)
        
        await cached_service.create_link("https://x.com")
        
        assert (await cached_service.get_link(code)).creation_count == 2
    
    async def test_delete_invalidates(self, cached_service):
        await cached_service.create_link("https://x.com", custom_code="gone12")
        await cached_service.get_link("gone12")
        
        await cached_service.delete_link("gone12")
        
        with pytest.raises(LinkNotFoundError):
            await cached_service.get_link("gone12")
    
    async def test_clear_invalidates(self, cached_service, fake_redis):
        code = (await cached_service.create_link("https://x.com")).link.code
        await cached_service.get_link(code)
        
        await cached_service.clear()
        
        assert fake_redis.data == {}
    
    async def test_statistics_and_health_report_cache(self, cached_service, fake_redis):
        stats = await cached_service.get_statistics()
        assert stats["cache_enabled"] is True
        
        fake_redis.fail = True
        health = await cached_service.health_check()
        assert health == {"database": True, "cache": False, "overall": False}


class TestCacheFillRaces:
    """A read that overlaps a mutation must not cache its older snapshot."""
    
    async def test_click_during_read(self, slow_service):
        code = (await slow_service.create_link("https://x.com")).link.code
        
        read, clicked = await asyncio.gather(
            slow_service.get_link(code),
            slow_service.record_click(code),
        )
        
        assert read.total_clicks == 0
        assert clicked.total_clicks == 1
        assert (await slow_service.get_link(code)).total_clicks == 1
    
    async def test_repeat_create_during_read(self, slow_service):
        code = (await slow_service.create_link("https://x.com")).link.code
        
        await asyncio.gather(
            slow_service.get_link(code),
            slow_service.create_link("https://x.com"),
        )
        
        assert (await slow_service.get_link(code)).creation_count == 2
    
    async def test_delete_during_read(self, slow_service, fake_redis):
        await slow_service.create_link("https://x.com", custom_code="gone12")
        
        await asyncio.gather(
            slow_service.get_link("gone12"),
            slow_service.delete_link("gone12"),
        )
        
        assert "shortlinks:link:gone12" not in fake_redis.data
        with pytest.raises(LinkNotFoundError):
            await slow_service.get_link("gone12")
    
    async def test_concurrent_readers_fill_once(self, slow_service, fake_redis):
        code = (await slow_service.create_link("https://x.com")).link.code
        
        links = await asyncio.gather(*[slow_service.get_link(code) for _ in range(5)])
        
        assert {link.code for link in links} == {code}
        assert json.loads(fake_redis.data[f"shortlinks:link:{code}"])["short_code"] == code
