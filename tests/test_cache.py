"""Tests for hunkstack.cache.bootstrap module."""

import asyncio

import pytest

from hunkstack.cache.bootstrap import BootstrapCache


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def cache(clock):
    return BootstrapCache(ttl_seconds=300, clock=clock)


def counting_factory(calls):
    async def factory():
        calls.append(len(calls) + 1)
        return f"value-{len(calls)}"

    return factory


class TestBootstrapCache:
    """Tests for BootstrapCache."""

    def test_miss_then_hit(self, cache):
        calls = []
        factory = counting_factory(calls)

        async def scenario():
            return await cache.get("repo", factory), await cache.get("repo", factory)

        assert asyncio.run(scenario()) == ("value-1", "value-1")
        assert calls == [1]
        assert "repo" in cache

    def test_keys_are_separate(self, cache):
        calls = []
        factory = counting_factory(calls)

        async def scenario():
            return await cache.get("a", factory), await cache.get("b", factory)

        assert asyncio.run(scenario()) == ("value-1", "value-2")

    def test_expires_after_last_access(self, cache, clock):
        """Test that the TTL counts from the last read, not from creation."""
        calls = []
        factory = counting_factory(calls)

        async def scenario():
            await cache.get("repo", factory)
            clock.now = 250
            await cache.get("repo", factory)
            clock.now = 500
            await cache.get("repo", factory)
            clock.now = 801
            return await cache.get("repo", factory)

        assert asyncio.run(scenario()) == "value-2"
        assert calls == [1, 2]

    def test_contains_respects_ttl(self, cache, clock):
        asyncio.run(cache.get("repo", counting_factory([])))
        clock.now = 301
        assert "repo" not in cache

    def test_concurrent_gets_share_one_call(self, cache):
        calls = []

        async def factory():
            calls.append(1)
            await asyncio.sleep(0.01)
            return "value"

        async def scenario():
            return await asyncio.gather(cache.get("repo", factory), cache.get("repo", factory))

        assert asyncio.run(scenario()) == ["value", "value"]
        assert calls == [1]

    def test_failure_is_not_cached(self, cache):
        attempts = []

        async def factory():
            attempts.append(1)
            if len(attempts) == 1:
                raise ValueError("first attempt fails")
            return "value"

        async def scenario():
            with pytest.raises(ValueError):
                await cache.get("repo", factory)
            return await cache.get("repo", factory)

        assert asyncio.run(scenario()) == "value"
        assert len(attempts) == 2

    def test_invalidate_key(self, cache):
        calls = []
        factory = counting_factory(calls)

        async def scenario():
            await cache.get("a", factory)
            await cache.get("b", factory)
            cache.invalidate("a")
            await cache.get("a", factory)
            await cache.get("b", factory)

        asyncio.run(scenario())
        assert calls == [1, 2, 3]

    def test_invalidate_all(self, cache):
        asyncio.run(cache.get("a", counting_factory([])))
        cache.invalidate()
        assert "a" not in cache
