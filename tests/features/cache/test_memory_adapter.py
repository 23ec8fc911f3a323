"""Tests for the in-process decision cache."""

import pytest

from neo_authz.features.cache import DecisionCacheKey, InvalidationPattern, MemoryDecisionCache
from neo_authz.features.permissions import Decision, DecisionCode


class FakeMonotonic:
    
    def __init__(self):
        self.value = 1000.0
    
    def __call__(self):
        return self.value


def _decision(user_id="u1", tenant_id="T1", action="View"):
    return Decision(True, DecisionCode.GRANTED, user_id, tenant_id, "User", action)


def _key(user_id="u1", tenant_id="T1", action="View", resource_type="User"):
    return DecisionCacheKey(tenant_id, user_id, resource_type, action)


class TestMemoryDecisionCache:
    
    @pytest.mark.asyncio
    async def test_get_and_set(self):
        cache = MemoryDecisionCache(default_ttl=30)
        
        assert await cache.get(_key()) is None
        await cache.set(_key(), _decision())
        
        assert await cache.get(_key()) == _decision()
        stats = cache.get_stats()
        assert (stats["hits"], stats["misses"], stats["sets"]) == (1, 1, 1)
    
    @pytest.mark.asyncio
    async def test_entries_expire(self):
        clock = FakeMonotonic()
        cache = MemoryDecisionCache(default_ttl=30, clock=clock)
        await cache.set(_key(), _decision(), ttl=10)
        
        clock.value += 10
        
        assert await cache.get(_key()) is None
        assert len(cache) == 0
    
    @pytest.mark.asyncio
    async def test_ttl_is_capped_by_default(self):
        clock = FakeMonotonic()
        cache = MemoryDecisionCache(default_ttl=5, clock=clock)
        await cache.set(_key(), _decision(), ttl=300)
        
        clock.value += 6
        
        assert await cache.get(_key()) is None
    
    @pytest.mark.asyncio
    async def test_non_positive_ttl_is_not_stored(self):
        cache = MemoryDecisionCache()
        
        await cache.set(_key(), _decision(), ttl=0)
        
        assert len(cache) == 0
    
    @pytest.mark.asyncio
    async def test_bounded_size_evicts_least_recent(self):
        cache = MemoryDecisionCache(max_entries=2, shards=1)
        for action in ("View", "Update", "Delete"):
            await cache.set(_key(action=action), _decision(action=action))
        
        assert len(cache) == 2
        assert await cache.get(_key(action="View")) is None
        assert cache.get_stats()["evictions"] == 1
    
    @pytest.mark.asyncio
    async def test_invalidate_user_scope(self):
        cache = MemoryDecisionCache()
        await cache.set(_key("u1"), _decision("u1"))
        await cache.set(_key("u2"), _decision("u2"))
        
        removed = await cache.invalidate(InvalidationPattern("T1", "u1"))
        
        assert removed == 1
        assert await cache.get(_key("u1")) is None
        assert await cache.get(_key("u2")) is not None
    
    @pytest.mark.asyncio
    async def test_invalidate_action_scope(self):
        cache = MemoryDecisionCache()
        await cache.set(_key(action="View"), _decision(action="View"))
        await cache.set(_key(action="Update"), _decision(action="Update"))
        
        await cache.invalidate(InvalidationPattern("T1", "u1", "User", "Update"))
        
        assert await cache.get(_key(action="View")) is not None
        assert await cache.get(_key(action="Update")) is None
    
    @pytest.mark.asyncio
    async def test_invalidate_tenant_spans_shards(self):
        cache = MemoryDecisionCache(shards=8)
        for index in range(20):
            await cache.set(_key(f"u{index}"), _decision(f"u{index}"))
        await cache.set(_key("u1", "T2"), _decision("u1", "T2"))
        
        removed = await cache.invalidate(InvalidationPattern("T1"))
        
        assert removed == 20
        assert len(cache) == 1
    
    def test_rejects_invalid_configuration(self):
        with pytest.raises(ValueError):
            MemoryDecisionCache(max_entries=0)
        with pytest.raises(ValueError):
            MemoryDecisionCache(shards=0)
    
    @pytest.mark.asyncio
    async def test_write_with_stale_generation_is_dropped(self):
        cache = MemoryDecisionCache()
        generation = await cache.generation("T1", "u1")
        
        await cache.invalidate(InvalidationPattern("T1", "u1", "User", "View"))
        await cache.set(_key(), _decision(), generation=generation)
        
        assert await cache.get(_key()) is None
        assert cache.get_stats()["stale_writes"] == 1
    
    @pytest.mark.asyncio
    async def test_tenant_invalidation_moves_every_user_generation(self):
        cache = MemoryDecisionCache()
        before = await cache.generation("T1", "u7")
        
        await cache.invalidate(InvalidationPattern("T1"))
        
        assert await cache.generation("T1", "u7") != before
        assert await cache.generation("T2", "u7") == (0, 0)
    
    @pytest.mark.asyncio
    async def test_current_generation_is_written(self):
        cache = MemoryDecisionCache()
        await cache.invalidate(InvalidationPattern("T1", "u1"))
        
        await cache.set(_key(), _decision(), generation=await cache.generation("T1", "u1"))
        
        assert await cache.get(_key()) == _decision()
