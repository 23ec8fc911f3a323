"""In-process decision cache (L1).

Entries live in lock shards chosen by ``(tenant, user)`` so concurrent
checks for different users never contend on one global lock.
"""

import asyncio
import logging
import math
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ...permissions.entities.decision import Decision
from ..entities import CacheStats, DecisionCacheKey, Generation, InvalidationPattern

logger = logging.getLogger(__name__)


@dataclass
class MemoryCacheEntry:
    """Memory cache entry with its monotonic expiry."""
    decision: Decision
    expires_at: float
    
    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class _Shard:
    """One lock-protected LRU partition."""
    
    __slots__ = ("lock", "entries")
    
    def __init__(self):
        self.lock = asyncio.Lock()
        self.entries: "OrderedDict[DecisionCacheKey, MemoryCacheEntry]" = OrderedDict()


class MemoryDecisionCache:
    """Bounded, TTL-based, sharded decision cache."""
    
    def __init__(
        self,
        max_entries: int = 10000,
        default_ttl: float = 30,
        shards: int = 16,
        clock: Callable[[], float] = time.monotonic
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        if shards < 1:
            raise ValueError("shards must be positive")
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self._clock = clock
        self._shards: List[_Shard] = [_Shard() for _ in range(shards)]
        self._shard_capacity = max(1, math.ceil(max_entries / shards))
        self._stats = CacheStats()
        # Invalidation counters per (tenant, None) and (tenant, user) scope
        self._generations: Dict[Tuple[str, Optional[str]], int] = {}
    
    def _shard_for(self, tenant_id: str, user_id: str) -> _Shard:
        return self._shards[hash((tenant_id, user_id)) % len(self._shards)]
    
    async def get(self, key: DecisionCacheKey) -> Optional[Decision]:
        shard = self._shard_for(key.tenant_id, key.user_id)
        async with shard.lock:
            entry = shard.entries.get(key)
            if entry is None:
                self._stats.misses += 1
                return None
            if entry.is_expired(self._clock()):
                del shard.entries[key]
                self._stats.misses += 1
                return None
            shard.entries.move_to_end(key)
            self._stats.hits += 1
            return entry.decision
    
    async def set(
        self,
        key: DecisionCacheKey,
        decision: Decision,
        ttl: Optional[float] = None,
        generation: Optional[Generation] = None
    ) -> None:
        ttl = self.default_ttl if ttl is None else min(ttl, self.default_ttl)
        if ttl <= 0:
            return
        
        shard = self._shard_for(key.tenant_id, key.user_id)
        async with shard.lock:
            if generation is not None and generation != self._generation(key.tenant_id, key.user_id):
                self._stats.stale_writes += 1
                logger.debug(f"Dropped stale write for {key}")
                return
            shard.entries[key] = MemoryCacheEntry(decision=decision, expires_at=self._clock() + ttl)
            shard.entries.move_to_end(key)
            self._stats.sets += 1
            while len(shard.entries) > self._shard_capacity:
                shard.entries.popitem(last=False)
                self._stats.evictions += 1
    
    async def invalidate(self, pattern: InvalidationPattern) -> int:
        # Bumped before any await so in-flight writes observe it
        scope = (pattern.tenant_id, pattern.user_id)
        self._generations[scope] = self._generations.get(scope, 0) + 1
        
        if pattern.is_tenant_wide:
            shards = self._shards
        else:
            shards = [self._shard_for(pattern.tenant_id, pattern.user_id)]
        
        removed = 0
        for shard in shards:
            async with shard.lock:
                doomed = [key for key in shard.entries if pattern.matches(key)]
                for key in doomed:
                    del shard.entries[key]
                removed += len(doomed)
        
        self._stats.invalidations += 1
        logger.debug(f"Dropped {removed} local decisions for {pattern}")
        return removed
    
    async def generation(self, tenant_id: str, user_id: str) -> Generation:
        return self._generation(tenant_id, user_id)
    
    def _generation(self, tenant_id: str, user_id: str) -> Generation:
        return (self._generations.get((tenant_id, None), 0), self._generations.get((tenant_id, user_id), 0))
    
    async def clear(self) -> None:
        for shard in self._shards:
            async with shard.lock:
                shard.entries.clear()
    
    def __len__(self) -> int:
        return sum(len(shard.entries) for shard in self._shards)
    
    def get_stats(self) -> Dict[str, Any]:
        stats = self._stats.to_dict()
        stats.update({
            "size": len(self),
            "max_entries": self.max_entries,
            "shards": len(self._shards),
        })
        return stats
