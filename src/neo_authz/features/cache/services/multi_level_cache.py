"""Two-level decision cache: in-process L1 in front of shared Redis L2.

L2 is authoritative. L1 entries on other processes are bounded by the
pub/sub delivery latency plus the short local TTL. Decisions resolved
from grant data read before an invalidation are never written back
(see ``generation``).
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import redis.asyncio as redis

from ....config.settings import AuthzSettings, get_settings
from ....core.exceptions import CacheUnavailable
from ...permissions.entities.decision import Decision
from ..adapters.memory_adapter import MemoryDecisionCache
from ..adapters.redis_adapter import RedisDecisionCache
from ..entities import CacheGeneration, DecisionCacheKey, InvalidationPattern

logger = logging.getLogger(__name__)


class MultiLevelDecisionCache:
    """Read L1 then L2, write through both, invalidate both before returning."""
    
    def __init__(
        self,
        local: MemoryDecisionCache,
        shared: Optional[RedisDecisionCache] = None,
        local_ttl: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.local = local
        self.shared = shared
        self.local_ttl = local_ttl if local_ttl is not None else local.default_ttl
        self._clock = clock or (lambda: datetime.now(timezone.utc))
    
    async def get(self, key: DecisionCacheKey) -> Optional[Decision]:
        decision = await self.local.get(key)
        if decision is not None and self._is_live(decision):
            return decision
        
        if self.shared is None:
            return None
        
        # Captured before the L2 read; an invalidation during the read voids the refill
        local_generation = await self.local.generation(key.tenant_id, key.user_id)
        try:
            decision = await self.shared.get(key)
        except CacheUnavailable as e:
            logger.warning(f"Shared decision cache read failed, treating as miss: {e}")
            return None
        
        if decision is None or not self._is_live(decision):
            return None
        
        # Repopulate L1 without outliving the decision's own expiry
        await self.local.set(
            key, decision, self._bounded_ttl(decision, self.local_ttl), generation=local_generation
        )
        return decision
    
    async def generation(self, tenant_id: str, user_id: str) -> CacheGeneration:
        """Capture invalidation counters before reading grant data for a user."""
        local = await self.local.generation(tenant_id, user_id)
        if self.shared is None:
            return CacheGeneration(local)
        try:
            shared = await self.shared.generation(tenant_id, user_id)
        except CacheUnavailable as e:
            logger.warning(f"Shared generation read failed, shared write-through disabled: {e}")
            shared = None
        return CacheGeneration(local, shared)
    
    async def set(
        self,
        key: DecisionCacheKey,
        decision: Decision,
        ttl: Optional[float] = None,
        generation: Optional[CacheGeneration] = None
    ) -> None:
        """Write a decision through both layers.
        
        With ``generation``, each layer drops the write if the key's scope
        was invalidated after the generation was captured.
        """
        if not decision.is_cacheable:
            return
        
        if self.shared is not None and (generation is None or generation.shared is not None):
            shared_ttl = self._bounded_ttl(decision, ttl if ttl is not None else self.shared.default_ttl)
            try:
                await self.shared.set(
                    key, decision, shared_ttl, generation=generation.shared if generation else None
                )
            except CacheUnavailable as e:
                logger.warning(f"Shared decision cache write failed: {e}")
        
        local_ttl = self.local_ttl if ttl is None else min(ttl, self.local_ttl)
        await self.local.set(
            key, decision, self._bounded_ttl(decision, local_ttl),
            generation=generation.local if generation else None,
        )
    
    async def invalidate(self, pattern: InvalidationPattern) -> int:
        """Invalidate L2 (notifying peers) then L1.
        
        L1 is cleared last, and also when L2 fails.
        
        Raises:
            CacheUnavailable: If the shared layer could not be invalidated
        """
        removed = 0
        shared_error: Optional[CacheUnavailable] = None
        if self.shared is not None:
            try:
                removed += await self.shared.invalidate(pattern)
            except CacheUnavailable as e:
                shared_error = e
        removed += await self.local.invalidate(pattern)
        if shared_error is not None:
            raise shared_error
        return removed
    
    async def apply_remote_invalidation(self, pattern: InvalidationPattern) -> None:
        """Drop L1 entries invalidated by a peer process."""
        await self.local.invalidate(pattern)
    
    def start(self) -> None:
        """Start listening for peer invalidations when a shared layer exists."""
        if self.shared is not None:
            self.shared.start_listener(self.apply_remote_invalidation)
    
    async def close(self) -> None:
        if self.shared is not None:
            await self.shared.stop_listener()
    
    def _is_live(self, decision: Decision) -> bool:
        return decision.expires_at is None or decision.expires_at > self._clock()
    
    def _bounded_ttl(self, decision: Decision, ttl: float) -> float:
        if decision.expires_at is None:
            return ttl
        remaining = (decision.expires_at - self._clock()).total_seconds()
        return min(ttl, remaining)
    
    def get_stats(self) -> Dict[str, Any]:
        return {
            "local": self.local.get_stats(),
            "shared": self.shared.get_stats() if self.shared is not None else None,
        }


def create_decision_cache(
    settings: Optional[AuthzSettings] = None,
    redis_client: Optional[Any] = None
) -> MultiLevelDecisionCache:
    """Build the decision cache from settings.
    
    A Redis layer is added when a client is passed or ``redis_url`` is set.
    Without it the in-process layer is the only one and uses the full
    decision TTL.
    """
    settings = settings or get_settings()
    
    if redis_client is None and settings.is_shared_cache_enabled:
        redis_client = redis.from_url(settings.redis_url, decode_responses=True)
    
    shared = None
    local_ttl = settings.decision_ttl_seconds
    if redis_client is not None:
        shared = RedisDecisionCache(
            redis_client,
            prefix=settings.cache_key_prefix,
            default_ttl=settings.decision_ttl_seconds,
            channel=settings.invalidation_channel,
        )
        local_ttl = min(settings.local_ttl_seconds, settings.decision_ttl_seconds)
    
    local = MemoryDecisionCache(
        max_entries=settings.local_max_entries,
        default_ttl=local_ttl,
        shards=settings.local_shards,
    )
    logger.info(
        f"Decision cache initialized (shared={'redis' if shared else 'none'}, local_ttl={local_ttl}s)"
    )
    return MultiLevelDecisionCache(local, shared, local_ttl=local_ttl)
