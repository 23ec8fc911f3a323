"""Shared decision cache (L2) backed by Redis.

Decisions are stored as JSON with a TTL. Each ``(tenant, user)`` pair
owns a tag set indexing its keys, so scoped invalidation never needs a
keyspace scan. Invalidation first increments a generation counter for the
scope, then deletes keys, then publishes a message so peer processes drop
their in-process layer. Writes carrying a generation are discarded once
that counter has moved.
"""

import asyncio
import json
import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError, WatchError

from ....config.constants import CacheTTL
from ....core.exceptions import CacheSerializationError, CacheUnavailable
from ...permissions.entities.decision import Decision
from ..entities import CacheStats, DecisionCacheKey, Generation, InvalidationPattern, generation_keys

logger = logging.getLogger(__name__)

InvalidationCallback = Callable[[InvalidationPattern], Awaitable[None]]


class RedisDecisionCache:
    """Redis decision cache with tag-indexed invalidation and pub/sub fan-out."""
    
    def __init__(
        self,
        redis_client: Redis,
        prefix: str = "authz",
        default_ttl: int = CacheTTL.DECISION,
        channel: str = "authz:invalidations",
        node_id: Optional[str] = None
    ):
        self.redis_client = redis_client
        self.prefix = prefix
        self.default_ttl = default_ttl
        self.channel = channel
        self.node_id = node_id or uuid.uuid4().hex
        self._stats = CacheStats()
        self._listener: Optional[asyncio.Task] = None
    
    async def get(self, key: DecisionCacheKey) -> Optional[Decision]:
        redis_key = key.render(self.prefix)
        try:
            raw = await self.redis_client.get(redis_key)
        except RedisError as e:
            self._stats.errors += 1
            raise CacheUnavailable(f"Redis get error: {e}")
        
        if raw is None:
            self._stats.misses += 1
            return None
        
        try:
            decision = Decision.from_dict(json.loads(_text(raw)))
        except (ValueError, CacheSerializationError) as e:
            logger.warning(f"Discarding undecodable cached decision {redis_key}: {e}")
            self._stats.misses += 1
            return None
        
        if not key.describes(decision):
            logger.error(f"Cached decision under {redis_key} belongs to another request: {decision}")
            self._stats.misses += 1
            return None
        
        self._stats.hits += 1
        return decision
    
    async def generation(self, tenant_id: str, user_id: str) -> Generation:
        """Read the tenant and user invalidation counters."""
        try:
            values = await self.redis_client.mget(*generation_keys(self.prefix, tenant_id, user_id))
        except RedisError as e:
            self._stats.errors += 1
            raise CacheUnavailable(f"Redis generation read error: {e}")
        return _as_generation(values)
    
    async def set(
        self,
        key: DecisionCacheKey,
        decision: Decision,
        ttl: Optional[float] = None,
        generation: Optional[Generation] = None
    ) -> None:
        """Store a decision; with ``generation`` the write only lands if no invalidation intervened.
        
        The generation check and the write run in one WATCH/MULTI
        transaction, so an invalidation from any process between the two
        aborts the write.
        """
        ttl = self.default_ttl if ttl is None else min(ttl, self.default_ttl)
        # Redis expiry has one second resolution; never round a bound upwards
        ttl_seconds = int(math.floor(ttl))
        if ttl_seconds < 1:
            return
        
        redis_key = key.render(self.prefix)
        tag_key = key.user_tag(self.prefix)
        try:
            async with self.redis_client.pipeline(transaction=True) as pipe:
                if generation is not None:
                    version_keys = generation_keys(self.prefix, key.tenant_id, key.user_id)
                    await pipe.watch(*version_keys)
                    if _as_generation(await pipe.mget(*version_keys)) != generation:
                        self._stats.stale_writes += 1
                        return
                    pipe.multi()
                pipe.set(redis_key, json.dumps(decision.to_dict()), ex=ttl_seconds)
                pipe.sadd(tag_key, redis_key)
                pipe.expire(tag_key, self.default_ttl)
                await pipe.execute()
        except WatchError:
            self._stats.stale_writes += 1
            logger.debug(f"Dropped stale write for {redis_key}")
            return
        except RedisError as e:
            self._stats.errors += 1
            raise CacheUnavailable(f"Redis set error: {e}")
        self._stats.sets += 1
    
    async def invalidate(self, pattern: InvalidationPattern, publish: bool = True) -> int:
        """Bump the scope's generation, delete every decision in scope, then notify peers.
        
        Raises:
            CacheUnavailable: If Redis cannot be reached; callers must not
                acknowledge the mutation that triggered the invalidation
        """
        try:
            generation_key = pattern.generation_key(self.prefix)
            await self.redis_client.incr(generation_key)
            await self.redis_client.expire(generation_key, CacheTTL.GENERATION)
            
            if pattern.is_tenant_wide:
                tag_keys = await self.redis_client.keys(pattern.tenant_tag_pattern(self.prefix))
            else:
                tag_keys = [pattern.user_tag(self.prefix)]
            
            removed = 0
            for tag_key in tag_keys:
                removed += await self._invalidate_tag(_text(tag_key), pattern)
            
            if publish:
                await self.publish_invalidation(pattern)
        except RedisError as e:
            self._stats.errors += 1
            raise CacheUnavailable(f"Redis invalidation error for {pattern}: {e}")
        
        self._stats.invalidations += 1
        logger.debug(f"Dropped {removed} shared decisions for {pattern}")
        return removed
    
    async def _invalidate_tag(self, tag_key: str, pattern: InvalidationPattern) -> int:
        members = [_text(m) for m in await self.redis_client.smembers(tag_key)]
        
        if pattern.is_tenant_wide or pattern.is_user_wide:
            if members:
                await self.redis_client.delete(*members, tag_key)
            else:
                await self.redis_client.delete(tag_key)
            return len(members)
        
        key_prefix = pattern.key_prefix(self.prefix)
        doomed = [m for m in members if m.startswith(key_prefix)]
        if doomed:
            await self.redis_client.delete(*doomed)
            await self.redis_client.srem(tag_key, *doomed)
        return len(doomed)
    
    async def publish_invalidation(self, pattern: InvalidationPattern) -> None:
        """Notify peer processes of an invalidation."""
        message = {
            "type": "invalidation",
            "node_id": self.node_id,
            "pattern": pattern.to_dict(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        await self.redis_client.publish(self.channel, json.dumps(message))
    
    async def handle_message(self, data: Any, callback: InvalidationCallback) -> bool:
        """Apply one pub/sub payload; returns whether the callback ran."""
        try:
            event = json.loads(_text(data))
            if event.get("type") != "invalidation":
                return False
            # Don't process our own events
            if event.get("node_id") == self.node_id:
                return False
            pattern = InvalidationPattern.from_dict(event["pattern"])
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to decode invalidation event: {e}")
            return False
        
        await callback(pattern)
        return True
    
    def start_listener(self, callback: InvalidationCallback) -> asyncio.Task:
        """Subscribe to peer invalidations in a background task."""
        if self._listener is not None and not self._listener.done():
            return self._listener
        
        async def listen():
            pubsub = self.redis_client.pubsub()
            await pubsub.subscribe(self.channel)
            try:
                async for message in pubsub.listen():
                    if message.get("type") != "message":
                        continue
                    try:
                        await self.handle_message(message["data"], callback)
                    except Exception as e:
                        logger.error(f"Failed to apply peer invalidation: {e}")
            finally:
                await pubsub.unsubscribe(self.channel)
        
        self._listener = asyncio.create_task(listen())
        logger.info(f"Listening for decision invalidations on {self.channel}")
        return self._listener
    
    async def stop_listener(self) -> None:
        if self._listener is None:
            return
        self._listener.cancel()
        try:
            await self._listener
        except asyncio.CancelledError:
            pass
        self._listener = None
    
    def get_stats(self) -> Dict[str, Any]:
        stats = self._stats.to_dict()
        stats["node_id"] = self.node_id
        return stats


def _text(value: Any) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


def _as_generation(values: List[Any]) -> Generation:
    tenant, user = (int(_text(v)) if v is not None else 0 for v in values)
    return (tenant, user)
