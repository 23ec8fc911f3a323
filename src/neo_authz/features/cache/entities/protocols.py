"""Protocol interfaces for the decision cache layers."""

from abc import abstractmethod
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from ...permissions.entities.decision import Decision
from .keys import DecisionCacheKey, Generation, InvalidationPattern


@runtime_checkable
class DecisionCache(Protocol):
    """A cache of permission decisions keyed by tenant and user."""
    
    @abstractmethod
    async def get(self, key: DecisionCacheKey) -> Optional[Decision]:
        """Get a cached decision or None on miss."""
        ...
    
    @abstractmethod
    async def set(
        self,
        key: DecisionCacheKey,
        decision: Decision,
        ttl: Optional[float] = None,
        generation: Optional[Generation] = None
    ) -> None:
        """Store a decision for at most ``ttl`` seconds.
        
        With ``generation``, the write is dropped when the key's scope was
        invalidated since that generation was read.
        """
        ...
    
    @abstractmethod
    async def generation(self, tenant_id: str, user_id: str) -> Generation:
        """Get the invalidation counters of a user in a tenant."""
        ...
    
    @abstractmethod
    async def invalidate(self, pattern: InvalidationPattern) -> int:
        """Drop every decision inside the pattern's scope; returns the count dropped."""
        ...
    
    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        ...
