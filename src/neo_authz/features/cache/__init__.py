"""Cache feature for neo-authz.

Feature-First architecture for decision caching:
- entities/: cache keys, invalidation scopes and the cache protocol
- adapters/: in-process (L1) and Redis (L2) layers
- services/: the multi-level cache composing both layers
"""

from .entities import CacheGeneration, CacheStats, DecisionCache, DecisionCacheKey, InvalidationPattern
from .adapters import MemoryDecisionCache, RedisDecisionCache
from .services import MultiLevelDecisionCache, create_decision_cache

__all__ = [
    "CacheGeneration",
    "CacheStats",
    "DecisionCache",
    "DecisionCacheKey",
    "InvalidationPattern",
    "MemoryDecisionCache",
    "RedisDecisionCache",
    "MultiLevelDecisionCache",
    "create_decision_cache",
]
