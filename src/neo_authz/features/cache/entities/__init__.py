"""Cache entities."""

from .keys import (
    CacheGeneration,
    DecisionCacheKey,
    Generation,
    InvalidationPattern,
    NO_RESOURCE,
    encode_component,
    generation_keys,
)
from .stats import CacheStats
from .protocols import DecisionCache

__all__ = [
    "CacheGeneration",
    "DecisionCacheKey",
    "Generation",
    "InvalidationPattern",
    "NO_RESOURCE",
    "encode_component",
    "generation_keys",
    "CacheStats",
    "DecisionCache",
]
