"""Cache adapters."""

from .memory_adapter import MemoryDecisionCache
from .redis_adapter import RedisDecisionCache

__all__ = [
    "MemoryDecisionCache",
    "RedisDecisionCache",
]
