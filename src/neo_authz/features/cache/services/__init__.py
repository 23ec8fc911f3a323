"""Cache services."""

from .multi_level_cache import MultiLevelDecisionCache, create_decision_cache

__all__ = [
    "MultiLevelDecisionCache",
    "create_decision_cache",
]
