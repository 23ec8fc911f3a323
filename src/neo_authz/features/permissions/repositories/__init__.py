"""Permission store implementations."""

from .memory_store import InMemoryPermissionStore
from .asyncpg_store import AsyncPGPermissionStore

__all__ = [
    "InMemoryPermissionStore",
    "AsyncPGPermissionStore",
]
