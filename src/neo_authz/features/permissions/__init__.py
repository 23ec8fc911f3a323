"""Permissions feature for neo-authz.

Feature-First architecture for permission resolution:
- entities/: permissions, roles, taxonomy, decisions and store protocols
- repositories/: in-memory and AsyncPG permission stores
- services/: dependency resolver, resolution engine and administration

Services are imported from ``neo_authz.features.permissions.services``.
"""

from .entities import (
    Permission,
    PermissionGrant,
    Role,
    PermissionTaxonomy,
    Decision,
    DecisionCode,
    GrantSource,
    PermissionStore,
    PermissionStoreWriter,
    PermissionChecker,
    PermissionCheck,
)
from .repositories import InMemoryPermissionStore, AsyncPGPermissionStore

__all__ = [
    "Permission",
    "PermissionGrant",
    "Role",
    "PermissionTaxonomy",
    "Decision",
    "DecisionCode",
    "GrantSource",
    "PermissionStore",
    "PermissionStoreWriter",
    "PermissionChecker",
    "PermissionCheck",
    "InMemoryPermissionStore",
    "AsyncPGPermissionStore",
]
