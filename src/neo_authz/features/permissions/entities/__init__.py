"""Permission entities and protocols."""

from .permission import Permission, PermissionGrant
from .role import Role
from .taxonomy import PermissionTaxonomy
from .decision import Decision, DecisionCode, GrantSource
from .protocols import (
    PermissionStore,
    PermissionStoreWriter,
    PermissionChecker,
    PermissionCheck,
)

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
]
