"""Core building blocks shared by every neo-authz feature."""

from .exceptions import (
    NeoAuthzError,
    AuthorizationError,
    TenantContextMissing,
    UnknownPermission,
    PermissionDeniedError,
    ConfigurationError,
    CycleInDependencyConfig,
    RBACConfigurationError,
    StoreUnavailable,
    CacheUnavailable,
)
from .value_objects import UserId, TenantId, RoleId

__all__ = [
    "NeoAuthzError",
    "AuthorizationError",
    "TenantContextMissing",
    "UnknownPermission",
    "PermissionDeniedError",
    "ConfigurationError",
    "CycleInDependencyConfig",
    "RBACConfigurationError",
    "StoreUnavailable",
    "CacheUnavailable",
    "UserId",
    "TenantId",
    "RoleId",
]
