"""Exceptions module for neo-authz.

This module provides the complete exception hierarchy for neo-authz,
organized by authorization concerns and infrastructure concerns.
"""

from .base import (
    NeoAuthzError,
    get_http_status_code,
    create_error_response,
)

from .authorization import (
    AuthorizationError,
    TenantContextMissing,
    UnknownPermission,
    PermissionDeniedError,
    SystemRoleImmutableError,
    RoleNotFoundError,
    ConfigurationError,
    CycleInDependencyConfig,
    RBACConfigurationError,
)

from .infrastructure import (
    StoreUnavailable,
    CacheError,
    CacheUnavailable,
    CacheSerializationError,
)

__all__ = [
    # Base
    "NeoAuthzError",
    "get_http_status_code",
    "create_error_response",
    
    # Authorization
    "AuthorizationError",
    "TenantContextMissing",
    "UnknownPermission",
    "PermissionDeniedError",
    "SystemRoleImmutableError",
    "RoleNotFoundError",
    
    # Configuration
    "ConfigurationError",
    "CycleInDependencyConfig",
    "RBACConfigurationError",
    
    # Infrastructure
    "StoreUnavailable",
    "CacheError",
    "CacheUnavailable",
    "CacheSerializationError",
]
