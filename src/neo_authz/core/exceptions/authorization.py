"""Authorization and configuration exceptions for neo-authz."""

from typing import List, Optional

from .base import NeoAuthzError


# Authorization Errors
class AuthorizationError(NeoAuthzError):
    """Base class for authorization errors."""
    pass


class TenantContextMissing(AuthorizationError):
    """Raised when no active tenant context is available for a request.
    
    Callers must establish the tenant context explicitly; an absent tenant
    never means "all tenants".
    """
    
    def __init__(self, message: str = "Active tenant context is required", **kwargs):
        super().__init__(message, error_code="TENANT_CONTEXT_MISSING", **kwargs)


class UnknownPermission(AuthorizationError):
    """Raised when a resource/action pair is not part of the permission taxonomy."""
    
    def __init__(self, resource_type: str, action: str, **kwargs):
        super().__init__(
            f"Unknown permission: {resource_type}:{action}",
            error_code="UNKNOWN_PERMISSION",
            details={"resource_type": resource_type, "action": action},
            **kwargs
        )
        self.resource_type = resource_type
        self.action = action


class PermissionDeniedError(AuthorizationError):
    """Raised when an operation is rejected by a permission check."""
    pass


class SystemRoleImmutableError(AuthorizationError):
    """Raised when attempting to mutate a system role."""
    pass


class RoleNotFoundError(AuthorizationError):
    """Raised when a role does not exist in the requested tenant."""
    pass


# Configuration Errors
class ConfigurationError(NeoAuthzError):
    """Base class for configuration errors."""
    pass


class CycleInDependencyConfig(ConfigurationError):
    """Raised at startup when the permission dependency table contains a cycle."""
    
    def __init__(self, cycle: List[str], **kwargs):
        path = " -> ".join(cycle)
        super().__init__(
            f"Cycle in permission dependency configuration: {path}",
            error_code="DEPENDENCY_CYCLE",
            details={"cycle": list(cycle)},
            **kwargs
        )
        self.cycle = list(cycle)


class RBACConfigurationError(ConfigurationError):
    """Raised in strict mode when a role violates functional dependencies."""
    
    def __init__(self, message: str, role_id: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="RBAC_CONFIGURATION", **kwargs)
        self.role_id = role_id
