"""Permission services."""

from .dependency_resolver import DependencyResolver
from .config_validator import RBACConfigValidator, ConfigurationWarning, ValidationReport
from .permission_engine import PermissionEngine, GrantSnapshot
from .grant_validator import GrantValidator, GrantCheckResult
from .administration import PermissionAdministrationService

__all__ = [
    "DependencyResolver",
    "RBACConfigValidator",
    "ConfigurationWarning",
    "ValidationReport",
    "PermissionEngine",
    "GrantSnapshot",
    "GrantValidator",
    "GrantCheckResult",
    "PermissionAdministrationService",
]
