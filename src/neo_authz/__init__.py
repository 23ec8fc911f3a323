"""neo-authz: multi-tenant permission resolution engine.

Decides whether a user, acting within a tenant, may perform an action on
a resource type. Decisions are the union of role and direct grants held
in one tenant, validated against tenant boundaries and cached in an
in-process layer backed by Redis.
"""

from .__version__ import __version__
from .config import AuthzSettings, get_settings, Action, TenantStatus
from .core.exceptions import (
    NeoAuthzError,
    TenantContextMissing,
    UnknownPermission,
    StoreUnavailable,
    CacheUnavailable,
    CycleInDependencyConfig,
    RBACConfigurationError,
)
from .features.permissions import (
    Permission,
    PermissionGrant,
    Role,
    PermissionTaxonomy,
    Decision,
    DecisionCode,
    PermissionCheck,
    PermissionChecker,
    PermissionStore,
    InMemoryPermissionStore,
    AsyncPGPermissionStore,
)
from .features.permissions.services import (
    DependencyResolver,
    RBACConfigValidator,
    PermissionEngine,
    PermissionAdministrationService,
)
from .features.tenants import Tenant, BoundaryResolver, tenant_context
from .features.cache import MultiLevelDecisionCache, create_decision_cache
from .features.audit import AuditDispatcher, AuditSink

__all__ = [
    "__version__",
    "AuthzSettings",
    "get_settings",
    "Action",
    "TenantStatus",
    "NeoAuthzError",
    "TenantContextMissing",
    "UnknownPermission",
    "StoreUnavailable",
    "CacheUnavailable",
    "CycleInDependencyConfig",
    "RBACConfigurationError",
    "Permission",
    "PermissionGrant",
    "Role",
    "PermissionTaxonomy",
    "Decision",
    "DecisionCode",
    "PermissionCheck",
    "PermissionChecker",
    "PermissionStore",
    "InMemoryPermissionStore",
    "AsyncPGPermissionStore",
    "DependencyResolver",
    "RBACConfigValidator",
    "PermissionEngine",
    "PermissionAdministrationService",
    "Tenant",
    "BoundaryResolver",
    "tenant_context",
    "MultiLevelDecisionCache",
    "create_decision_cache",
    "AuditDispatcher",
    "AuditSink",
]
