"""Tenants feature for neo-authz.

Feature-First architecture for tenant isolation:
- entities/: tenant entity and boundary results
- services/: boundary resolver and the active tenant context provider
"""

from .entities import Tenant, BoundaryResult, BoundaryReason
from .services import BoundaryResolver, TenantContext, tenant_context

__all__ = [
    "Tenant",
    "BoundaryResult",
    "BoundaryReason",
    "BoundaryResolver",
    "TenantContext",
    "tenant_context",
]
