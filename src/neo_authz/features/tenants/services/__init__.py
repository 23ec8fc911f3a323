"""Tenant services."""

from .boundary_resolver import BoundaryResolver
from .tenant_context import TenantContext, tenant_context

__all__ = [
    "BoundaryResolver",
    "TenantContext",
    "tenant_context",
]
