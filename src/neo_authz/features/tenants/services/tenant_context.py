"""Request-scoped active tenant context.

Middleware sets the active tenant explicitly after authentication or an
explicit tenant switch; nothing here ever infers a default tenant.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

from ....core.exceptions import TenantContextMissing

active_tenant_var: ContextVar[Optional[str]] = ContextVar("active_tenant_id", default=None)


class TenantContext:
    """Tenant context provider backed by a context variable (async-safe)."""
    
    def __init__(self, var: ContextVar[Optional[str]] = active_tenant_var):
        self._var = var
    
    def get(self) -> Optional[str]:
        """Get the active tenant id, if any."""
        return self._var.get()
    
    def require(self) -> str:
        """Get the active tenant id or raise TenantContextMissing."""
        tenant_id = self._var.get()
        if not tenant_id:
            raise TenantContextMissing()
        return tenant_id
    
    @contextmanager
    def use(self, tenant_id: str) -> Iterator[str]:
        """Activate a tenant for the duration of the block."""
        if not tenant_id:
            raise TenantContextMissing("Cannot activate an empty tenant context")
        token = self._var.set(tenant_id)
        try:
            yield tenant_id
        finally:
            self._var.reset(token)


tenant_context = TenantContext()
