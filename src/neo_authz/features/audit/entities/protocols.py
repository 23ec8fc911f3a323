"""Protocol for the external audit collaborator."""

from abc import abstractmethod
from typing import Protocol, runtime_checkable

from .events import CrossTenantAccessEvent, PermissionCheckEvent


@runtime_checkable
class AuditSink(Protocol):
    """Receives audit events; storage format is owned by the implementation."""
    
    @abstractmethod
    async def log_cross_tenant_access(self, event: CrossTenantAccessEvent) -> None:
        """Record a cross-tenant access attempt, allowed or not."""
        ...
    
    @abstractmethod
    async def log_permission_check(self, event: PermissionCheckEvent) -> None:
        """Record a permission check outcome."""
        ...
