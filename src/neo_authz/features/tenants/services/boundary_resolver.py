"""Entity/tenant boundary resolver.

The foundational isolation primitive: decides whether an accessor acting
in one tenant context may operate on a resource owned by a target tenant.
"""

import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, TypeVar

from ....core.exceptions import StoreUnavailable, TenantContextMissing
from ...audit import AuditDispatcher, CrossTenantAccessEvent
from ..entities import BoundaryReason, BoundaryResult

if TYPE_CHECKING:
    from ...permissions.entities.protocols import PermissionStore

logger = logging.getLogger(__name__)
T = TypeVar("T")


class BoundaryResolver:
    """Validates tenant scope before any grant data is consulted."""
    
    def __init__(
        self,
        store: "PermissionStore",
        audit: Optional[AuditDispatcher] = None,
        check_tenant_status: bool = True,
        store_call: Optional[Callable[[Awaitable[T]], Awaitable[T]]] = None
    ):
        """Initialize the resolver.
        
        Args:
            store: Permission store used for system roles and tenant status
            audit: Dispatcher receiving cross-tenant access events
            check_tenant_status: Deny access to unknown or non-active target tenants
            store_call: Wrapper applied to store coroutines (timeouts); identity by default
        """
        self.store = store
        self.audit = audit or AuditDispatcher()
        self.check_tenant_status = check_tenant_status
        self._store_call = store_call or _passthrough
    
    async def validate_boundary(
        self,
        accessor_user_id: str,
        accessor_tenant_id: Optional[str],
        target_tenant_id: Optional[str] = None,
        operation: Optional[str] = None
    ) -> BoundaryResult:
        """Validate that an access stays within a permitted tenant scope.
        
        Args:
            accessor_user_id: User performing the access
            accessor_tenant_id: Tenant context currently active for the caller
            target_tenant_id: Tenant owning the resource (defaults to the active tenant)
            operation: Operation type, consulted for cross-tenant allowances
            
        Returns:
            Allowed or Denied with a reason
            
        Raises:
            TenantContextMissing: If no active tenant context is provided
            StoreUnavailable: If tenant or system-role data cannot be read
        """
        if not accessor_tenant_id:
            raise TenantContextMissing()
        
        target = target_tenant_id or accessor_tenant_id
        
        if self.check_tenant_status:
            status_result = await self._check_tenant_status(target)
            if status_result is not None:
                if target != accessor_tenant_id:
                    self._emit(accessor_user_id, accessor_tenant_id, target, False, operation)
                return status_result
        
        if target == accessor_tenant_id:
            return BoundaryResult.allow(BoundaryReason.SAME_TENANT)
        
        try:
            system_roles = await self._store_call(self.store.get_system_roles_for_user(accessor_user_id))
        except StoreUnavailable:
            # The attempt is audited even when it cannot be evaluated
            self._emit(accessor_user_id, accessor_tenant_id, target, False, operation)
            raise
        
        granting_role = next((role for role in system_roles if role.allows_cross_tenant(operation)), None)
        allowed = granting_role is not None
        self._emit(accessor_user_id, accessor_tenant_id, target, allowed, operation)
        
        if allowed:
            logger.info(
                f"Cross-tenant access allowed for user {accessor_user_id}: "
                f"{accessor_tenant_id} -> {target} via {granting_role.id} ({operation})"
            )
            return BoundaryResult.allow(BoundaryReason.CROSS_TENANT_ALLOWED, via_role=granting_role.id)
        
        logger.warning(
            f"Cross-tenant access denied for user {accessor_user_id}: "
            f"{accessor_tenant_id} -> {target} (operation={operation})"
        )
        return BoundaryResult.deny(BoundaryReason.CROSS_TENANT_DENIED)
    
    async def _check_tenant_status(self, tenant_id: str) -> Optional[BoundaryResult]:
        tenant = await self._store_call(self.store.get_tenant(tenant_id))
        if tenant is None:
            logger.warning(f"Access to unknown tenant {tenant_id} denied")
            return BoundaryResult.deny(BoundaryReason.TENANT_NOT_FOUND)
        if not tenant.is_active:
            logger.warning(f"Access to {tenant.status.value} tenant {tenant_id} denied")
            return BoundaryResult.deny(BoundaryReason.TENANT_INACTIVE)
        return None
    
    def _emit(
        self,
        user_id: str,
        source_tenant_id: str,
        target_tenant_id: str,
        allowed: bool,
        operation: Optional[str]
    ) -> None:
        self.audit.cross_tenant_access(CrossTenantAccessEvent(
            accessor_user_id=user_id,
            source_tenant_id=source_tenant_id,
            target_tenant_id=target_tenant_id,
            allowed=allowed,
            operation=operation,
        ))


async def _passthrough(awaitable):
    return await awaitable
