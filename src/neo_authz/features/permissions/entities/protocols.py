"""Protocol interfaces for permission feature dependency injection.

Defines the contracts the resolution engine depends on (the read-only
permission store) and the capability it exposes to callers
(``PermissionChecker``).
"""

from abc import abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol, Sequence, Set, runtime_checkable

from ...tenants.entities import Tenant
from .decision import Decision
from .permission import Permission, PermissionGrant
from .role import Role


@runtime_checkable
class PermissionStore(Protocol):
    """Read-only access to persisted grant data, scoped by tenant.
    
    Implementations apply tenant filtering at the query level: no row
    belonging to another tenant may ever be returned.
    """
    
    @abstractmethod
    async def get_roles_for_user(self, user_id: str, tenant_id: str) -> Set[str]:
        """Get ids of roles the user holds in the tenant, plus their system roles."""
        ...
    
    @abstractmethod
    async def get_permissions_for_roles(self, role_ids: Set[str]) -> Set[Permission]:
        """Get the union of permissions linked to the given roles."""
        ...
    
    @abstractmethod
    async def get_direct_permissions(self, user_id: str, tenant_id: str) -> Set[PermissionGrant]:
        """Get direct permission grants of the user in the tenant."""
        ...
    
    @abstractmethod
    async def get_system_roles_for_user(self, user_id: str) -> List[Role]:
        """Get global system roles held by the user."""
        ...
    
    @abstractmethod
    async def get_users_with_role(self, role_id: str, tenant_id: str) -> Set[str]:
        """Get ids of users holding the role in the tenant."""
        ...
    
    @abstractmethod
    async def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        """Get a tenant by id."""
        ...
    
    @abstractmethod
    async def is_tenant_member(self, user_id: str, tenant_id: str) -> bool:
        """Check whether the user belongs to the tenant."""
        ...
    
    @abstractmethod
    def is_ownership_gated(self, permission: Permission) -> bool:
        """Static configuration: whether the permission requires resource ownership."""
        ...
    
    @abstractmethod
    async def get_resource_owner(self, tenant_id: str, resource_type: str, resource_id: str) -> Optional[str]:
        """Get the creator of a resource inside the tenant."""
        ...


@runtime_checkable
class PermissionStoreWriter(Protocol):
    """Administrative mutations of grant data."""
    
    @abstractmethod
    async def get_role(self, role_id: str, tenant_id: Optional[str] = None) -> Optional[Role]:
        """Get a role; tenant roles resolve only inside their tenant."""
        ...
    
    @abstractmethod
    async def assign_role(self, user_id: str, role_id: str, tenant_id: str) -> bool:
        """Link a user to a role within a tenant."""
        ...
    
    @abstractmethod
    async def revoke_role(self, user_id: str, role_id: str, tenant_id: str) -> bool:
        """Remove a user-role link within a tenant."""
        ...
    
    @abstractmethod
    async def add_role_permission(self, role_id: str, tenant_id: str, permission: Permission) -> bool:
        """Link a permission to a tenant role."""
        ...
    
    @abstractmethod
    async def remove_role_permission(self, role_id: str, tenant_id: str, permission: Permission) -> bool:
        """Unlink a permission from a tenant role."""
        ...
    
    @abstractmethod
    async def grant_direct_permission(
        self,
        user_id: str,
        tenant_id: str,
        permission: Permission,
        expires_at: Optional[datetime] = None
    ) -> bool:
        """Grant a permission directly to a user within a tenant."""
        ...
    
    @abstractmethod
    async def revoke_direct_permission(self, user_id: str, tenant_id: str, permission: Permission) -> bool:
        """Revoke a direct permission."""
        ...
    
    @abstractmethod
    async def remove_tenant_member(self, user_id: str, tenant_id: str) -> bool:
        """Remove a user from a tenant along with their roles and direct grants there."""
        ...
    
    @abstractmethod
    async def set_tenant_status(self, tenant_id: str, status: str) -> bool:
        """Change a tenant's lifecycle status."""
        ...


@runtime_checkable
class PermissionChecker(Protocol):
    """Capability injected wherever access decisions are needed."""
    
    @abstractmethod
    async def check_permission(
        self,
        user_id: str,
        tenant_id: Optional[str],
        resource_type: str,
        action: str,
        resource_id: Optional[str] = None,
        *,
        target_tenant_id: Optional[str] = None,
        operation: Optional[str] = None
    ) -> Decision:
        """Decide whether the user may perform the action."""
        ...
    
    @abstractmethod
    async def check_permissions(
        self,
        user_id: str,
        tenant_id: Optional[str],
        checks: Sequence["PermissionCheck"]
    ) -> List[Decision]:
        """Decide a batch of checks for one user and tenant."""
        ...


@dataclass(frozen=True)
class PermissionCheck:
    """One entry of a batch permission check."""
    
    resource_type: str
    action: str
    resource_id: Optional[str] = None
