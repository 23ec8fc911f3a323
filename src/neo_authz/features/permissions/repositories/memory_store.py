"""In-memory permission store.

Implements both the read contract used by the engine and the
administrative writer. Suitable for tests, development and hosts that
load grant data from static configuration.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ....config.constants import TenantStatus
from ....core.exceptions import RoleNotFoundError
from ...tenants.entities import Tenant
from ..entities.permission import Permission, PermissionGrant
from ..entities.role import Role

logger = logging.getLogger(__name__)


class InMemoryPermissionStore:
    """Dictionary-backed permission store with tenant-filtered reads."""
    
    def __init__(self, ownership_gated: Iterable[Permission] = ()):
        self._tenants: Dict[str, Tenant] = {}
        self._roles: Dict[str, Role] = {}
        self._members: Dict[str, Set[str]] = {}
        self._user_roles: Dict[Tuple[str, str], Set[str]] = {}
        self._system_assignments: Dict[str, Set[str]] = {}
        self._direct: Dict[Tuple[str, str], Dict[Permission, PermissionGrant]] = {}
        self._owners: Dict[Tuple[str, str, str], str] = {}
        self._ownership_gated: Set[Permission] = set(ownership_gated)
    
    # Setup helpers
    
    def add_tenant(self, tenant: Tenant) -> Tenant:
        self._tenants[tenant.id] = tenant
        self._members.setdefault(tenant.id, set())
        return tenant
    
    def add_role(self, role: Role) -> Role:
        if role.tenant_id is not None and role.tenant_id not in self._tenants:
            self.add_tenant(Tenant(role.tenant_id))
        self._roles[role.id] = role
        return role
    
    def add_member(self, user_id: str, tenant_id: str) -> None:
        self._members.setdefault(tenant_id, set()).add(user_id)
    
    def add_assignment(self, user_id: str, role_id: str, tenant_id: Optional[str] = None) -> None:
        """Assign a role during setup; system roles ignore the tenant."""
        role = self._roles.get(role_id)
        if role is None or (not role.is_system_role and role.tenant_id != tenant_id):
            raise RoleNotFoundError(f"Role {role_id} not found in tenant {tenant_id}")
        self._assign(user_id, role, tenant_id)
    
    def set_resource_owner(self, tenant_id: str, resource_type: str, resource_id: str, owner_id: str) -> None:
        self._owners[(tenant_id, resource_type, resource_id)] = owner_id
    
    def set_ownership_gated(self, permission: Permission, gated: bool = True) -> None:
        if gated:
            self._ownership_gated.add(permission)
        else:
            self._ownership_gated.discard(permission)
    
    # PermissionStore
    
    async def get_roles_for_user(self, user_id: str, tenant_id: str) -> Set[str]:
        role_ids = {
            role_id for role_id in self._user_roles.get((user_id, tenant_id), set())
            if self._roles.get(role_id) is not None and self._roles[role_id].tenant_id == tenant_id
        }
        return role_ids | set(self._system_assignments.get(user_id, set()))
    
    async def get_permissions_for_roles(self, role_ids: Set[str]) -> Set[Permission]:
        permissions: Set[Permission] = set()
        for role_id in role_ids:
            role = self._roles.get(role_id)
            if role is not None:
                permissions |= role.permissions
        return permissions
    
    async def get_direct_permissions(self, user_id: str, tenant_id: str) -> Set[PermissionGrant]:
        return set(self._direct.get((user_id, tenant_id), {}).values())
    
    async def get_system_roles_for_user(self, user_id: str) -> List[Role]:
        return [
            self._roles[role_id]
            for role_id in sorted(self._system_assignments.get(user_id, set()))
            if role_id in self._roles
        ]
    
    async def get_users_with_role(self, role_id: str, tenant_id: str) -> Set[str]:
        role = self._roles.get(role_id)
        if role is not None and role.is_system_role:
            return {user for user, roles in self._system_assignments.items() if role_id in roles}
        return {
            user_id for (user_id, role_tenant), roles in self._user_roles.items()
            if role_tenant == tenant_id and role_id in roles
        }
    
    async def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        return self._tenants.get(tenant_id)
    
    async def is_tenant_member(self, user_id: str, tenant_id: str) -> bool:
        return user_id in self._members.get(tenant_id, set())
    
    def is_ownership_gated(self, permission: Permission) -> bool:
        return permission in self._ownership_gated
    
    async def get_resource_owner(self, tenant_id: str, resource_type: str, resource_id: str) -> Optional[str]:
        return self._owners.get((tenant_id, resource_type, resource_id))
    
    # PermissionStoreWriter
    
    async def get_role(self, role_id: str, tenant_id: Optional[str] = None) -> Optional[Role]:
        role = self._roles.get(role_id)
        if role is None:
            return None
        if role.is_system_role or role.tenant_id == tenant_id:
            return role
        return None
    
    async def assign_role(self, user_id: str, role_id: str, tenant_id: str) -> bool:
        role = await self._require_role(role_id, tenant_id)
        return self._assign(user_id, role, tenant_id)
    
    def _assign(self, user_id: str, role: Role, tenant_id: str) -> bool:
        role_id = role.id
        if role.is_system_role:
            assigned = self._system_assignments.setdefault(user_id, set())
        else:
            self.add_member(user_id, tenant_id)
            assigned = self._user_roles.setdefault((user_id, tenant_id), set())
        if role_id in assigned:
            return False
        assigned.add(role_id)
        return True
    
    async def revoke_role(self, user_id: str, role_id: str, tenant_id: str) -> bool:
        role = await self._require_role(role_id, tenant_id)
        if role.is_system_role:
            assigned = self._system_assignments.get(user_id, set())
        else:
            assigned = self._user_roles.get((user_id, tenant_id), set())
        if role_id not in assigned:
            return False
        assigned.discard(role_id)
        return True
    
    async def add_role_permission(self, role_id: str, tenant_id: str, permission: Permission) -> bool:
        role = await self._require_role(role_id, tenant_id)
        if permission in role.permissions:
            return False
        self._roles[role_id] = role.with_permissions(role.permissions | {permission})
        return True
    
    async def remove_role_permission(self, role_id: str, tenant_id: str, permission: Permission) -> bool:
        role = await self._require_role(role_id, tenant_id)
        if permission not in role.permissions:
            return False
        self._roles[role_id] = role.with_permissions(role.permissions - {permission})
        return True
    
    async def grant_direct_permission(
        self,
        user_id: str,
        tenant_id: str,
        permission: Permission,
        expires_at: Optional[datetime] = None
    ) -> bool:
        return self.add_direct_grant(user_id, tenant_id, permission, expires_at)
    
    def add_direct_grant(
        self,
        user_id: str,
        tenant_id: str,
        permission: Permission,
        expires_at: Optional[datetime] = None
    ) -> bool:
        grants = self._direct.setdefault((user_id, tenant_id), {})
        grant = PermissionGrant(permission, expires_at)
        if grants.get(permission) == grant:
            return False
        grants[permission] = grant
        self.add_member(user_id, tenant_id)
        return True
    
    async def revoke_direct_permission(self, user_id: str, tenant_id: str, permission: Permission) -> bool:
        grants = self._direct.get((user_id, tenant_id), {})
        return grants.pop(permission, None) is not None
    
    async def remove_tenant_member(self, user_id: str, tenant_id: str) -> bool:
        was_member = user_id in self._members.get(tenant_id, set())
        self._members.get(tenant_id, set()).discard(user_id)
        had_roles = bool(self._user_roles.pop((user_id, tenant_id), None))
        had_grants = bool(self._direct.pop((user_id, tenant_id), None))
        return was_member or had_roles or had_grants
    
    async def set_tenant_status(self, tenant_id: str, status: str) -> bool:
        tenant = self._tenants.get(tenant_id)
        if tenant is None:
            return False
        new_status = TenantStatus(status)
        if tenant.status == new_status:
            return False
        self._tenants[tenant_id] = Tenant(tenant.id, tenant.name, new_status)
        logger.info(f"Tenant {tenant_id} status changed to {new_status.value}")
        return True
    
    async def _require_role(self, role_id: str, tenant_id: str) -> Role:
        role = await self.get_role(role_id, tenant_id)
        if role is None:
            raise RoleNotFoundError(
                f"Role {role_id} not found in tenant {tenant_id}",
                details={"role_id": role_id, "tenant_id": tenant_id},
            )
        return role
