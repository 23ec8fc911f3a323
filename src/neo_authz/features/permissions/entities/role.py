"""Role domain entity for neo-authz permissions feature.

Roles are flat: a role is a named, tenant-scoped set of permissions with
no inheritance between roles. System roles are global (no tenant) and
carry the cross-tenant capability flags.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

from .permission import Permission


@dataclass(frozen=True)
class Role:
    """Domain entity representing a flat, tenant-scoped set of permissions."""
    
    id: str
    name: str
    tenant_id: Optional[str] = None
    is_system_role: bool = False
    allowed_cross_tenant_operations: FrozenSet[str] = field(default_factory=frozenset)
    permissions: FrozenSet[Permission] = field(default_factory=frozenset)
    
    def __post_init__(self):
        if not self.id:
            raise ValueError("Role id cannot be empty")
        if not self.name:
            raise ValueError("Role name cannot be empty")
        if self.is_system_role and self.tenant_id is not None:
            raise ValueError(f"System role {self.id} cannot be scoped to tenant {self.tenant_id}")
        if not self.is_system_role and self.tenant_id is None:
            raise ValueError(f"Tenant role {self.id} requires a tenant_id")
        if self.allowed_cross_tenant_operations and not self.is_system_role:
            raise ValueError(f"Only system roles may allow cross-tenant operations: {self.id}")
        # Normalize iterables passed by callers into frozensets
        object.__setattr__(self, "permissions", frozenset(self.permissions))
        object.__setattr__(self, "allowed_cross_tenant_operations", frozenset(self.allowed_cross_tenant_operations))
    
    @classmethod
    def system(
        cls,
        id: str,
        name: str,
        permissions: Iterable[Permission] = (),
        allowed_cross_tenant_operations: Iterable[str] = ()
    ) -> "Role":
        """Build a global system role."""
        return cls(
            id=id,
            name=name,
            tenant_id=None,
            is_system_role=True,
            allowed_cross_tenant_operations=frozenset(allowed_cross_tenant_operations),
            permissions=frozenset(permissions),
        )
    
    def has_permission(self, permission: Permission) -> bool:
        return permission in self.permissions
    
    def allows_cross_tenant(self, operation: Optional[str]) -> bool:
        """Check if this role may perform ``operation`` outside its accessor's tenant."""
        return self.is_system_role and operation is not None and operation in self.allowed_cross_tenant_operations
    
    def with_permissions(self, permissions: Iterable[Permission]) -> "Role":
        """Return a copy of this role holding exactly ``permissions``."""
        return Role(
            id=self.id,
            name=self.name,
            tenant_id=self.tenant_id,
            is_system_role=self.is_system_role,
            allowed_cross_tenant_operations=self.allowed_cross_tenant_operations,
            permissions=frozenset(permissions),
        )
    
    def __str__(self) -> str:
        return f"Role({self.id})"
    
    def __repr__(self) -> str:
        scope = "system" if self.is_system_role else f"tenant={self.tenant_id}"
        return f"Role({self.id}, {scope}, permissions={len(self.permissions)})"
