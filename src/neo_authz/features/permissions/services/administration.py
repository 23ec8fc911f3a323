"""Administrative mutations of grant data.

Every mutation invalidates the affected cached decisions before it
returns. If invalidation fails the error propagates and the mutation is
not acknowledged to the caller.
"""

import logging
from datetime import datetime
from typing import Optional

from ....config.constants import TenantStatus
from ....core.exceptions import (
    PermissionDeniedError,
    RoleNotFoundError,
    SystemRoleImmutableError,
    UnknownPermission,
)
from ....core.value_objects import RoleId
from ..entities import Permission, PermissionStoreWriter, Role
from .config_validator import RBACConfigValidator
from .grant_validator import GrantCheckResult, GrantValidator
from .permission_engine import PermissionEngine

logger = logging.getLogger(__name__)


class PermissionAdministrationService:
    """Applies grant mutations through a store writer and keeps the decision cache coherent."""
    
    def __init__(
        self,
        writer: PermissionStoreWriter,
        engine: PermissionEngine,
        config_validator: Optional[RBACConfigValidator] = None,
        grant_validator: Optional[GrantValidator] = None
    ):
        self.writer = writer
        self.engine = engine
        self.config_validator = config_validator or RBACConfigValidator(
            engine.dependencies, strict=engine.settings.strict_dependencies
        )
        self.grant_validator = grant_validator or GrantValidator(engine, engine.store)
    
    async def assign_role(self, user_id: str, role_id: str, tenant_id: str, granted_by: Optional[str] = None) -> bool:
        """Assign a tenant role to a user.
        
        Raises:
            RoleNotFoundError: If the role does not exist in the tenant
            SystemRoleImmutableError: For system roles, which are assigned at platform level
            PermissionDeniedError: If ``granted_by`` may not assign the role
        """
        role = await self._require_tenant_role(role_id, tenant_id, "assigned")
        if granted_by is not None:
            self._enforce(await self.grant_validator.can_assign_role(granted_by, tenant_id, role))
        
        changed = await self.writer.assign_role(user_id, role_id, tenant_id)
        await self.engine.invalidate_user_tenant(user_id, tenant_id)
        logger.info(f"Assigned role {role_id} to user {user_id} in tenant {tenant_id}")
        return changed
    
    async def revoke_role(self, user_id: str, role_id: str, tenant_id: str, revoked_by: Optional[str] = None) -> bool:
        await self._require_tenant_role(role_id, tenant_id, "revoked")
        if revoked_by is not None:
            self._enforce(await self.grant_validator.can_revoke(revoked_by, tenant_id))
        
        changed = await self.writer.revoke_role(user_id, role_id, tenant_id)
        await self.engine.invalidate_user_tenant(user_id, tenant_id)
        logger.info(f"Revoked role {role_id} from user {user_id} in tenant {tenant_id}")
        return changed
    
    async def add_role_permission(
        self,
        role_id: str,
        tenant_id: str,
        permission: Permission,
        granted_by: Optional[str] = None
    ) -> bool:
        """Link a permission to a tenant role and invalidate every holder's decisions.
        
        Raises:
            UnknownPermission: If the permission is not part of the taxonomy
            RBACConfigurationError: In strict mode, if the result violates functional dependencies
        """
        self._require_known(permission)
        role = await self._require_tenant_role(role_id, tenant_id, "modified")
        self.config_validator.validate_permissions(role_id, role.permissions | {permission})
        if granted_by is not None:
            self._enforce(await self.grant_validator.can_grant(granted_by, None, tenant_id, permission))
        
        changed = await self.writer.add_role_permission(role_id, tenant_id, permission)
        await self.engine.invalidate_role(role_id, tenant_id)
        logger.info(f"Added {permission} to role {role_id} in tenant {tenant_id}")
        return changed
    
    async def remove_role_permission(
        self,
        role_id: str,
        tenant_id: str,
        permission: Permission,
        revoked_by: Optional[str] = None
    ) -> bool:
        role = await self._require_tenant_role(role_id, tenant_id, "modified")
        self.config_validator.validate_permissions(role_id, role.permissions - {permission})
        if revoked_by is not None:
            self._enforce(await self.grant_validator.can_revoke(revoked_by, tenant_id))
        
        changed = await self.writer.remove_role_permission(role_id, tenant_id, permission)
        await self.engine.invalidate_role(role_id, tenant_id)
        logger.info(f"Removed {permission} from role {role_id} in tenant {tenant_id}")
        return changed
    
    async def grant_direct_permission(
        self,
        user_id: str,
        tenant_id: str,
        permission: Permission,
        expires_at: Optional[datetime] = None,
        granted_by: Optional[str] = None
    ) -> bool:
        """Grant a permission directly to a user, optionally expiring."""
        self._require_known(permission)
        if granted_by is not None:
            self._enforce(await self.grant_validator.can_grant(granted_by, user_id, tenant_id, permission))
        
        changed = await self.writer.grant_direct_permission(user_id, tenant_id, permission, expires_at)
        await self.engine.invalidate_direct_permission(user_id, tenant_id, permission.resource_type, permission.action)
        logger.info(f"Granted {permission} directly to user {user_id} in tenant {tenant_id}")
        return changed
    
    async def revoke_direct_permission(
        self,
        user_id: str,
        tenant_id: str,
        permission: Permission,
        revoked_by: Optional[str] = None
    ) -> bool:
        if revoked_by is not None:
            self._enforce(await self.grant_validator.can_revoke(revoked_by, tenant_id))
        
        changed = await self.writer.revoke_direct_permission(user_id, tenant_id, permission)
        await self.engine.invalidate_direct_permission(user_id, tenant_id, permission.resource_type, permission.action)
        logger.info(f"Revoked direct {permission} from user {user_id} in tenant {tenant_id}")
        return changed
    
    async def remove_tenant_member(self, user_id: str, tenant_id: str, removed_by: Optional[str] = None) -> bool:
        """Remove a user from a tenant together with their roles and direct grants there."""
        if removed_by is not None:
            self._enforce(await self.grant_validator.can_revoke(removed_by, tenant_id))
        
        changed = await self.writer.remove_tenant_member(user_id, tenant_id)
        await self.engine.invalidate_user_tenant(user_id, tenant_id)
        logger.info(f"Removed user {user_id} from tenant {tenant_id}")
        return changed
    
    async def set_tenant_status(self, tenant_id: str, status: TenantStatus) -> bool:
        changed = await self.writer.set_tenant_status(tenant_id, TenantStatus(status).value)
        await self.engine.invalidate_tenant(tenant_id)
        return changed
    
    async def _require_tenant_role(self, role_id: str, tenant_id: str, verb: str) -> Role:
        role_id = RoleId(role_id).value
        role = await self.writer.get_role(role_id, tenant_id)
        if role is None:
            raise RoleNotFoundError(
                f"Role {role_id} not found in tenant {tenant_id}",
                details={"role_id": role_id, "tenant_id": tenant_id},
            )
        if role.is_system_role:
            raise SystemRoleImmutableError(
                f"System role {role_id} cannot be {verb} through tenant administration",
                details={"role_id": role_id},
            )
        return role
    
    def _require_known(self, permission: Permission) -> None:
        if not self.engine.taxonomy.contains(permission.resource_type, permission.action):
            raise UnknownPermission(permission.resource_type, permission.action)
    
    @staticmethod
    def _enforce(result: GrantCheckResult) -> None:
        if not result:
            raise PermissionDeniedError(result.reason or "Grant not allowed")
