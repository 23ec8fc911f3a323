"""Grant validation for administrative mutations.

A user may only hand out what they hold: the grantor must hold the
permission being granted plus ``Role:Manage`` in the same tenant, and a
direct grant may only target a member of that tenant.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ....config.constants import Action, ROLE_RESOURCE
from ..entities import Permission, PermissionCheck, PermissionChecker, PermissionStore, Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GrantCheckResult:
    """Whether an administrative grant is allowed, with the reason when it is not."""
    
    valid: bool
    reason: Optional[str] = None
    
    def __bool__(self) -> bool:
        return self.valid
    
    @classmethod
    def ok(cls) -> "GrantCheckResult":
        return cls(valid=True)
    
    @classmethod
    def reject(cls, reason: str) -> "GrantCheckResult":
        return cls(valid=False, reason=reason)


class GrantValidator:
    """Checks that a grantor may hand out a permission or role."""
    
    def __init__(self, checker: PermissionChecker, store: PermissionStore):
        self.checker = checker
        self.store = store
    
    async def can_grant(
        self,
        grantor_id: str,
        grantee_id: Optional[str],
        tenant_id: str,
        permission: Permission
    ) -> GrantCheckResult:
        """Validate granting ``permission`` inside ``tenant_id``.
        
        Args:
            grantor_id: User performing the grant
            grantee_id: User receiving a direct grant, None for role permission changes
            tenant_id: Tenant the grant applies to
            permission: Permission being granted
        """
        held, manages = await self.checker.check_permissions(grantor_id, tenant_id, [
            PermissionCheck(permission.resource_type, permission.action),
            PermissionCheck(ROLE_RESOURCE, Action.MANAGE.value),
        ])
        if not held:
            return self._reject(grantor_id, "Grantor does not have the permission being granted")
        if not manages:
            return self._reject(grantor_id, "Grantor does not have role management permissions")
        
        if grantee_id is not None and not await self.store.is_tenant_member(grantee_id, tenant_id):
            return self._reject(grantor_id, f"Grantee {grantee_id} is not a member of tenant {tenant_id}")
        
        return GrantCheckResult.ok()
    
    async def can_assign_role(self, grantor_id: str, tenant_id: str, role: Role) -> GrantCheckResult:
        """Validate assigning ``role``: the grantor must manage roles and hold every permission of the role."""
        permissions = sorted(role.permissions, key=lambda p: p.code)
        decisions = await self.checker.check_permissions(grantor_id, tenant_id, [
            PermissionCheck(ROLE_RESOURCE, Action.MANAGE.value),
            *(PermissionCheck(p.resource_type, p.action) for p in permissions),
        ])
        if not decisions[0]:
            return self._reject(grantor_id, "Grantor does not have role management permissions")
        
        missing = [p.code for p, decision in zip(permissions, decisions[1:]) if not decision]
        if missing:
            return self._reject(grantor_id, f"Grantor lacks permissions of role {role.id}: {', '.join(missing)}")
        return GrantCheckResult.ok()
    
    async def can_revoke(self, revoker_id: str, tenant_id: str) -> GrantCheckResult:
        """Validate revoking grants inside ``tenant_id``."""
        decision = await self.checker.check_permission(revoker_id, tenant_id, ROLE_RESOURCE, Action.MANAGE.value)
        if not decision:
            return self._reject(revoker_id, "Revoker does not have role management permissions")
        return GrantCheckResult.ok()
    
    def _reject(self, user_id: str, reason: str) -> GrantCheckResult:
        logger.warning(f"Grant rejected for {user_id}: {reason}")
        return GrantCheckResult.reject(reason)
