"""PostgreSQL permission store using AsyncPG.

Every query filters by tenant at the SQL level. Expected tables (inside
``schema``):

- ``tenants(id, name, status)``
- ``tenant_members(tenant_id, user_id)``
- ``roles(id, tenant_id, name, is_system_role, allowed_cross_tenant_operations text[])``
- ``role_permissions(role_id, resource_type, action)``
- ``user_roles(user_id, role_id, tenant_id)``; ``tenant_id`` is NULL for system roles
- ``user_permissions(user_id, tenant_id, resource_type, action, expires_at)``
- ``resource_owners(tenant_id, resource_type, resource_id, owner_id)``
"""

import logging
import re
from datetime import datetime
from typing import Any, Iterable, List, Optional, Set

from asyncpg import Pool

from ....config.constants import TenantStatus
from ....core.exceptions import RoleNotFoundError
from ...tenants.entities import Tenant
from ..entities.permission import Permission, PermissionGrant
from ..entities.role import Role

logger = logging.getLogger(__name__)

_SCHEMA_RE = re.compile(r"^[a-z_][a-z0-9_]*$")


class AsyncPGPermissionStore:
    """Permission store and writer over an AsyncPG connection pool."""
    
    def __init__(self, pool: Pool, schema: str = "authz", ownership_gated: Iterable[Permission] = ()):
        self.pool = pool
        self.schema = self._validate_schema_name(schema)
        self._ownership_gated = frozenset(ownership_gated)
    
    def _validate_schema_name(self, schema_name: str) -> str:
        """Validate schema name to prevent SQL injection."""
        if _SCHEMA_RE.match(schema_name):
            return schema_name
        raise ValueError(f"Invalid schema name: {schema_name}")
    
    # PermissionStore
    
    async def get_roles_for_user(self, user_id: str, tenant_id: str) -> Set[str]:
        query = f"""
        SELECT ur.role_id
        FROM {self.schema}.user_roles ur
        JOIN {self.schema}.roles r ON r.id = ur.role_id
        WHERE ur.user_id = $1
        AND (
            (ur.tenant_id = $2 AND r.tenant_id = $2)
            OR (r.is_system_role = true AND ur.tenant_id IS NULL)
        )
        """
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, user_id, tenant_id)
        return {row["role_id"] for row in rows}
    
    async def get_permissions_for_roles(self, role_ids: Set[str]) -> Set[Permission]:
        if not role_ids:
            return set()
        query = f"""
        SELECT DISTINCT rp.resource_type, rp.action
        FROM {self.schema}.role_permissions rp
        WHERE rp.role_id = ANY($1::text[])
        """
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, list(role_ids))
        return {Permission(row["resource_type"], row["action"]) for row in rows}
    
    async def get_direct_permissions(self, user_id: str, tenant_id: str) -> Set[PermissionGrant]:
        query = f"""
        SELECT up.resource_type, up.action, up.expires_at
        FROM {self.schema}.user_permissions up
        WHERE up.user_id = $1
        AND up.tenant_id = $2
        AND (up.expires_at IS NULL OR up.expires_at > NOW())
        """
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, user_id, tenant_id)
        return {
            PermissionGrant(Permission(row["resource_type"], row["action"]), row["expires_at"])
            for row in rows
        }
    
    async def get_system_roles_for_user(self, user_id: str) -> List[Role]:
        query = f"""
        SELECT r.id, r.name, r.allowed_cross_tenant_operations,
               COALESCE(
                   array_agg(rp.resource_type || ':' || rp.action) FILTER (WHERE rp.role_id IS NOT NULL),
                   '{{}}'
               ) AS permission_codes
        FROM {self.schema}.user_roles ur
        JOIN {self.schema}.roles r ON r.id = ur.role_id
        LEFT JOIN {self.schema}.role_permissions rp ON rp.role_id = r.id
        WHERE ur.user_id = $1
        AND ur.tenant_id IS NULL
        AND r.is_system_role = true
        GROUP BY r.id, r.name, r.allowed_cross_tenant_operations
        ORDER BY r.id
        """
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, user_id)
        return [self._system_role_from_row(row) for row in rows]
    
    async def get_users_with_role(self, role_id: str, tenant_id: str) -> Set[str]:
        query = f"""
        SELECT DISTINCT ur.user_id
        FROM {self.schema}.user_roles ur
        JOIN {self.schema}.roles r ON r.id = ur.role_id
        WHERE ur.role_id = $1
        AND (ur.tenant_id = $2 OR (r.is_system_role = true AND ur.tenant_id IS NULL))
        """
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, role_id, tenant_id)
        return {row["user_id"] for row in rows}
    
    async def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        query = f"SELECT id, name, status FROM {self.schema}.tenants WHERE id = $1"
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(query, tenant_id)
        if row is None:
            return None
        return Tenant(id=row["id"], name=row["name"], status=TenantStatus(row["status"]))
    
    async def is_tenant_member(self, user_id: str, tenant_id: str) -> bool:
        query = f"""
        SELECT EXISTS(
            SELECT 1 FROM {self.schema}.tenant_members
            WHERE tenant_id = $1 AND user_id = $2
        )
        """
        async with self.pool.acquire() as conn:
            return bool(await conn.fetchval(query, tenant_id, user_id))
    
    def is_ownership_gated(self, permission: Permission) -> bool:
        return permission in self._ownership_gated
    
    async def get_resource_owner(self, tenant_id: str, resource_type: str, resource_id: str) -> Optional[str]:
        query = f"""
        SELECT owner_id FROM {self.schema}.resource_owners
        WHERE tenant_id = $1 AND resource_type = $2 AND resource_id = $3
        """
        async with self.pool.acquire() as conn:
            return await conn.fetchval(query, tenant_id, resource_type, resource_id)
    
    # PermissionStoreWriter
    
    async def get_role(self, role_id: str, tenant_id: Optional[str] = None) -> Optional[Role]:
        query = f"""
        SELECT r.id, r.name, r.tenant_id, r.is_system_role, r.allowed_cross_tenant_operations,
               COALESCE(
                   array_agg(rp.resource_type || ':' || rp.action) FILTER (WHERE rp.role_id IS NOT NULL),
                   '{{}}'
               ) AS permission_codes
        FROM {self.schema}.roles r
        LEFT JOIN {self.schema}.role_permissions rp ON rp.role_id = r.id
        WHERE r.id = $1
        AND (r.is_system_role = true OR r.tenant_id = $2)
        GROUP BY r.id, r.name, r.tenant_id, r.is_system_role, r.allowed_cross_tenant_operations
        """
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(query, role_id, tenant_id)
        if row is None:
            return None
        return Role(
            id=row["id"],
            name=row["name"],
            tenant_id=None if row["is_system_role"] else row["tenant_id"],
            is_system_role=row["is_system_role"],
            allowed_cross_tenant_operations=frozenset(row["allowed_cross_tenant_operations"] or ()),
            permissions=frozenset(Permission.parse(code) for code in row["permission_codes"]),
        )
    
    async def assign_role(self, user_id: str, role_id: str, tenant_id: str) -> bool:
        role = await self._require_role(role_id, tenant_id)
        scope = None if role.is_system_role else tenant_id
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                if scope is not None:
                    await conn.execute(
                        f"""
                        INSERT INTO {self.schema}.tenant_members (tenant_id, user_id)
                        VALUES ($1, $2) ON CONFLICT DO NOTHING
                        """,
                        tenant_id, user_id,
                    )
                status = await conn.execute(
                    f"""
                    INSERT INTO {self.schema}.user_roles (user_id, role_id, tenant_id)
                    VALUES ($1, $2, $3) ON CONFLICT DO NOTHING
                    """,
                    user_id, role_id, scope,
                )
        return _affected(status) > 0
    
    async def revoke_role(self, user_id: str, role_id: str, tenant_id: str) -> bool:
        role = await self._require_role(role_id, tenant_id)
        async with self.pool.acquire() as conn:
            status = await conn.execute(
                f"""
                DELETE FROM {self.schema}.user_roles
                WHERE user_id = $1 AND role_id = $2 AND tenant_id IS NOT DISTINCT FROM $3
                """,
                user_id, role_id, None if role.is_system_role else tenant_id,
            )
        return _affected(status) > 0
    
    async def add_role_permission(self, role_id: str, tenant_id: str, permission: Permission) -> bool:
        await self._require_role(role_id, tenant_id)
        async with self.pool.acquire() as conn:
            status = await conn.execute(
                f"""
                INSERT INTO {self.schema}.role_permissions (role_id, resource_type, action)
                VALUES ($1, $2, $3) ON CONFLICT DO NOTHING
                """,
                role_id, permission.resource_type, permission.action,
            )
        return _affected(status) > 0
    
    async def remove_role_permission(self, role_id: str, tenant_id: str, permission: Permission) -> bool:
        await self._require_role(role_id, tenant_id)
        async with self.pool.acquire() as conn:
            status = await conn.execute(
                f"""
                DELETE FROM {self.schema}.role_permissions
                WHERE role_id = $1 AND resource_type = $2 AND action = $3
                """,
                role_id, permission.resource_type, permission.action,
            )
        return _affected(status) > 0
    
    async def grant_direct_permission(
        self,
        user_id: str,
        tenant_id: str,
        permission: Permission,
        expires_at: Optional[datetime] = None
    ) -> bool:
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(
                    f"""
                    INSERT INTO {self.schema}.tenant_members (tenant_id, user_id)
                    VALUES ($1, $2) ON CONFLICT DO NOTHING
                    """,
                    tenant_id, user_id,
                )
                status = await conn.execute(
                    f"""
                    INSERT INTO {self.schema}.user_permissions (user_id, tenant_id, resource_type, action, expires_at)
                    VALUES ($1, $2, $3, $4, $5)
                    ON CONFLICT (user_id, tenant_id, resource_type, action)
                    DO UPDATE SET expires_at = EXCLUDED.expires_at
                    WHERE {self.schema}.user_permissions.expires_at IS DISTINCT FROM EXCLUDED.expires_at
                    """,
                    user_id, tenant_id, permission.resource_type, permission.action, expires_at,
                )
        return _affected(status) > 0
    
    async def revoke_direct_permission(self, user_id: str, tenant_id: str, permission: Permission) -> bool:
        async with self.pool.acquire() as conn:
            status = await conn.execute(
                f"""
                DELETE FROM {self.schema}.user_permissions
                WHERE user_id = $1 AND tenant_id = $2 AND resource_type = $3 AND action = $4
                """,
                user_id, tenant_id, permission.resource_type, permission.action,
            )
        return _affected(status) > 0
    
    async def remove_tenant_member(self, user_id: str, tenant_id: str) -> bool:
        removed = 0
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                for table in ("user_roles", "user_permissions", "tenant_members"):
                    status = await conn.execute(
                        f"DELETE FROM {self.schema}.{table} WHERE user_id = $1 AND tenant_id = $2",
                        user_id, tenant_id,
                    )
                    removed += _affected(status)
        return removed > 0
    
    async def set_tenant_status(self, tenant_id: str, status: str) -> bool:
        new_status = TenantStatus(status)
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                f"""
                UPDATE {self.schema}.tenants SET status = $2
                WHERE id = $1 AND status <> $2
                """,
                tenant_id, new_status.value,
            )
        changed = _affected(result) > 0
        if changed:
            logger.info(f"Tenant {tenant_id} status changed to {new_status.value}")
        return changed
    
    async def _require_role(self, role_id: str, tenant_id: str) -> Role:
        role = await self.get_role(role_id, tenant_id)
        if role is None:
            raise RoleNotFoundError(
                f"Role {role_id} not found in tenant {tenant_id}",
                details={"role_id": role_id, "tenant_id": tenant_id},
            )
        return role
    
    @staticmethod
    def _system_role_from_row(row: Any) -> Role:
        return Role.system(
            id=row["id"],
            name=row["name"],
            permissions=[Permission.parse(code) for code in row["permission_codes"]],
            allowed_cross_tenant_operations=row["allowed_cross_tenant_operations"] or (),
        )


def _affected(status: str) -> int:
    """Parse the row count from an asyncpg command status such as ``DELETE 3``."""
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0
