"""Tests for the in-memory permission store."""

import pytest

from neo_authz.config import TenantStatus
from neo_authz.core.exceptions import RoleNotFoundError
from neo_authz.features.permissions import (
    InMemoryPermissionStore,
    Permission,
    PermissionStore,
    PermissionStoreWriter,
)


class TestInMemoryPermissionStore:
    
    def test_implements_protocols(self, store):
        assert isinstance(store, PermissionStore)
        assert isinstance(store, PermissionStoreWriter)
    
    @pytest.mark.asyncio
    async def test_roles_are_tenant_filtered(self, store):
        assert await store.get_roles_for_user("u1", "T1") == {"editor"}
        assert await store.get_roles_for_user("u1", "T2") == {"viewer"}
    
    @pytest.mark.asyncio
    async def test_system_roles_apply_in_every_tenant(self, store):
        assert await store.get_roles_for_user("admin", "T2") == {"super_admin"}
        roles = await store.get_system_roles_for_user("admin")
        assert [r.id for r in roles] == ["super_admin"]
    
    @pytest.mark.asyncio
    async def test_role_from_other_tenant_cannot_be_assigned(self, store):
        with pytest.raises(RoleNotFoundError):
            await store.assign_role("u2", "editor", "T2")
    
    @pytest.mark.asyncio
    async def test_assign_is_idempotent(self, store):
        assert await store.assign_role("u2", "editor", "T1") is True
        assert await store.assign_role("u2", "editor", "T1") is False
        assert await store.is_tenant_member("u2", "T1")
        assert await store.get_users_with_role("editor", "T1") == {"u1", "u2"}
    
    @pytest.mark.asyncio
    async def test_role_permission_changes(self, store):
        permission = Permission("Report", "View")
        
        assert await store.add_role_permission("editor", "T1", permission)
        assert permission in await store.get_permissions_for_roles({"editor"})
        assert await store.remove_role_permission("editor", "T1", permission)
        assert permission not in await store.get_permissions_for_roles({"editor"})
    
    @pytest.mark.asyncio
    async def test_direct_permissions_are_tenant_filtered(self, store):
        await store.grant_direct_permission("u1", "T1", Permission("Report", "Export"))
        
        assert {g.permission for g in await store.get_direct_permissions("u1", "T1")} == {Permission("Report", "Export")}
        assert await store.get_direct_permissions("u1", "T2") == set()
        assert await store.revoke_direct_permission("u1", "T1", Permission("Report", "Export"))
        assert not await store.revoke_direct_permission("u1", "T1", Permission("Report", "Export"))
    
    @pytest.mark.asyncio
    async def test_remove_tenant_member_drops_roles_and_grants(self, store):
        store.add_direct_grant("u1", "T1", Permission("Report", "Export"))
        
        assert await store.remove_tenant_member("u1", "T1")
        
        assert await store.get_roles_for_user("u1", "T1") == set()
        assert await store.get_direct_permissions("u1", "T1") == set()
        assert not await store.is_tenant_member("u1", "T1")
        # Other tenants untouched
        assert await store.get_roles_for_user("u1", "T2") == {"viewer"}
    
    @pytest.mark.asyncio
    async def test_tenant_status(self, store):
        assert await store.set_tenant_status("T1", TenantStatus.SUSPENDED.value)
        assert not await store.set_tenant_status("T1", TenantStatus.SUSPENDED.value)
        assert not (await store.get_tenant("T1")).is_active
        assert not await store.set_tenant_status("missing", TenantStatus.ACTIVE.value)
    
    @pytest.mark.asyncio
    async def test_ownership_configuration(self):
        store = InMemoryPermissionStore(ownership_gated=[Permission("Document", "Update")])
        store.set_resource_owner("T1", "Document", "doc1", "u1")
        
        assert store.is_ownership_gated(Permission("Document", "Update"))
        assert not store.is_ownership_gated(Permission("Document", "View"))
        assert await store.get_resource_owner("T1", "Document", "doc1") == "u1"
        assert await store.get_resource_owner("T2", "Document", "doc1") is None
