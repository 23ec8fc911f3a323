"""Tests for administrative grant validation."""

import pytest

from neo_authz.features.permissions import Permission, Role
from neo_authz.features.permissions.services import GrantValidator


@pytest.fixture
def manager_store(store):
    """Adds ``manager`` holding Role:Manage and User:Update in T1."""
    store.add_role(Role("manager", "Manager", "T1", permissions=[
        Permission("Role", "Manage"),
        Permission("User", "Update"),
        Permission("User", "View"),
    ]))
    store.add_assignment("m1", "manager", "T1")
    store.add_member("u2", "T1")
    return store


@pytest.fixture
def validator(engine, manager_store):
    return GrantValidator(engine, manager_store)


class TestGrantValidator:
    
    @pytest.mark.asyncio
    async def test_manager_can_grant_held_permission(self, validator):
        result = await validator.can_grant("m1", "u2", "T1", Permission("User", "Update"))
        
        assert result.valid
    
    @pytest.mark.asyncio
    async def test_cannot_grant_unheld_permission(self, validator):
        result = await validator.can_grant("m1", "u2", "T1", Permission("Report", "Export"))
        
        assert not result
        assert "does not have the permission" in result.reason
    
    @pytest.mark.asyncio
    async def test_requires_role_management(self, validator):
        # u1 holds User:Update through editor but cannot manage roles
        result = await validator.can_grant("u1", "u2", "T1", Permission("User", "Update"))
        
        assert not result
        assert "role management" in result.reason
    
    @pytest.mark.asyncio
    async def test_grantee_must_be_tenant_member(self, validator):
        result = await validator.can_grant("m1", "outsider", "T1", Permission("User", "Update"))
        
        assert not result
        assert "not a member" in result.reason
    
    @pytest.mark.asyncio
    async def test_role_assignment_requires_every_role_permission(self, validator, manager_store):
        admin_role = Role("admin", "Admin", "T1", permissions=[
            Permission("User", "Update"),
            Permission("User", "Delete"),
        ])
        
        result = await validator.can_assign_role("m1", "T1", admin_role)
        
        assert not result
        assert "User:Delete" in result.reason
        assert await validator.can_assign_role("m1", "T1", await manager_store.get_role("editor", "T1"))
    
    @pytest.mark.asyncio
    async def test_can_revoke(self, validator):
        assert await validator.can_revoke("m1", "T1")
        assert not await validator.can_revoke("u1", "T1")
