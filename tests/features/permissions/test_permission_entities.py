"""Tests for permission domain entities."""

from datetime import datetime, timedelta, timezone

import pytest

from neo_authz.core.exceptions import CacheSerializationError
from neo_authz.features.permissions import (
    Decision,
    DecisionCode,
    GrantSource,
    Permission,
    PermissionGrant,
    PermissionTaxonomy,
    Role,
)


class TestPermission:
    
    def test_parse(self):
        permission = Permission.parse("User:Update")
        
        assert permission == Permission("User", "Update")
        assert permission.code == "User:Update"
    
    @pytest.mark.parametrize("code", ["", "User", "User:Update:Extra", ":Update", "User:"])
    def test_parse_rejects_malformed_codes(self, code):
        with pytest.raises(ValueError):
            Permission.parse(code)
    
    def test_grant_expiry(self):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        grant = PermissionGrant(Permission("Report", "Export"), expires_at=now + timedelta(minutes=1))
        
        assert grant.is_active(now)
        assert not grant.is_active(now + timedelta(minutes=1))
        assert PermissionGrant(Permission("Report", "Export")).is_active(now)


class TestRole:
    
    def test_tenant_role_requires_tenant(self):
        with pytest.raises(ValueError):
            Role("editor", "Editor")
    
    def test_system_role_has_no_tenant(self):
        with pytest.raises(ValueError):
            Role("root", "Root", tenant_id="T1", is_system_role=True)
    
    def test_only_system_roles_cross_tenants(self):
        with pytest.raises(ValueError):
            Role("editor", "Editor", "T1", allowed_cross_tenant_operations=["support"])
    
    def test_allows_cross_tenant(self):
        role = Role.system("super_admin", "Super Admin", allowed_cross_tenant_operations=["support"])
        
        assert role.allows_cross_tenant("support")
        assert not role.allows_cross_tenant("billing")
        assert not role.allows_cross_tenant(None)
    
    def test_with_permissions_returns_copy(self):
        role = Role("editor", "Editor", "T1", permissions=[Permission("User", "View")])
        
        updated = role.with_permissions([Permission("User", "Update")])
        
        assert role.has_permission(Permission("User", "View"))
        assert updated.permissions == {Permission("User", "Update")}


class TestPermissionTaxonomy:
    
    def test_from_resource_types(self):
        taxonomy = PermissionTaxonomy.from_resource_types(["User"], actions=["View", "Update"])
        
        assert taxonomy.contains("User", "View")
        assert not taxonomy.contains("User", "Delete")
        assert not taxonomy.contains("Report", "View")
        assert len(taxonomy) == 2
    
    def test_contains_tolerates_invalid_names(self):
        taxonomy = PermissionTaxonomy.from_codes(["User:View"])
        
        assert not taxonomy.contains("", "View")
        assert not taxonomy.contains("User:X", "View")


class TestDecision:
    
    def test_serialization(self):
        decision = Decision(
            granted=True,
            code=DecisionCode.GRANTED,
            user_id="u1",
            tenant_id="T1",
            resource_type="Report",
            action="Export",
            source=GrantSource.DIRECT,
            expires_at=datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc),
        )
        
        restored = Decision.from_dict(decision.to_dict())
        
        assert restored == decision
        assert bool(restored)
    
    def test_from_dict_rejects_garbage(self):
        with pytest.raises(CacheSerializationError):
            Decision.from_dict({"granted": True, "code": "maybe"})
    
    def test_cacheability(self):
        def decision(code):
            return Decision(False, code, "u1", "T1", "User", "View")
        
        assert decision(DecisionCode.DENIED).is_cacheable
        assert decision(DecisionCode.NOT_OWNER).is_cacheable
        assert not decision(DecisionCode.BOUNDARY_DENIED).is_cacheable
        assert not decision(DecisionCode.UNKNOWN_PERMISSION).is_cacheable
        assert not decision(DecisionCode.STORE_UNAVAILABLE).is_cacheable
