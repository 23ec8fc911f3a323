"""Tests for RBAC configuration validation."""

import pytest

from neo_authz.core.exceptions import RBACConfigurationError
from neo_authz.features.permissions import Permission, Role
from neo_authz.features.permissions.services import DependencyResolver, RBACConfigValidator


@pytest.fixture
def resolver():
    return DependencyResolver()


class TestRBACConfigValidator:
    
    def test_consistent_role_is_valid(self, resolver):
        role = Role("editor", "Editor", "T1", permissions=[
            Permission("User", "View"),
            Permission("User", "Update"),
        ])
        
        assert RBACConfigValidator(resolver).validate_role(role).valid
    
    def test_missing_dependency_is_a_warning(self, resolver):
        role = Role("updater", "Updater", "T1", permissions=[Permission("User", "Update")])
        
        report = RBACConfigValidator(resolver).validate_role(role)
        
        assert not report.valid
        assert len(report.warnings) == 1
        warning = report.warnings[0]
        assert (warning.role_id, warning.resource_type, warning.action) == ("updater", "User", "Update")
        assert warning.missing_actions == {"View"}
    
    def test_dependencies_are_checked_per_resource_type(self, resolver):
        # View on Report does not satisfy Update on User
        report = RBACConfigValidator(resolver).validate_permissions("r", [
            Permission("User", "Update"),
            Permission("Report", "View"),
        ])
        
        assert [w.resource_type for w in report.warnings] == ["User"]
    
    def test_strict_mode_raises(self, resolver):
        role = Role("updater", "Updater", "T1", permissions=[Permission("User", "Update")])
        
        with pytest.raises(RBACConfigurationError) as exc_info:
            RBACConfigValidator(resolver, strict=True).validate_role(role)
        
        assert exc_info.value.role_id == "updater"
    
    def test_validate_roles_collects_all_warnings(self, resolver):
        roles = [
            Role("a", "A", "T1", permissions=[Permission("User", "Update")]),
            Role("b", "B", "T1", permissions=[Permission("Report", "Export")]),
        ]
        
        report = RBACConfigValidator(resolver).validate_roles(roles)
        
        assert {w.role_id for w in report.warnings} == {"a", "b"}
