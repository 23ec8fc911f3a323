"""Tests for the functional dependency resolver."""

import pytest

from neo_authz.config import FUNCTIONAL_DEPENDENCIES
from neo_authz.core.exceptions import CycleInDependencyConfig
from neo_authz.features.permissions.services import DependencyResolver


class TestDependencyResolver:
    
    def test_manage_closure(self):
        resolver = DependencyResolver()
        
        assert resolver.expand("Manage") == {"Manage", "View", "ViewAny", "Create", "Update", "Delete"}
    
    def test_view_has_no_dependencies(self):
        assert DependencyResolver().expand("View") == {"View"}
    
    def test_transitive_closure(self):
        # BulkDelete -> DeleteAny -> (Delete, ViewAny) -> View
        assert DependencyResolver().expand("BulkDelete") == {"BulkDelete", "DeleteAny", "Delete", "ViewAny", "View"}
    
    def test_unknown_action_expands_to_itself(self):
        assert DependencyResolver().expand("Approve") == {"Approve"}
    
    def test_every_closure_contains_the_action(self):
        resolver = DependencyResolver()
        for action in FUNCTIONAL_DEPENDENCIES:
            assert action in resolver.expand(action)
    
    def test_cycle_fails_at_construction(self):
        with pytest.raises(CycleInDependencyConfig) as exc_info:
            DependencyResolver({"A": ["B"], "B": ["C"], "C": ["A"]})
        
        cycle = exc_info.value.cycle
        assert cycle[0] == cycle[-1]
        assert set(cycle) == {"A", "B", "C"}
        assert exc_info.value.error_code == "DEPENDENCY_CYCLE"
    
    def test_self_dependency_is_a_cycle(self):
        with pytest.raises(CycleInDependencyConfig):
            DependencyResolver({"A": ["A"]})
    
    def test_diamond_is_not_a_cycle(self):
        resolver = DependencyResolver({"D": ["B", "C"], "B": ["A"], "C": ["A"]})
        
        assert resolver.expand("D") == {"A", "B", "C", "D"}
    
    def test_missing_dependencies(self):
        missing = DependencyResolver().missing_dependencies({"Update", "Export"})
        
        assert missing == {"Update": {"View"}, "Export": {"ViewAny", "View"}}
    
    def test_consistent_actions(self):
        resolver = DependencyResolver()
        
        assert resolver.consistent_actions({"View", "Update", "Export"}) == {"View", "Update"}
        assert resolver.consistent_actions(set()) == frozenset()
