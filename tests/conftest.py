"""Pytest configuration and fixtures for neo-authz tests."""

from datetime import datetime, timezone
from typing import List

import pytest

from neo_authz.config import AuthzSettings
from neo_authz.features.audit import AuditDispatcher, CrossTenantAccessEvent, PermissionCheckEvent
from neo_authz.features.cache import MemoryDecisionCache, MultiLevelDecisionCache
from neo_authz.features.permissions import (
    InMemoryPermissionStore,
    Permission,
    PermissionTaxonomy,
    Role,
)
from neo_authz.features.permissions.services import PermissionEngine
from neo_authz.features.tenants import Tenant


class RecordingAuditSink:
    """Audit sink keeping every event in memory."""
    
    def __init__(self):
        self.cross_tenant: List[CrossTenantAccessEvent] = []
        self.checks: List[PermissionCheckEvent] = []
    
    async def log_cross_tenant_access(self, event: CrossTenantAccessEvent) -> None:
        self.cross_tenant.append(event)
    
    async def log_permission_check(self, event: PermissionCheckEvent) -> None:
        self.checks.append(event)


class MutableClock:
    """Deterministic UTC clock for expiring grants."""
    
    def __init__(self, now: datetime):
        self.now = now
    
    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def settings():
    """Settings with a short store timeout."""
    return AuthzSettings(
        store_timeout_seconds=0.2,
        decision_ttl_seconds=300,
        local_ttl_seconds=30,
        redis_url=None,
    )


@pytest.fixture
def taxonomy():
    """Every action on the test resource types."""
    return PermissionTaxonomy.from_resource_types(["User", "Report", "Document", "Role"])


@pytest.fixture
def store_factory():
    """Build a seeded store of any InMemoryPermissionStore subclass.
    
    Seed: two active tenants, an editor role in T1 and a system super admin role.
    
    - u1 holds ``editor`` (User:Update, User:View) in T1
    - u1 holds ``viewer`` (User:View) in T2
    - admin holds system role ``super_admin`` (User:View) allowed to ``support`` across tenants
    """
    
    def build(store_class=InMemoryPermissionStore):
        store = store_class()
        store.add_tenant(Tenant("T1", "Tenant One"))
        store.add_tenant(Tenant("T2", "Tenant Two"))
        store.add_role(Role(
            id="editor",
            name="Editor",
            tenant_id="T1",
            permissions=[Permission("User", "Update"), Permission("User", "View")],
        ))
        store.add_role(Role(
            id="viewer",
            name="Viewer",
            tenant_id="T2",
            permissions=[Permission("User", "View")],
        ))
        store.add_role(Role.system(
            id="super_admin",
            name="Super Admin",
            permissions=[Permission("User", "View")],
            allowed_cross_tenant_operations=["support"],
        ))
        store.add_assignment("u1", "editor", "T1")
        store.add_assignment("u1", "viewer", "T2")
        store.add_assignment("admin", "super_admin")
        store.add_member("admin", "T1")
        return store
    
    return build


@pytest.fixture
def store(store_factory):
    return store_factory()


@pytest.fixture
def audit_sink():
    return RecordingAuditSink()


@pytest.fixture
def audit(audit_sink):
    return AuditDispatcher(audit_sink)


@pytest.fixture
def decision_cache(clock):
    return MultiLevelDecisionCache(MemoryDecisionCache(max_entries=1000, default_ttl=300, shards=4), clock=clock)


@pytest.fixture
def clock():
    return MutableClock(datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def engine_factory(taxonomy, decision_cache, audit, settings, clock):
    """Build an engine around any store."""
    
    def build(store, **overrides):
        options = dict(
            taxonomy=taxonomy,
            cache=decision_cache,
            audit=audit,
            settings=settings,
            clock=clock,
        )
        options.update(overrides)
        return PermissionEngine(store, **options)
    
    return build


@pytest.fixture
def engine(engine_factory, store):
    return engine_factory(store)
