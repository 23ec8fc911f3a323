"""Tests for the request-scoped tenant context."""

import asyncio

import pytest

from neo_authz.core.exceptions import TenantContextMissing
from neo_authz.features.tenants import TenantContext


class TestTenantContext:
    
    def test_require_without_context(self):
        with pytest.raises(TenantContextMissing):
            TenantContext().require()
    
    def test_use_sets_and_resets(self):
        context = TenantContext()
        
        with context.use("T1"):
            assert context.require() == "T1"
        
        assert context.get() is None
    
    def test_use_rejects_empty_tenant(self):
        with pytest.raises(TenantContextMissing):
            with TenantContext().use(""):
                pass
    
    @pytest.mark.asyncio
    async def test_context_is_task_local(self):
        context = TenantContext()
        
        async def worker(tenant_id):
            with context.use(tenant_id):
                await asyncio.sleep(0)
                return context.get()
        
        assert await asyncio.gather(worker("T1"), worker("T2")) == ["T1", "T2"]
