"""Tests for audit event delivery."""

import json
import logging

import pytest

from neo_authz.features.audit import (
    AuditDispatcher,
    CrossTenantAccessEvent,
    LoggingAuditSink,
    PermissionCheckEvent,
)


def _check_event(**overrides):
    data = dict(user_id="u1", tenant_id="T1", resource_type="User", action="View", granted=True, code="granted")
    data.update(overrides)
    return PermissionCheckEvent(**data)


class TestAuditDispatcher:
    
    @pytest.mark.asyncio
    async def test_events_are_delivered_in_background(self, audit_sink):
        dispatcher = AuditDispatcher(audit_sink)
        
        dispatcher.permission_check(_check_event())
        dispatcher.cross_tenant_access(CrossTenantAccessEvent("admin", "T1", "T2", allowed=False))
        assert dispatcher.pending == 2
        
        await dispatcher.drain()
        
        assert dispatcher.pending == 0
        assert len(audit_sink.checks) == 1
        assert len(audit_sink.cross_tenant) == 1
    
    @pytest.mark.asyncio
    async def test_sink_failure_is_logged(self, caplog):
        class BrokenSink:
            async def log_cross_tenant_access(self, event):
                raise RuntimeError("boom")
            
            async def log_permission_check(self, event):
                raise RuntimeError("boom")
        
        dispatcher = AuditDispatcher(BrokenSink())
        
        with caplog.at_level(logging.ERROR):
            dispatcher.permission_check(_check_event())
            await dispatcher.drain()
        
        assert "Audit sink failed" in caplog.text


class TestLoggingAuditSink:
    
    @pytest.mark.asyncio
    async def test_denied_cross_tenant_access_logs_warning(self, caplog):
        sink = LoggingAuditSink()
        
        with caplog.at_level(logging.INFO, logger="neo_authz.audit"):
            await sink.log_cross_tenant_access(CrossTenantAccessEvent("admin", "T1", "T2", allowed=False))
        
        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        payload = json.loads(record.getMessage())
        assert payload["event"] == "cross_tenant_access"
        assert payload["target_tenant_id"] == "T2"
