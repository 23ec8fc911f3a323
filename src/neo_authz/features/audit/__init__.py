"""Audit feature for neo-authz.

Feature-First architecture for audit event delivery:
- entities/: audit events and the external sink protocol
- services/: fire-and-forget dispatcher and the default logging sink
"""

from .entities import AuditSink, CrossTenantAccessEvent, PermissionCheckEvent
from .services import AuditDispatcher, LoggingAuditSink

__all__ = [
    "AuditSink",
    "CrossTenantAccessEvent",
    "PermissionCheckEvent",
    "AuditDispatcher",
    "LoggingAuditSink",
]
