"""Audit entities."""

from .events import CrossTenantAccessEvent, PermissionCheckEvent
from .protocols import AuditSink

__all__ = [
    "CrossTenantAccessEvent",
    "PermissionCheckEvent",
    "AuditSink",
]
