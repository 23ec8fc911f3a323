"""Audit services."""

from .audit_dispatcher import AuditDispatcher
from .logging_sink import LoggingAuditSink

__all__ = [
    "AuditDispatcher",
    "LoggingAuditSink",
]
