"""Fire-and-forget delivery of audit events.

Audit delivery must never block or fail a permission decision: events
are handed to background tasks and sink failures are only logged.
"""

import asyncio
import logging
from typing import Awaitable, Optional, Set

from ..entities import AuditSink, CrossTenantAccessEvent, PermissionCheckEvent
from .logging_sink import LoggingAuditSink

logger = logging.getLogger(__name__)


class AuditDispatcher:
    """Schedules audit sink calls without awaiting them."""
    
    def __init__(self, sink: Optional[AuditSink] = None):
        self.sink = sink or LoggingAuditSink()
        self._pending: Set[asyncio.Task] = set()
    
    def cross_tenant_access(self, event: CrossTenantAccessEvent) -> None:
        """Emit a cross-tenant access event."""
        self._schedule(self.sink.log_cross_tenant_access(event), "cross_tenant_access")
    
    def permission_check(self, event: PermissionCheckEvent) -> None:
        """Emit a permission check event."""
        self._schedule(self.sink.log_permission_check(event), "permission_check")
    
    def _schedule(self, coro: Awaitable[None], kind: str) -> None:
        task = asyncio.ensure_future(self._deliver(coro, kind))
        # Keep a strong reference until the task finishes
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
    
    async def _deliver(self, coro: Awaitable[None], kind: str) -> None:
        try:
            await coro
        except Exception as e:
            logger.error(f"Audit sink failed to record {kind} event: {e}")
    
    @property
    def pending(self) -> int:
        return len(self._pending)
    
    async def drain(self) -> None:
        """Wait for all in-flight audit deliveries (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
