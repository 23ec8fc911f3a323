"""Audit sink writing structured events to the ``neo_authz.audit`` logger."""

import json
import logging

from ..entities import CrossTenantAccessEvent, PermissionCheckEvent

audit_logger = logging.getLogger("neo_authz.audit")


class LoggingAuditSink:
    """Default audit sink used when the host provides none."""
    
    def __init__(self, logger: logging.Logger = audit_logger):
        self.logger = logger
    
    async def log_cross_tenant_access(self, event: CrossTenantAccessEvent) -> None:
        level = logging.INFO if event.allowed else logging.WARNING
        self.logger.log(level, json.dumps(event.to_dict()))
    
    async def log_permission_check(self, event: PermissionCheckEvent) -> None:
        self.logger.debug(json.dumps(event.to_dict()))
