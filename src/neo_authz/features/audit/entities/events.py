"""Audit events emitted by the permission engine."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CrossTenantAccessEvent:
    """A request whose active tenant differs from the target tenant."""
    
    accessor_user_id: str
    source_tenant_id: str
    target_tenant_id: str
    allowed: bool
    operation: Optional[str] = None
    occurred_at: datetime = field(default_factory=utc_now)
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "cross_tenant_access",
            "accessor_user_id": self.accessor_user_id,
            "source_tenant_id": self.source_tenant_id,
            "target_tenant_id": self.target_tenant_id,
            "allowed": self.allowed,
            "operation": self.operation,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class PermissionCheckEvent:
    """Outcome of a single permission check."""
    
    user_id: str
    tenant_id: str
    resource_type: str
    action: str
    granted: bool
    code: str
    resource_id: Optional[str] = None
    cached: bool = False
    occurred_at: datetime = field(default_factory=utc_now)
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "permission_check",
            "user_id": self.user_id,
            "tenant_id": self.tenant_id,
            "resource_type": self.resource_type,
            "action": self.action,
            "resource_id": self.resource_id,
            "granted": self.granted,
            "code": self.code,
            "cached": self.cached,
            "occurred_at": self.occurred_at.isoformat(),
        }
