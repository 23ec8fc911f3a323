"""Boundary validation result."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class BoundaryReason(str, Enum):
    """Why a boundary check resolved the way it did."""
    
    SAME_TENANT = "same_tenant"
    CROSS_TENANT_ALLOWED = "cross_tenant_allowed"
    CROSS_TENANT_DENIED = "cross_tenant_denied"
    TENANT_NOT_FOUND = "tenant_not_found"
    TENANT_INACTIVE = "tenant_inactive"


@dataclass(frozen=True)
class BoundaryResult:
    """Allowed, or Denied with a reason."""
    
    allowed: bool
    reason: BoundaryReason
    via_role: Optional[str] = None
    
    def __bool__(self) -> bool:
        return self.allowed
    
    @classmethod
    def allow(cls, reason: BoundaryReason, via_role: Optional[str] = None) -> "BoundaryResult":
        return cls(allowed=True, reason=reason, via_role=via_role)
    
    @classmethod
    def deny(cls, reason: BoundaryReason) -> "BoundaryResult":
        return cls(allowed=False, reason=reason)
