"""Permission decision entity.

A decision is the only output of the resolution engine. Denials carry a
distinct code so callers can tell "access denied" apart from
configuration and infrastructure failures.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ....core.exceptions import CacheSerializationError


class DecisionCode(str, Enum):
    """Outcome codes for permission decisions."""
    
    GRANTED = "granted"
    DENIED = "denied"
    BOUNDARY_DENIED = "boundary_denied"
    NOT_OWNER = "not_owner"
    UNKNOWN_PERMISSION = "unknown_permission"
    STORE_UNAVAILABLE = "store_unavailable"


class GrantSource(str, Enum):
    """Which grant path satisfied the request."""
    
    ROLE = "role"
    DIRECT = "direct"
    ANY_VARIANT = "any_variant"


# Decisions with these codes depend on configuration or infrastructure
# state rather than the grant snapshot, so they are never cached.
UNCACHEABLE_CODES = frozenset({
    DecisionCode.BOUNDARY_DENIED,
    DecisionCode.UNKNOWN_PERMISSION,
    DecisionCode.STORE_UNAVAILABLE,
})


@dataclass(frozen=True)
class Decision:
    """Result of a permission check."""
    
    granted: bool
    code: DecisionCode
    user_id: str
    tenant_id: str
    resource_type: str
    action: str
    resource_id: Optional[str] = None
    reason: Optional[str] = None
    source: Optional[GrantSource] = None
    cached: bool = False
    expires_at: Optional[datetime] = None
    
    def __bool__(self) -> bool:
        return self.granted
    
    @property
    def is_error(self) -> bool:
        """Whether the denial stems from a configuration or infrastructure failure."""
        return self.code in (DecisionCode.UNKNOWN_PERMISSION, DecisionCode.STORE_UNAVAILABLE)
    
    @property
    def is_cacheable(self) -> bool:
        return self.code not in UNCACHEABLE_CODES
    
    def as_cached(self) -> "Decision":
        return replace(self, cached=True)
    
    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe mapping for the shared cache layer."""
        return {
            "granted": self.granted,
            "code": self.code.value,
            "user_id": self.user_id,
            "tenant_id": self.tenant_id,
            "resource_type": self.resource_type,
            "action": self.action,
            "resource_id": self.resource_id,
            "reason": self.reason,
            "source": self.source.value if self.source else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Decision":
        """Rebuild a decision from its cached mapping."""
        try:
            return cls(
                granted=bool(data["granted"]),
                code=DecisionCode(data["code"]),
                user_id=data["user_id"],
                tenant_id=data["tenant_id"],
                resource_type=data["resource_type"],
                action=data["action"],
                resource_id=data.get("resource_id"),
                reason=data.get("reason"),
                source=GrantSource(data["source"]) if data.get("source") else None,
                expires_at=datetime.fromisoformat(data["expires_at"]) if data.get("expires_at") else None,
            )
        except (KeyError, ValueError, TypeError) as e:
            raise CacheSerializationError(f"Invalid cached decision: {e}")
    
    def __str__(self) -> str:
        verdict = "GRANTED" if self.granted else f"DENIED[{self.code.value}]"
        target = f"{self.resource_type}:{self.action}"
        if self.resource_id:
            target = f"{target}/{self.resource_id}"
        return f"Decision({verdict} {self.user_id}@{self.tenant_id} {target})"
