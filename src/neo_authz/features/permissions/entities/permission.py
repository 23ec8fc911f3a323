"""Permission domain entities for neo-authz permissions feature.

A permission is a globally defined (resource type, action) pair. Direct
user grants wrap a permission with an optional expiry.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


@dataclass(frozen=True)
class Permission:
    """Immutable (resource type, action) pair, e.g. ``User:Update``."""
    
    resource_type: str
    action: str
    
    def __post_init__(self):
        if not self.resource_type or not self.action:
            raise ValueError(
                f"Both resource type and action must be non-empty, got: {self.resource_type!r}, {self.action!r}"
            )
        if ":" in self.resource_type or ":" in self.action:
            raise ValueError(f"Resource type and action cannot contain ':': {self.resource_type}:{self.action}")
    
    @classmethod
    def parse(cls, code: str) -> "Permission":
        """Build a permission from its ``Resource:Action`` code."""
        parts = code.split(":") if code else []
        if len(parts) != 2:
            raise ValueError(f"Permission code must be in format 'Resource:Action', got: {code}")
        return cls(parts[0], parts[1])
    
    @property
    def code(self) -> str:
        return f"{self.resource_type}:{self.action}"
    
    def __str__(self) -> str:
        return self.code


@dataclass(frozen=True)
class PermissionGrant:
    """Direct grant of a permission to a user within a tenant."""
    
    permission: Permission
    expires_at: Optional[datetime] = None
    
    def is_active(self, now: Optional[datetime] = None) -> bool:
        """Check whether the grant has not expired at ``now``."""
        if self.expires_at is None:
            return True
        now = now or datetime.now(timezone.utc)
        return self.expires_at > now
    
    def __str__(self) -> str:
        if self.expires_at is None:
            return f"PermissionGrant({self.permission})"
        return f"PermissionGrant({self.permission}, expires_at={self.expires_at.isoformat()})"
