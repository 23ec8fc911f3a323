"""Value objects for identifiers in neo-authz.

Identifiers cross the API surface as plain strings; these immutable
wrappers validate them once at the boundary of the engine.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class UserId:
    """User identifier value object with basic validation."""
    value: str
    
    def __post_init__(self):
        if not self.value or not isinstance(self.value, str):
            raise ValueError("User ID must be a non-empty string")
    
    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TenantId:
    """Tenant identifier value object with basic validation."""
    value: str
    
    def __post_init__(self):
        if not self.value or not isinstance(self.value, str):
            raise ValueError("Tenant ID must be a non-empty string")
    
    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RoleId:
    """Role identifier value object with basic validation."""
    value: str
    
    def __post_init__(self):
        if not self.value or not isinstance(self.value, str):
            raise ValueError("Role ID must be a non-empty string")
    
    def __str__(self) -> str:
        return self.value


def as_str(identifier: Union[str, UserId, TenantId, RoleId]) -> str:
    """Normalize an identifier or its value object to the raw string."""
    if isinstance(identifier, (UserId, TenantId, RoleId)):
        return identifier.value
    return identifier
