"""Tenant domain entity.

A tenant is the isolation boundary: it owns roles and resources and is
never merged with another tenant's data.
"""

from dataclasses import dataclass
from typing import Optional

from ....config.constants import TenantStatus


@dataclass(frozen=True)
class Tenant:
    """Isolation boundary with lifecycle status."""
    
    id: str
    name: Optional[str] = None
    status: TenantStatus = TenantStatus.ACTIVE
    
    def __post_init__(self):
        if not self.id:
            raise ValueError("Tenant id cannot be empty")
        if not isinstance(self.status, TenantStatus):
            object.__setattr__(self, "status", TenantStatus(self.status))
    
    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE
    
    def __str__(self) -> str:
        return f"Tenant({self.id}, {self.status.value})"
