"""Static permission taxonomy.

The global catalogue of known permissions, built once at process start
from host configuration. Permissions are not tenant-scoped.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

from ....config.constants import Action
from .permission import Permission


@dataclass(frozen=True)
class PermissionTaxonomy:
    """Global, immutable permission catalogue."""
    
    permissions: FrozenSet[Permission]
    
    def __post_init__(self):
        object.__setattr__(self, "permissions", frozenset(self.permissions))
    
    @classmethod
    def from_resource_types(
        cls,
        resource_types: Iterable[str],
        actions: Optional[Iterable[str]] = None
    ) -> "PermissionTaxonomy":
        """Build the cross product of resource types and actions (all actions by default)."""
        action_names = list(actions) if actions is not None else [a.value for a in Action]
        return cls(permissions=frozenset(
            Permission(resource_type, action)
            for resource_type in resource_types
            for action in action_names
        ))
    
    @classmethod
    def from_codes(cls, codes: Iterable[str]) -> "PermissionTaxonomy":
        """Build from ``Resource:Action`` codes."""
        return cls(permissions=frozenset(Permission.parse(code) for code in codes))
    
    def contains(self, resource_type: str, action: str) -> bool:
        try:
            return Permission(resource_type, action) in self.permissions
        except ValueError:
            return False
    
    @property
    def resource_types(self) -> FrozenSet[str]:
        return frozenset(p.resource_type for p in self.permissions)
    
    def __len__(self) -> int:
        return len(self.permissions)
