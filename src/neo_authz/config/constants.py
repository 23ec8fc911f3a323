"""Constants and enums for neo-authz.

This module defines the fixed action taxonomy, the default functional
dependency table between actions, and the cache key patterns used by
the decision cache layers.
"""

from enum import Enum
from typing import Dict, Final, FrozenSet, Optional, Tuple


class Action(str, Enum):
    """Fixed action taxonomy shared by every resource type."""
    
    VIEW = "View"
    VIEW_ANY = "ViewAny"
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
    DELETE_ANY = "DeleteAny"
    RESTORE = "Restore"
    REPLICATE = "Replicate"
    EXPORT = "Export"
    IMPORT = "Import"
    BULK_EDIT = "BulkEdit"
    BULK_DELETE = "BulkDelete"
    MANAGE = "Manage"
    
    @classmethod
    def values(cls) -> FrozenSet[str]:
        """All action names as plain strings."""
        return frozenset(member.value for member in cls)
    
    @classmethod
    def is_any_action(cls, action: str) -> bool:
        """Whether the action is a collection-wide ``...Any`` action."""
        return action.endswith("Any") and action in cls.values()
    
    @classmethod
    def any_variant(cls, action: str) -> Optional[str]:
        """Return the ``...Any`` variant of an action, if the taxonomy has one."""
        candidate = f"{action}Any"
        return candidate if candidate in cls.values() else None


class TenantStatus(str, Enum):
    """Tenant lifecycle status."""
    
    ACTIVE = "active"
    SUSPENDED = "suspended"
    DEACTIVATED = "deactivated"


# Functional dependencies: "Update": ["View"] reads "Update functionally
# depends on View". Used for configuration validation and UI consistency,
# never as a grant path.
FUNCTIONAL_DEPENDENCIES: Final[Dict[str, Tuple[str, ...]]] = {
    Action.VIEW.value: (),
    Action.VIEW_ANY.value: (Action.VIEW.value,),
    Action.CREATE.value: (Action.VIEW.value,),
    Action.UPDATE.value: (Action.VIEW.value,),
    Action.DELETE.value: (Action.VIEW.value,),
    Action.DELETE_ANY.value: (Action.DELETE.value, Action.VIEW_ANY.value),
    Action.RESTORE.value: (Action.VIEW.value,),
    Action.REPLICATE.value: (Action.VIEW.value, Action.CREATE.value),
    Action.EXPORT.value: (Action.VIEW_ANY.value,),
    Action.IMPORT.value: (Action.CREATE.value,),
    Action.BULK_EDIT.value: (Action.UPDATE.value, Action.VIEW_ANY.value),
    Action.BULK_DELETE.value: (Action.DELETE_ANY.value,),
    Action.MANAGE.value: (
        Action.VIEW.value,
        Action.VIEW_ANY.value,
        Action.CREATE.value,
        Action.UPDATE.value,
        Action.DELETE.value,
    ),
}


WILDCARD_RESOURCE_ID: Final[str] = "*"

# Resource and action used by grant validation for role administration
ROLE_RESOURCE: Final[str] = "Role"


class CacheKeys:
    """Cache key patterns for decision caching."""
    
    DECISION: Final[str] = "{prefix}:decision:{tenant_id}:{user_id}:{resource_type}:{action}:{resource_id}"
    USER_TAG: Final[str] = "{prefix}:tag:{tenant_id}:{user_id}"
    TENANT_TAG_PATTERN: Final[str] = "{prefix}:tag:{tenant_id}:*"
    TENANT_GENERATION: Final[str] = "{prefix}:gen:{tenant_id}"
    USER_GENERATION: Final[str] = "{prefix}:gen:{tenant_id}:{user_id}"


class CacheTTL:
    """Cache TTL values in seconds."""
    
    DECISION: Final[int] = 300      # 5 minutes
    LOCAL_DECISION: Final[int] = 30  # 30 seconds
    GENERATION: Final[int] = 3600   # outlives any in-flight store read
