"""Decision cache keys, invalidation scopes and generations.

Every key is partitioned by tenant first, so any invalidation scope is a
key prefix. Components are percent-encoded before rendering, so ``:``
and glob characters inside identifiers can neither merge two keys nor
widen a ``KEYS`` pattern.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

from ....config.constants import CacheKeys

# Rendered in place of an absent resource id
NO_RESOURCE = "-"

# (tenant generation, user generation)
Generation = Tuple[int, int]


def encode_component(value: str) -> str:
    """Escape one key component; the result never contains ``:``, ``*``, ``?`` or ``[``."""
    return quote(value, safe="")


def generation_keys(prefix: str, tenant_id: str, user_id: str) -> Tuple[str, str]:
    """Redis keys holding the tenant and user invalidation counters."""
    tenant = encode_component(tenant_id)
    return (
        CacheKeys.TENANT_GENERATION.format(prefix=prefix, tenant_id=tenant),
        CacheKeys.USER_GENERATION.format(prefix=prefix, tenant_id=tenant, user_id=encode_component(user_id)),
    )


@dataclass(frozen=True)
class CacheGeneration:
    """Invalidation counters observed before grant data was read.
    
    A decision resolved from that data may only be written while the
    counters are unchanged. ``shared`` is None when the shared layer could
    not be read; the shared write is then skipped.
    """
    
    local: Generation
    shared: Optional[Generation] = None


@dataclass(frozen=True)
class DecisionCacheKey:
    """Identity of one cached decision."""
    
    tenant_id: str
    user_id: str
    resource_type: str
    action: str
    resource_id: Optional[str] = None
    
    def render(self, prefix: str) -> str:
        return CacheKeys.DECISION.format(
            prefix=prefix,
            tenant_id=encode_component(self.tenant_id),
            user_id=encode_component(self.user_id),
            resource_type=encode_component(self.resource_type),
            action=encode_component(self.action),
            resource_id=encode_component(self.resource_id) if self.resource_id else NO_RESOURCE,
        )
    
    def user_tag(self, prefix: str) -> str:
        return CacheKeys.USER_TAG.format(
            prefix=prefix,
            tenant_id=encode_component(self.tenant_id),
            user_id=encode_component(self.user_id),
        )
    
    def describes(self, decision: Any) -> bool:
        """Whether a decision was resolved for this key's request."""
        return (
            decision.tenant_id == self.tenant_id
            and decision.user_id == self.user_id
            and decision.resource_type == self.resource_type
            and decision.action == self.action
            and decision.resource_id == self.resource_id
        )
    
    @property
    def shard_key(self) -> tuple:
        return (self.tenant_id, self.user_id)


@dataclass(frozen=True)
class InvalidationPattern:
    """Scope of decisions to drop.
    
    Scopes narrow from left to right: ``(tenant)``, ``(tenant, user)``,
    ``(tenant, user, resource)`` and ``(tenant, user, resource, action)``.
    """
    
    tenant_id: str
    user_id: Optional[str] = None
    resource_type: Optional[str] = None
    action: Optional[str] = None
    
    def __post_init__(self):
        if not self.tenant_id:
            raise ValueError("Invalidation pattern requires a tenant_id")
        if self.resource_type is not None and self.user_id is None:
            raise ValueError("Resource scoped invalidation requires a user_id")
        if self.action is not None and self.resource_type is None:
            raise ValueError("Action scoped invalidation requires a resource_type")
    
    @property
    def is_tenant_wide(self) -> bool:
        return self.user_id is None
    
    @property
    def is_user_wide(self) -> bool:
        return self.user_id is not None and self.resource_type is None
    
    def matches(self, key: DecisionCacheKey) -> bool:
        if key.tenant_id != self.tenant_id:
            return False
        if self.user_id is not None and key.user_id != self.user_id:
            return False
        if self.resource_type is not None and key.resource_type != self.resource_type:
            return False
        if self.action is not None and key.action != self.action:
            return False
        return True
    
    def key_prefix(self, prefix: str) -> str:
        """Rendered prefix shared by every key inside a user-level (or narrower) scope."""
        if self.user_id is None:
            raise ValueError("Tenant-wide patterns have no single key prefix")
        parts = [prefix, "decision", encode_component(self.tenant_id), encode_component(self.user_id)]
        if self.resource_type is not None:
            parts.append(encode_component(self.resource_type))
            if self.action is not None:
                parts.append(encode_component(self.action))
        return ":".join(parts) + ":"
    
    def user_tag(self, prefix: str) -> str:
        if self.user_id is None:
            raise ValueError("Tenant-wide patterns have no single user tag")
        return CacheKeys.USER_TAG.format(
            prefix=prefix,
            tenant_id=encode_component(self.tenant_id),
            user_id=encode_component(self.user_id),
        )
    
    def tenant_tag_pattern(self, prefix: str) -> str:
        return CacheKeys.TENANT_TAG_PATTERN.format(prefix=prefix, tenant_id=encode_component(self.tenant_id))
    
    def generation_key(self, prefix: str) -> str:
        """Counter bumped when this scope is invalidated."""
        tenant = encode_component(self.tenant_id)
        if self.user_id is None:
            return CacheKeys.TENANT_GENERATION.format(prefix=prefix, tenant_id=tenant)
        return CacheKeys.USER_GENERATION.format(
            prefix=prefix, tenant_id=tenant, user_id=encode_component(self.user_id)
        )
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
            "resource_type": self.resource_type,
            "action": self.action,
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InvalidationPattern":
        return cls(
            tenant_id=data["tenant_id"],
            user_id=data.get("user_id"),
            resource_type=data.get("resource_type"),
            action=data.get("action"),
        )
    
    def __str__(self) -> str:
        scope = [self.tenant_id, self.user_id, self.resource_type, self.action]
        return "InvalidationPattern(" + ":".join(s for s in scope if s is not None) + ")"
