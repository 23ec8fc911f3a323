"""Runtime settings for the permission engine.

Loaded once at process start from environment variables prefixed with
``NEO_AUTHZ_`` (and an optional ``.env`` file).
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import CacheTTL


class AuthzSettings(BaseSettings):
    """Permission engine settings."""
    
    model_config = SettingsConfigDict(
        env_prefix="NEO_AUTHZ_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    # Store access
    store_timeout_seconds: float = Field(default=2.0, gt=0, description="Timeout for each permission store query")
    
    # Decision cache
    decision_ttl_seconds: int = Field(default=CacheTTL.DECISION, ge=1, description="TTL of cached decisions in the shared layer")
    local_ttl_seconds: int = Field(default=CacheTTL.LOCAL_DECISION, ge=1, description="TTL of cached decisions in the in-process layer")
    local_max_entries: int = Field(default=10000, ge=1, description="Max in-process cached decisions")
    local_shards: int = Field(default=16, ge=1, le=1024, description="Lock shards for the in-process layer")
    cache_key_prefix: str = Field(default="authz", min_length=1, description="Prefix for every cache key")
    
    # Shared cache layer
    redis_url: Optional[str] = Field(default=None, description="Redis URL for the shared cache layer")
    invalidation_channel: str = Field(default="authz:invalidations", description="Pub/sub channel for invalidation fan-out")
    
    # Behaviour
    strict_dependencies: bool = Field(default=False, description="Reject role configurations missing functional dependencies")
    check_tenant_status: bool = Field(default=True, description="Deny access to suspended or unknown tenants")
    audit_permission_checks: bool = Field(default=True, description="Emit an audit event for every permission check")
    
    @property
    def is_shared_cache_enabled(self) -> bool:
        """Check if the Redis shared layer is configured."""
        return self.redis_url is not None


@lru_cache()
def get_settings() -> AuthzSettings:
    """Get cached settings instance."""
    return AuthzSettings()
