"""Configuration module for neo-authz."""

from .constants import (
    Action,
    TenantStatus,
    FUNCTIONAL_DEPENDENCIES,
    WILDCARD_RESOURCE_ID,
    ROLE_RESOURCE,
    CacheKeys,
    CacheTTL,
)
from .settings import AuthzSettings, get_settings
from .logging_config import (
    LogVerbosity,
    LogFormat,
    LoggingConfig,
    setup_logging,
)

__all__ = [
    # Constants
    "Action",
    "TenantStatus",
    "FUNCTIONAL_DEPENDENCIES",
    "WILDCARD_RESOURCE_ID",
    "ROLE_RESOURCE",
    "CacheKeys",
    "CacheTTL",
    
    # Settings
    "AuthzSettings",
    "get_settings",
    
    # Logging
    "LogVerbosity",
    "LogFormat",
    "LoggingConfig",
    "setup_logging",
]
