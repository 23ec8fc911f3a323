"""Infrastructure-specific exceptions for neo-authz.

This module defines exceptions related to the permission store and
the decision cache layers.
"""

from .base import NeoAuthzError


# Store Errors
class StoreUnavailable(NeoAuthzError):
    """Raised when the permission store fails or times out.
    
    Transient; the engine resolves it as a fail-closed denial.
    """
    
    def __init__(self, message: str = "Permission store unavailable", **kwargs):
        super().__init__(message, error_code="STORE_UNAVAILABLE", **kwargs)


# Cache Errors
class CacheError(NeoAuthzError):
    """Base class for cache-related errors."""
    pass


class CacheUnavailable(CacheError):
    """Raised when a cache layer cannot be reached.
    
    Reads degrade to the store; invalidations propagate so the
    triggering mutation is not acknowledged.
    """
    
    def __init__(self, message: str = "Decision cache unavailable", **kwargs):
        super().__init__(message, error_code="CACHE_UNAVAILABLE", **kwargs)


class CacheSerializationError(CacheError):
    """Raised when a cached decision cannot be decoded."""
    pass
