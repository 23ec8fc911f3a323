"""HTTP status code mapping for exceptions.

The engine never answers HTTP itself; API layers use this mapping to
translate the distinct error kinds into responses.
"""

from typing import Dict, Type

from .authorization import *
from .infrastructure import *


HTTP_STATUS_MAP: Dict[Type[Exception], int] = {
    # 400 Bad Request
    TenantContextMissing: 400,
    
    # 403 Forbidden
    AuthorizationError: 403,
    PermissionDeniedError: 403,
    SystemRoleImmutableError: 403,
    
    # 404 Not Found
    RoleNotFoundError: 404,
    
    # 500 Internal Server Error
    UnknownPermission: 500,
    ConfigurationError: 500,
    CycleInDependencyConfig: 500,
    RBACConfigurationError: 500,
    CacheError: 500,
    CacheSerializationError: 500,
    
    # 503 Service Unavailable
    StoreUnavailable: 503,
    CacheUnavailable: 503,
}


def get_http_status_code(exception: Exception) -> int:
    """Get HTTP status code for exception, walking the class hierarchy.
    
    Args:
        exception: The exception instance
        
    Returns:
        HTTP status code (500 when unmapped)
    """
    for exc_type in type(exception).__mro__:
        if exc_type in HTTP_STATUS_MAP:
            return HTTP_STATUS_MAP[exc_type]
    return 500
