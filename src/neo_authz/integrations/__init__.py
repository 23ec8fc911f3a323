"""FastAPI integration for neo-authz."""

from .dependencies import (
    get_permission_engine,
    get_current_user,
    get_current_tenant,
    require_authentication,
    require_permission,
)
from .exception_handlers import register_exception_handlers

__all__ = [
    "get_permission_engine",
    "get_current_user",
    "get_current_tenant",
    "require_authentication",
    "require_permission",
    "register_exception_handlers",
]
