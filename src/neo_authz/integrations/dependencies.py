"""FastAPI dependency injection helpers for permission checks.

The authentication layer is expected to populate ``request.state.user_id``
and ``request.state.tenant_id`` (or the tenant context variable); the
engine is read from ``app.state.permission_engine``.
"""

import logging
from typing import Optional

from fastapi import HTTPException, Request, status

from ..core.exceptions import TenantContextMissing
from ..features.permissions.entities import Decision, DecisionCode
from ..features.permissions.services import PermissionEngine
from ..features.tenants import tenant_context

logger = logging.getLogger(__name__)


# Basic Context Dependencies

def get_permission_engine(request: Request) -> PermissionEngine:
    """Get the permission engine registered on the application."""
    engine = getattr(request.app.state, "permission_engine", None)
    if engine is None:
        logger.error("No permission engine registered on app.state.permission_engine")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Permission engine not configured"
        )
    return engine


def get_current_user(request: Request) -> Optional[str]:
    """Get current authenticated user ID."""
    return getattr(request.state, "user_id", None)


def get_current_tenant(request: Request) -> Optional[str]:
    """Get the active tenant from request state, falling back to the tenant context."""
    tenant_id = getattr(request.state, "tenant_id", None)
    if tenant_id:
        return tenant_id
    return tenant_context.get()


def require_authentication(request: Request) -> str:
    """Require authenticated user, raise 401 if not authenticated."""
    user_id = get_current_user(request)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return user_id


# Permission-Based Dependencies

def require_permission(
    resource_type: str,
    action: str,
    resource_id_param: Optional[str] = None,
    target_tenant_param: Optional[str] = None,
    operation: Optional[str] = None
):
    """Create a dependency that requires a permission.
    
    Usage:
        @router.put("/documents/{document_id}")
        async def update_document(
            decision: Decision = Depends(require_permission("Document", "Update", "document_id"))
        ):
            pass
    
    Args:
        resource_type: Resource type checked
        action: Action checked
        resource_id_param: Path parameter holding the resource id, if any
        target_tenant_param: Path parameter holding a target tenant for cross-tenant routes
        operation: Operation type for cross-tenant allowances
    """
    
    async def _check_permission(request: Request) -> Decision:
        user_id = require_authentication(request)
        engine = get_permission_engine(request)
        resource_id = request.path_params.get(resource_id_param) if resource_id_param else None
        target_tenant_id = request.path_params.get(target_tenant_param) if target_tenant_param else None
        
        try:
            decision = await engine.check_permission(
                user_id,
                get_current_tenant(request),
                resource_type,
                action,
                resource_id,
                target_tenant_id=target_tenant_id,
                operation=operation,
            )
        except TenantContextMissing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Tenant context required"
            )
        
        if decision.granted:
            return decision
        
        if decision.code == DecisionCode.UNKNOWN_PERMISSION:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Permission check misconfigured"
            )
        if decision.code == DecisionCode.STORE_UNAVAILABLE:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Permission check unavailable"
            )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Permission required: {resource_type}:{action}"
        )
    
    return _check_permission
