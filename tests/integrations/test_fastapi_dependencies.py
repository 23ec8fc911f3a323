"""Tests for the FastAPI permission dependencies and exception handlers."""

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from neo_authz.core.exceptions import PermissionDeniedError, StoreUnavailable
from neo_authz.features.permissions import Decision, InMemoryPermissionStore
from neo_authz.integrations import register_exception_handlers, require_permission


class DownStore(InMemoryPermissionStore):
    
    async def get_roles_for_user(self, user_id, tenant_id):
        raise StoreUnavailable("database is down")


def build_app(engine) -> FastAPI:
    app = FastAPI()
    app.state.permission_engine = engine
    register_exception_handlers(app)
    
    @app.middleware("http")
    async def identity(request: Request, call_next):
        request.state.user_id = request.headers.get("X-User-Id")
        request.state.tenant_id = request.headers.get("X-Tenant-Id")
        return await call_next(request)
    
    @app.get("/users/{user_id}")
    async def view_user(user_id: str, decision: Decision = Depends(require_permission("User", "View", "user_id"))):
        return {"user_id": user_id, "source": decision.source.value, "resource_id": decision.resource_id}
    
    @app.delete("/users/{user_id}")
    async def delete_user(user_id: str, decision: Decision = Depends(require_permission("User", "Delete", "user_id"))):
        return {"deleted": user_id}
    
    @app.get("/widgets")
    async def list_widgets(decision: Decision = Depends(require_permission("Widget", "View"))):
        return []
    
    @app.get("/tenants/{tenant_id}/users")
    async def support_users(
        tenant_id: str,
        decision: Decision = Depends(require_permission(
            "User", "View", target_tenant_param="tenant_id", operation="support"
        ))
    ):
        return {"tenant_id": decision.tenant_id}
    
    @app.post("/roles")
    async def create_role():
        raise PermissionDeniedError("Grantor lacks Role:Manage", details={"tenant_id": "T1"})
    
    return app


@pytest.fixture
def client(engine):
    with TestClient(build_app(engine)) as client:
        yield client


def _headers(user_id="u1", tenant_id="T1"):
    headers = {}
    if user_id:
        headers["X-User-Id"] = user_id
    if tenant_id:
        headers["X-Tenant-Id"] = tenant_id
    return headers


class TestRequirePermission:
    
    def test_granted(self, client):
        response = client.get("/users/42", headers=_headers())
        
        assert response.status_code == 200
        assert response.json() == {"user_id": "42", "source": "role", "resource_id": "42"}
    
    def test_denied(self, client):
        response = client.delete("/users/42", headers=_headers())
        
        assert response.status_code == 403
        assert response.json()["detail"] == "Permission required: User:Delete"
    
    def test_unauthenticated(self, client):
        response = client.get("/users/42", headers=_headers(user_id=None))
        
        assert response.status_code == 401
    
    def test_missing_tenant(self, client):
        response = client.get("/users/42", headers=_headers(tenant_id=None))
        
        assert response.status_code == 400
    
    def test_unknown_permission_is_a_server_error(self, client):
        response = client.get("/widgets", headers=_headers())
        
        assert response.status_code == 500
    
    def test_cross_tenant_support(self, client):
        response = client.get("/tenants/T2/users", headers=_headers(user_id="admin"))
        
        assert response.status_code == 200
        assert response.json() == {"tenant_id": "T2"}
    
    def test_cross_tenant_denied_for_tenant_roles(self, client):
        response = client.get("/tenants/T2/users", headers=_headers())
        
        assert response.status_code == 403
    
    def test_store_failure_is_unavailable(self, engine_factory, store_factory):
        app = build_app(engine_factory(store_factory(DownStore)))
        
        with TestClient(app) as client:
            response = client.get("/users/42", headers=_headers())
        
        assert response.status_code == 503
    
    def test_missing_engine(self, engine):
        app = build_app(engine)
        del app.state.permission_engine
        
        with TestClient(app) as client:
            response = client.get("/users/42", headers=_headers())
        
        assert response.status_code == 500


class TestExceptionHandlers:
    
    def test_library_errors_are_mapped(self, client):
        response = client.post("/roles", headers=_headers())
        
        assert response.status_code == 403
        error = response.json()["error"]
        assert error["type"] == "PermissionDeniedError"
        assert error["message"] == "Grantor lacks Role:Manage"
        assert error["details"] == {"tenant_id": "T1"}
