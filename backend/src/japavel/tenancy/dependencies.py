"""FastAPI dependencies for tenant-scoped endpoints."""

from typing import Callable

from fastapi import HTTPException, Request

from japavel.tenancy.context import has_permission, has_role, run_with_tenant
from japavel.tenancy.models import TenantContext


def get_tenant(request: Request) -> TenantContext | None:
    """Dependency to get the tenant context resolved by TenantMiddleware.

    This is a soft dependency - returns None outside a tenant.
    Use require_tenant for endpoints that need one.
    """
    return getattr(request.state, "tenant_context", None)


def require_tenant(request: Request) -> TenantContext:
    """Dependency that requires a resolved tenant.

    Raises:
        HTTPException 401 if no tenant context is present
    """
    context = get_tenant(request)
    if context is None:
        raise HTTPException(status_code=401, detail="Tenant context required")
    return context


def require_tenant_role(role: str) -> Callable[[Request], TenantContext]:
    """Create a dependency that requires ``role`` or a higher one.

    Example:
        @app.delete("/projects/{id}")
        async def delete_project(ctx: TenantContext = Depends(require_tenant_role("admin"))):
            ...
    """

    def dependency(request: Request) -> TenantContext:
        context = require_tenant(request)
        if not run_with_tenant(context, has_role, role):
            raise HTTPException(status_code=403, detail=f"Role {role} or higher required")
        return context

    return dependency


def require_tenant_permission(permission: str) -> Callable[[Request], TenantContext]:
    """Create a dependency that requires ``permission``."""

    def dependency(request: Request) -> TenantContext:
        context = require_tenant(request)
        if not run_with_tenant(context, has_permission, permission):
            raise HTTPException(status_code=403, detail=f"Permission {permission} required")
        return context

    return dependency
