"""Tenant resolution middleware for Starlette/FastAPI."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from typing import Any, Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from japavel.tenancy.config import TenantMiddlewareConfig
from japavel.tenancy.context import create_tenant_context, run_with_tenant_async
from japavel.tenancy.models import Tenant, TenantContext, TenantMember, as_member, as_tenant

logger = logging.getLogger(__name__)

# Store lookups injected by the host application
GetTenant = Callable[[str], Awaitable["Tenant | dict[str, Any] | None"]]
GetMember = Callable[[str, str], Awaitable["TenantMember | dict[str, Any] | None"]]


def _user_attr(user: Any, name: str) -> Any:
    """Read ``name`` from an authenticated user, mapping or object."""
    if user is None:
        return None
    if isinstance(user, Mapping):
        return user.get(name)
    return getattr(user, name, None)


def _request_user(request: Request) -> Any:
    return getattr(request.state, "user", None)


def _text_or_none(value: Any) -> str | None:
    """Return a tenant reference as text; numeric claims like ``42`` become ``"42"``."""
    if isinstance(value, bool) or not value:
        return None
    if isinstance(value, (Mapping, list, tuple, set)):
        return None
    return str(value)


async def resolve_tenant_id(request: Request, config: TenantMiddlewareConfig) -> str | None:
    """Extract the tenant id or slug from ``request`` using the configured strategy.

    Returns:
        The identifier, or None when the request does not name a tenant.
    """
    strategy = config.strategy

    if strategy == "subdomain":
        host = request.url.hostname or request.headers.get("host", "").split(":")[0]
        parts = host.split(".")
        # Bare domains (example.com) carry no tenant label
        if len(parts) >= 3:
            return _text_or_none(parts[0])
        return None

    if strategy == "path":
        path = request.url.path
        if path.startswith(config.path_prefix):
            remaining = path[len(config.path_prefix):]
            return _text_or_none(remaining.split("/")[0])
        return None

    if strategy == "header":
        return _text_or_none(request.headers.get(config.header_name))

    if strategy == "query":
        values = request.query_params.getlist(config.query_param)
        return _text_or_none(values[0]) if len(values) == 1 else None

    if strategy == "jwt":
        # Populated by the auth middleware, which must run first
        return _text_or_none(_user_attr(_request_user(request), config.jwt_claim))

    if strategy == "custom" and config.custom_resolver is not None:
        result = config.custom_resolver(request)
        if inspect.isawaitable(result):
            result = await result
        return _text_or_none(result)

    return None


async def _fetch_member(
    request: Request, tenant: Tenant, get_member: GetMember
) -> TenantMember | None:
    user_id = _user_attr(_request_user(request), "id")
    if not user_id:
        return None
    member = await get_member(tenant.id, str(user_id))
    return as_member(member) if member is not None else None


class TenantMiddleware(BaseHTTPMiddleware):
    """Middleware that resolves the tenant of each request.

    The middleware:
    1. Extracts the tenant id/slug using the configured strategy (400 if absent)
    2. Fetches the tenant (404 if unknown)
    3. Rejects tenants whose status is not allowed (403)
    4. Fetches the authenticated user's membership, if any
    5. Sets request.state.tenant_context and runs the rest of the request
       with that context active

    Errors raised by the lookup functions are not handled here.
    """

    def __init__(
        self,
        app,
        get_tenant: GetTenant,
        get_member: GetMember,
        config: TenantMiddlewareConfig | None = None,
    ):
        """Initialize middleware with the tenant store lookups.

        Args:
            app: The ASGI application
            get_tenant: Async lookup of a tenant by id or slug
            get_member: Async lookup of a membership by (tenant_id, user_id)
            config: Resolution settings, defaults to the "header" strategy
        """
        super().__init__(app)
        self._get_tenant = get_tenant
        self._get_member = get_member
        self._config = config or TenantMiddlewareConfig()

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.tenant_context = None

        tenant_ref = await resolve_tenant_id(request, self._config)
        if not tenant_ref:
            return JSONResponse({"error": "Tenant not specified"}, status_code=400)

        raw_tenant = await self._get_tenant(tenant_ref)
        if raw_tenant is None:
            logger.debug("Unknown tenant '%s'", tenant_ref)
            return JSONResponse({"error": "Tenant not found"}, status_code=404)
        tenant = as_tenant(raw_tenant)

        if tenant.status not in self._config.allowed_statuses:
            logger.warning("Access to tenant %s denied: status %s", tenant.id, tenant.status)
            return JSONResponse(
                {"error": "Tenant access denied", "reason": f"Tenant status: {tenant.status}"},
                status_code=403,
            )

        member = await _fetch_member(request, tenant, self._get_member)
        context = create_tenant_context(tenant, member)

        if self._config.on_tenant_resolved is not None:
            await self._config.on_tenant_resolved(tenant, request)

        request.state.tenant_context = context
        logger.debug(
            "Tenant context set: tenant=%s, user=%s, role=%s",
            context.tenant_id,
            context.user_id,
            context.role,
        )
        return await run_with_tenant_async(context, call_next, request)


async def create_rpc_tenant_context(
    request: Request,
    get_tenant: GetTenant,
    get_member: GetMember,
    config: TenantMiddlewareConfig | None = None,
) -> TenantContext | None:
    """Resolve the tenant context for an RPC-style context builder.

    Runs the same pipeline as :class:`TenantMiddleware` but returns None
    instead of an error response when any step fails.
    """
    config = config or TenantMiddlewareConfig()

    tenant_ref = await resolve_tenant_id(request, config)
    if not tenant_ref:
        return None

    raw_tenant = await get_tenant(tenant_ref)
    if raw_tenant is None:
        return None
    tenant = as_tenant(raw_tenant)

    if tenant.status not in config.allowed_statuses:
        return None

    member = await _fetch_member(request, tenant, get_member)
    return create_tenant_context(tenant, member)
