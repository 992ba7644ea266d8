"""Tenant guards for RPC procedure pipelines.

A procedure middleware is an async callable ``(ctx, call_next)``: it may
raise to reject the call, or return ``await call_next()`` to continue.
:class:`Procedure` composes middlewares in front of a handler::

    tenant_procedure = Procedure().use(require_tenant_middleware())
    admin_procedure = tenant_procedure.use(require_role_middleware("admin"))

    @admin_procedure.handler
    async def delete_project(ctx, project_id):
        ...

    await delete_project({"tenant_context": ctx}, "p1")
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from japavel.exceptions import ForbiddenError, UnauthorizedError
from japavel.tenancy.context import (
    get_tenant_context,
    has_permission,
    has_role,
    run_with_tenant,
    run_with_tenant_async,
)
from japavel.tenancy.models import TenantContext

CallNext = Callable[[], Awaitable[Any]]
Middleware = Callable[[Any, CallNext], Awaitable[Any]]


def _tenant_context_of(ctx: Any) -> TenantContext:
    """Return the tenant context carried by ``ctx``, else the active one."""
    if isinstance(ctx, Mapping):
        context = ctx.get("tenant_context")
    else:
        context = getattr(ctx, "tenant_context", None)
    context = context or get_tenant_context()
    if context is None:
        raise UnauthorizedError("Tenant context required")
    return context


def require_tenant_middleware() -> Middleware:
    """Reject calls made without a tenant context."""

    async def middleware(ctx: Any, call_next: CallNext) -> Any:
        context = _tenant_context_of(ctx)
        return await run_with_tenant_async(context, call_next)

    return middleware


def require_role_middleware(role: str) -> Middleware:
    """Reject calls unless the acting user has ``role`` or a higher one."""

    async def middleware(ctx: Any, call_next: CallNext) -> Any:
        context = _tenant_context_of(ctx)
        if not run_with_tenant(context, has_role, role):
            raise ForbiddenError(f"Role {role} or higher required")
        return await run_with_tenant_async(context, call_next)

    return middleware


def require_permission_middleware(permission: str) -> Middleware:
    """Reject calls unless the acting user holds ``permission``."""

    async def middleware(ctx: Any, call_next: CallNext) -> Any:
        context = _tenant_context_of(ctx)
        if not run_with_tenant(context, has_permission, permission):
            raise ForbiddenError(f"Permission {permission} required")
        return await run_with_tenant_async(context, call_next)

    return middleware


@dataclass(frozen=True)
class Procedure:
    """Immutable procedure builder.

    ``use`` returns a new builder, so a shared base procedure is never
    modified by the procedures derived from it.
    """

    middlewares: tuple[Middleware, ...] = ()

    def use(self, middleware: Middleware) -> Procedure:
        return Procedure(self.middlewares + (middleware,))

    def handler(self, fn: Callable[..., Any]) -> Callable[..., Awaitable[Any]]:
        """Wrap ``fn(ctx, *args, **kwargs)`` behind this procedure's middlewares."""
        middlewares = self.middlewares

        @functools.wraps(fn)
        async def call(ctx: Any, *args: Any, **kwargs: Any) -> Any:
            async def dispatch(index: int) -> Any:
                if index == len(middlewares):
                    result = fn(ctx, *args, **kwargs)
                    if inspect.isawaitable(result):
                        result = await result
                    return result
                return await middlewares[index](ctx, lambda: dispatch(index + 1))

            return await dispatch(0)

        return call
