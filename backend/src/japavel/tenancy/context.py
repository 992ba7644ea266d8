"""Request-scoped tenant context.

The active :class:`TenantContext` lives in a ``ContextVar``. Every asyncio
task copies the context it was created in, so a tenant established for one
request is visible to everything that request awaits or schedules, and never
to a concurrently running request.

Usage:
    async def handle():
        ctx = create_tenant_context(tenant, member)
        return await run_with_tenant_async(ctx, load_dashboard)

    async def load_dashboard():
        if not has_permission("dashboard:read"):
            ...
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Awaitable, Callable, Iterable, Iterator, TypeVar

from pydantic import ValidationError

from japavel.exceptions import NoTenantContextError, SchemaValidationError
from japavel.tenancy.models import (
    Tenant,
    TenantContext,
    TenantMember,
    as_member,
    as_tenant,
)

T = TypeVar("T")

# Role hierarchy - higher number = more privileges
ROLE_HIERARCHY = {
    "owner": 100,
    "admin": 80,
    "billing": 60,
    "member": 40,
    "viewer": 20,
}

# Roles that implicitly hold every permission
SUPERUSER_ROLES = frozenset({"owner", "admin"})

_tenant_context: ContextVar[TenantContext | None] = ContextVar("tenant_context", default=None)


# ---------------------------------------------------------------------------
# Scope management
# ---------------------------------------------------------------------------


@contextmanager
def tenant_scope(context: TenantContext) -> Iterator[TenantContext]:
    """Make ``context`` the active tenant for the body of the ``with`` block."""
    token = _tenant_context.set(context)
    try:
        yield context
    finally:
        _tenant_context.reset(token)


def run_with_tenant(context: TenantContext, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call ``fn`` with ``context`` as the active tenant."""
    with tenant_scope(context):
        return fn(*args, **kwargs)


async def run_with_tenant_async(
    context: TenantContext,
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    **kwargs: Any,
) -> T:
    """Await ``fn`` with ``context`` as the active tenant."""
    with tenant_scope(context):
        return await fn(*args, **kwargs)


# ---------------------------------------------------------------------------
# Accessors
# ---------------------------------------------------------------------------


def get_tenant_context() -> TenantContext | None:
    return _tenant_context.get()


def require_tenant_context() -> TenantContext:
    """Return the active tenant context.

    Raises:
        NoTenantContextError: Called outside a tenant scope.
    """
    ctx = _tenant_context.get()
    if ctx is None:
        raise NoTenantContextError()
    return ctx


def get_current_tenant_id() -> str | None:
    ctx = _tenant_context.get()
    return ctx.tenant_id if ctx else None


def require_tenant_id() -> str:
    tenant_id = get_current_tenant_id()
    if not tenant_id:
        raise NoTenantContextError("Tenant ID not set. Ensure request is within tenant scope.")
    return tenant_id


def create_tenant_context(
    tenant: Tenant | dict[str, Any],
    member: TenantMember | dict[str, Any] | None = None,
) -> TenantContext:
    """Build a context from a tenant and the acting user's membership.

    Without a membership the context carries no role and no permissions.

    Raises:
        SchemaValidationError: The tenant or membership is malformed.
    """
    tenant = as_tenant(tenant)
    member = as_member(member) if member is not None else None
    try:
        return TenantContext(
            tenant_id=tenant.id,
            tenant=tenant,
            user_id=member.user_id if member else None,
            role=member.role if member else None,
            permissions=frozenset(member.permissions) if member else frozenset(),
        )
    except ValidationError as exc:
        raise SchemaValidationError.from_pydantic(exc) from exc


# ---------------------------------------------------------------------------
# Permission and role checks against the active context
# ---------------------------------------------------------------------------


def has_permission(permission: str) -> bool:
    """Check whether the acting user holds ``permission``."""
    ctx = _tenant_context.get()
    if ctx is None:
        return False
    if ctx.role in SUPERUSER_ROLES:
        return True
    return permission in ctx.permissions


def has_any_permission(permissions: Iterable[str]) -> bool:
    return any(has_permission(p) for p in permissions)


def has_all_permissions(permissions: Iterable[str]) -> bool:
    return all(has_permission(p) for p in permissions)


def role_level(role: str | None) -> int:
    """Return numeric level for a role name, 0 if unknown/None."""
    return ROLE_HIERARCHY.get(role or "", 0)


def has_role(required_role: str) -> bool:
    """Check whether the acting user has ``required_role`` or a higher one."""
    ctx = _tenant_context.get()
    if ctx is None or not ctx.role:
        return False
    return role_level(ctx.role) >= role_level(required_role)
