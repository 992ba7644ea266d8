"""Tenant resolution configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any, Awaitable, Callable

if TYPE_CHECKING:
    from starlette.requests import Request

    from japavel.tenancy.models import Tenant

STRATEGIES = ("subdomain", "path", "header", "query", "jwt", "custom")

# Resolver returning a tenant id/slug for a request, or None. May be async.
CustomResolver = Callable[["Request"], "Awaitable[str | None] | str | None"]
TenantResolvedHook = Callable[["Tenant", "Request"], Awaitable[None]]

# Environment variable -> config attribute
_ENV_VARS = {
    "JAPAVEL_TENANT_STRATEGY": "strategy",
    "JAPAVEL_TENANT_HEADER": "header_name",
    "JAPAVEL_TENANT_QUERY_PARAM": "query_param",
    "JAPAVEL_TENANT_PATH_PREFIX": "path_prefix",
    "JAPAVEL_TENANT_JWT_CLAIM": "jwt_claim",
    "JAPAVEL_TENANT_ALLOWED_STATUSES": "allowed_statuses",
}


@dataclass
class TenantMiddlewareConfig:
    """How a request is mapped to a tenant.

    Attributes:
        strategy: One of "subdomain", "path", "header", "query", "jwt", "custom"
        header_name: Header read by the "header" strategy
        query_param: Query parameter read by the "query" strategy
        path_prefix: Prefix preceding the tenant segment for the "path" strategy
        jwt_claim: Claim of the authenticated user read by the "jwt" strategy
        custom_resolver: Resolver used by the "custom" strategy
        on_tenant_resolved: Awaited with (tenant, request) once access is granted
        allowed_statuses: Tenant statuses that may be accessed
    """

    strategy: str = "header"
    header_name: str = "x-tenant-id"
    query_param: str = "tenant"
    path_prefix: str = "/t/"
    jwt_claim: str = "tenant_id"
    custom_resolver: CustomResolver | None = None
    on_tenant_resolved: TenantResolvedHook | None = None
    allowed_statuses: tuple[str, ...] = ("active", "trial")

    def __post_init__(self) -> None:
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"Unsupported tenant resolution strategy '{self.strategy}'. "
                f"Expected one of: {', '.join(STRATEGIES)}"
            )
        if self.strategy == "custom" and self.custom_resolver is None:
            raise ValueError("The 'custom' strategy requires a custom_resolver")
        self.allowed_statuses = tuple(self.allowed_statuses)

    @classmethod
    def from_env(cls, **overrides: Any) -> TenantMiddlewareConfig:
        """Create config from JAPAVEL_TENANT_* environment variables.

        Keyword overrides take precedence over the environment; anything
        set in neither keeps its default.
        """
        values: dict[str, Any] = {}
        for env_var, attr in _ENV_VARS.items():
            raw = os.environ.get(env_var)
            if not raw:
                continue
            if attr == "allowed_statuses":
                values[attr] = tuple(s.strip() for s in raw.split(",") if s.strip())
            else:
                values[attr] = raw
        values.update(overrides)
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise TypeError(f"Unknown config option(s): {', '.join(sorted(unknown))}")
        return cls(**values)
