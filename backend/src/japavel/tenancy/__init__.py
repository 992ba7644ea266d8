"""Multi-tenancy: request-scoped tenant context, resolution and guards."""

from japavel.tenancy.config import TenantMiddlewareConfig
from japavel.tenancy.context import (
    ROLE_HIERARCHY,
    create_tenant_context,
    get_current_tenant_id,
    get_tenant_context,
    has_all_permissions,
    has_any_permission,
    has_permission,
    has_role,
    require_tenant_context,
    require_tenant_id,
    run_with_tenant,
    run_with_tenant_async,
    tenant_scope,
)
from japavel.tenancy.guards import (
    Procedure,
    require_permission_middleware,
    require_role_middleware,
    require_tenant_middleware,
)
from japavel.tenancy.isolation import (
    IsolationConfig,
    IsolationStrategy,
    configure_isolation,
    get_isolation_config,
    get_tenant_database,
    get_tenant_schema,
)
from japavel.tenancy.middleware import (
    TenantMiddleware,
    create_rpc_tenant_context,
    resolve_tenant_id,
)
from japavel.tenancy.models import (
    Tenant,
    TenantContext,
    TenantMember,
    TenantMemberRole,
    TenantPlan,
    TenantSettings,
    TenantStatus,
)

__all__ = [
    "ROLE_HIERARCHY",
    "IsolationConfig",
    "IsolationStrategy",
    "Procedure",
    "Tenant",
    "TenantContext",
    "TenantMember",
    "TenantMemberRole",
    "TenantMiddleware",
    "TenantMiddlewareConfig",
    "TenantPlan",
    "TenantSettings",
    "TenantStatus",
    "configure_isolation",
    "create_rpc_tenant_context",
    "create_tenant_context",
    "get_current_tenant_id",
    "get_isolation_config",
    "get_tenant_context",
    "get_tenant_database",
    "get_tenant_schema",
    "has_all_permissions",
    "has_any_permission",
    "has_permission",
    "has_role",
    "require_permission_middleware",
    "require_role_middleware",
    "require_tenant_context",
    "require_tenant_id",
    "require_tenant_middleware",
    "resolve_tenant_id",
    "run_with_tenant",
    "run_with_tenant_async",
    "tenant_scope",
]
