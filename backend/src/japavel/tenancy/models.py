"""Tenant domain models.

Records returned by a tenant store may be model instances or plain mappings
in either snake_case or camelCase; :func:`as_tenant` and :func:`as_member`
turn both into validated models.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from japavel.exceptions import SchemaValidationError


class TenantStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    PENDING = "pending"
    TRIAL = "trial"
    CANCELLED = "cancelled"


class TenantPlan(str, Enum):
    FREE = "free"
    STARTER = "starter"
    PROFESSIONAL = "professional"
    ENTERPRISE = "enterprise"
    CUSTOM = "custom"


class TenantMemberRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    BILLING = "billing"
    MEMBER = "member"
    VIEWER = "viewer"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
    )


class TenantSettings(_Model):
    max_users: int = Field(default=5, ge=1)
    max_storage: int = Field(default=1024**3, ge=0)  # bytes
    features: list[str] = Field(default_factory=list)
    custom_domain: str | None = None
    sso_enabled: bool = False
    api_rate_limit: int = Field(default=1000, ge=0)  # requests per hour
    retention_days: int = Field(default=90, ge=1)


class Tenant(_Model):
    """An isolated customer organization."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=2, max_length=100)
    slug: str = Field(min_length=2, max_length=50, pattern=r"^[a-z0-9-]+$")
    status: TenantStatus = TenantStatus.PENDING
    plan: TenantPlan = TenantPlan.FREE
    settings: TenantSettings = Field(default_factory=TenantSettings)
    owner_id: str | None = None
    billing_email: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    trial_ends_at: datetime | None = None
    suspended_at: datetime | None = None
    suspended_reason: str | None = None


class TenantMember(_Model):
    """A user's membership in a tenant."""

    id: str | None = None
    tenant_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    role: TenantMemberRole = TenantMemberRole.MEMBER
    permissions: list[str] = Field(default_factory=list)
    invited_by: str | None = None
    invited_at: datetime | None = None
    joined_at: datetime = Field(default_factory=_utcnow)
    last_active_at: datetime | None = None


class TenantContext(_Model):
    """Resolved tenant and acting user for the current request.

    Owners and admins implicitly hold every permission, so ``permissions``
    only matters for the other roles.
    """

    model_config = ConfigDict(frozen=True)

    tenant_id: str = Field(min_length=1)
    tenant: Tenant | None = None
    user_id: str | None = None
    role: TenantMemberRole | None = None
    permissions: frozenset[str] = Field(default_factory=frozenset)


def as_tenant(value: Tenant | dict[str, Any]) -> Tenant:
    """Return ``value`` as a validated :class:`Tenant`."""
    if isinstance(value, Tenant):
        return value
    try:
        return Tenant.model_validate(value)
    except ValidationError as exc:
        raise SchemaValidationError.from_pydantic(exc) from exc


def as_member(value: TenantMember | dict[str, Any]) -> TenantMember:
    """Return ``value`` as a validated :class:`TenantMember`."""
    if isinstance(value, TenantMember):
        return value
    try:
        return TenantMember.model_validate(value)
    except ValidationError as exc:
        raise SchemaValidationError.from_pydantic(exc) from exc
