"""Tenant data isolation settings.

The strategy is declared here and enforced by the data layer. For ``schema``
and ``database`` isolation the helpers below name the per-tenant schema or
database of the active tenant.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from japavel.tenancy.context import require_tenant_id


class IsolationStrategy(str, Enum):
    ROW = "row"
    SCHEMA = "schema"
    DATABASE = "database"


@dataclass(frozen=True)
class IsolationConfig:
    strategy: IsolationStrategy = IsolationStrategy.ROW
    schema_prefix: str = "tenant_"
    database_prefix: str = "tenant_"


_DEFAULT_CONFIG = IsolationConfig()
_isolation_config = _DEFAULT_CONFIG


def configure_isolation(**overrides) -> IsolationConfig:
    """Replace the process-wide isolation settings.

    Unspecified settings fall back to the defaults, not to the previous
    configuration.
    """
    global _isolation_config
    if "strategy" in overrides:
        overrides["strategy"] = IsolationStrategy(overrides["strategy"])
    _isolation_config = replace(_DEFAULT_CONFIG, **overrides)
    return _isolation_config


def get_isolation_config() -> IsolationConfig:
    return _isolation_config


def _tenant_name(prefix: str) -> str:
    return f"{prefix}{require_tenant_id().replace('-', '_')}"


def get_tenant_schema() -> str:
    """Schema name of the active tenant, e.g. ``tenant_3f2a_...``."""
    return _tenant_name(_isolation_config.schema_prefix)


def get_tenant_database() -> str:
    """Database name of the active tenant."""
    return _tenant_name(_isolation_config.database_prefix)
