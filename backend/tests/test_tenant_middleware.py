"""Tests for tenant resolution: TenantMiddleware, create_rpc_tenant_context and dependencies."""

import time

import jwt
import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from japavel.auth import AuthMiddleware, JWTService
from japavel.tenancy.config import TenantMiddlewareConfig
from japavel.tenancy.context import get_current_tenant_id, get_tenant_context, has_permission
from japavel.tenancy.dependencies import (
    get_tenant,
    require_tenant,
    require_tenant_permission,
    require_tenant_role,
)
from japavel.tenancy.middleware import TenantMiddleware, create_rpc_tenant_context, resolve_tenant_id
from japavel.tenancy.models import Tenant, TenantContext, TenantMember

SECRET = "test-secret-key-with-at-least-32-characters"


# =============================================================================
# Fake tenant store
# =============================================================================


class FakeStore:
    def __init__(self):
        self.tenants = {
            "acme": Tenant(id="t-acme", name="Acme", slug="acme", status="active"),
            "trialco": Tenant(id="t-trial", name="Trial Co", slug="trialco", status="trial"),
            "frozen": Tenant(id="t-frozen", name="Frozen", slug="frozen", status="suspended"),
        }
        self.members = {
            ("t-acme", "u-admin"): TenantMember(tenant_id="t-acme", user_id="u-admin", role="admin"),
            ("t-acme", "u-viewer"): TenantMember(
                tenant_id="t-acme", user_id="u-viewer", role="viewer", permissions=["reports:read"]
            ),
        }
        self.tenant_lookups: list[str] = []

    async def get_tenant(self, id_or_slug: str):
        self.tenant_lookups.append(id_or_slug)
        return self.tenants.get(id_or_slug)

    async def get_member(self, tenant_id: str, user_id: str):
        return self.members.get((tenant_id, user_id))


def make_token(sub: str, **claims) -> str:
    now = int(time.time())
    payload = {"sub": sub, "iat": now, "exp": now + 900, **claims}
    return jwt.encode(payload, SECRET, algorithm="HS256")


def build_app(store: FakeStore, config: TenantMiddlewareConfig | None = None, with_auth: bool = True) -> FastAPI:
    app = FastAPI()

    @app.get("/whoami")
    async def whoami(request: Request):
        ambient = get_tenant_context()
        return {
            "tenant_id": get_current_tenant_id(),
            "attached": request.state.tenant_context.tenant_id,
            "same": ambient == request.state.tenant_context,
            "role": ambient.role,
            "user_id": ambient.user_id,
            "can_read_reports": has_permission("reports:read"),
        }

    @app.get("/t/{slug}/projects")
    async def projects(slug: str):
        return {"tenant_id": get_current_tenant_id(), "slug": slug}

    @app.get("/admin")
    async def admin_only(ctx: TenantContext = Depends(require_tenant_role("admin"))):
        return {"tenant_id": ctx.tenant_id}

    @app.get("/reports")
    async def reports(ctx: TenantContext = Depends(require_tenant_permission("reports:read"))):
        return {"tenant_id": ctx.tenant_id}

    app.add_middleware(
        TenantMiddleware,
        get_tenant=store.get_tenant,
        get_member=store.get_member,
        config=config,
    )
    if with_auth:
        # Added last so it runs first
        app.add_middleware(AuthMiddleware, jwt_service=JWTService(SECRET))
    return app


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def client(store):
    return TestClient(build_app(store))


# =============================================================================
# Resolution strategies
# =============================================================================


class TestHeaderStrategy:
    def test_resolves_from_default_header(self, client):
        response = client.get("/whoami", headers={"X-Tenant-ID": "acme"})
        assert response.status_code == 200
        body = response.json()
        assert body["tenant_id"] == "t-acme"
        assert body["attached"] == "t-acme"
        assert body["same"] is True

    def test_header_lookup_is_case_insensitive(self, store):
        client = TestClient(build_app(store, TenantMiddlewareConfig(header_name="X-Org")))
        response = client.get("/whoami", headers={"x-org": "acme"})
        assert response.status_code == 200

    def test_missing_header_is_400(self, client):
        response = client.get("/whoami")
        assert response.status_code == 400
        assert response.json() == {"error": "Tenant not specified"}


class TestSubdomainStrategy:
    def test_resolves_first_label(self, store):
        app = build_app(store, TenantMiddlewareConfig(strategy="subdomain"))
        client = TestClient(app, base_url="http://acme.app.example.com")
        response = client.get("/whoami")
        assert response.status_code == 200
        assert store.tenant_lookups == ["acme"]

    def test_port_is_ignored(self, store):
        app = build_app(store, TenantMiddlewareConfig(strategy="subdomain"))
        client = TestClient(app, base_url="http://acme.app.example.com:8080")
        assert client.get("/whoami").status_code == 200

    def test_bare_domain_is_400(self, store):
        app = build_app(store, TenantMiddlewareConfig(strategy="subdomain"))
        client = TestClient(app, base_url="http://example.com")
        response = client.get("/whoami")
        assert response.status_code == 400
        assert store.tenant_lookups == []


class TestPathStrategy:
    def test_resolves_segment_after_prefix(self, store):
        client = TestClient(build_app(store, TenantMiddlewareConfig(strategy="path")))
        response = client.get("/t/acme/projects")
        assert response.status_code == 200
        assert response.json() == {"tenant_id": "t-acme", "slug": "acme"}

    def test_path_without_prefix_is_400(self, store):
        client = TestClient(build_app(store, TenantMiddlewareConfig(strategy="path")))
        assert client.get("/whoami").status_code == 400


class TestQueryStrategy:
    def test_resolves_query_param(self, store):
        client = TestClient(build_app(store, TenantMiddlewareConfig(strategy="query")))
        response = client.get("/whoami", params={"tenant": "acme"})
        assert response.status_code == 200

    def test_custom_param_name(self, store):
        config = TenantMiddlewareConfig(strategy="query", query_param="org")
        client = TestClient(build_app(store, config))
        assert client.get("/whoami?org=acme").status_code == 200
        assert client.get("/whoami?tenant=acme").status_code == 400

    def test_repeated_param_is_400(self, store):
        client = TestClient(build_app(store, TenantMiddlewareConfig(strategy="query")))
        assert client.get("/whoami?tenant=acme&tenant=trialco").status_code == 400


class TestJwtStrategy:
    def test_resolves_claim_from_authenticated_user(self, store):
        client = TestClient(build_app(store, TenantMiddlewareConfig(strategy="jwt")))
        token = make_token("u-viewer", tenant_id="acme")
        response = client.get("/whoami", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["role"] == "viewer"

    def test_custom_claim(self, store):
        config = TenantMiddlewareConfig(strategy="jwt", jwt_claim="org")
        client = TestClient(build_app(store, config))
        token = make_token("u-admin", org="acme")
        response = client.get("/whoami", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

    def test_unauthenticated_is_400(self, store):
        client = TestClient(build_app(store, TenantMiddlewareConfig(strategy="jwt")))
        assert client.get("/whoami").status_code == 400

    def test_numeric_claim(self, store):
        store.tenants["42"] = Tenant(id="42", name="Answer", slug="answer", status="active")
        client = TestClient(build_app(store, TenantMiddlewareConfig(strategy="jwt")))
        token = make_token("u-admin", tenant_id=42)
        response = client.get("/whoami", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["tenant_id"] == "42"
        assert store.tenant_lookups == ["42"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "claim,expected",
        [(42, "42"), ("acme", "acme"), (0, None), ("", None), (True, None), ({"id": 1}, None)],
    )
    async def test_claim_values(self, claim, expected):
        request = make_request(user={"id": "u1", "tenant_id": claim})
        assert await resolve_tenant_id(request, TenantMiddlewareConfig(strategy="jwt")) == expected


class TestCustomStrategy:
    def test_async_resolver(self, store):
        async def resolver(request):
            return request.headers.get("x-workspace")

        config = TenantMiddlewareConfig(strategy="custom", custom_resolver=resolver)
        client = TestClient(build_app(store, config))
        assert client.get("/whoami", headers={"x-workspace": "acme"}).status_code == 200
        assert client.get("/whoami").status_code == 400

    def test_sync_resolver(self, store):
        config = TenantMiddlewareConfig(strategy="custom", custom_resolver=lambda request: "trialco")
        client = TestClient(build_app(store, config))
        assert client.get("/whoami").json()["tenant_id"] == "t-trial"

    def test_non_string_resolver_result(self, store):
        store.tenants["7"] = Tenant(id="7", name="Seven", slug="seven", status="active")
        config = TenantMiddlewareConfig(strategy="custom", custom_resolver=lambda request: 7)
        client = TestClient(build_app(store, config))
        assert client.get("/whoami").json()["tenant_id"] == "7"


# =============================================================================
# Fetch, status gate and membership
# =============================================================================


class TestTenantGate:
    def test_unknown_tenant_is_404(self, client):
        response = client.get("/whoami", headers={"X-Tenant-ID": "nobody"})
        assert response.status_code == 404
        assert response.json() == {"error": "Tenant not found"}

    def test_suspended_tenant_is_403(self, client):
        response = client.get("/whoami", headers={"X-Tenant-ID": "frozen"})
        assert response.status_code == 403
        assert response.json() == {
            "error": "Tenant access denied",
            "reason": "Tenant status: suspended",
        }

    def test_trial_tenant_allowed(self, client):
        response = client.get("/whoami", headers={"X-Tenant-ID": "trialco"})
        assert response.status_code == 200

    def test_custom_allowed_statuses(self, store):
        config = TenantMiddlewareConfig(allowed_statuses=("active",))
        client = TestClient(build_app(store, config))
        assert client.get("/whoami", headers={"X-Tenant-ID": "trialco"}).status_code == 403

    def test_store_mapping_records(self, store):
        store.tenants["plain"] = {"id": "t-plain", "name": "Plain", "slug": "plain", "status": "active"}
        client = TestClient(build_app(store))
        assert client.get("/whoami", headers={"X-Tenant-ID": "plain"}).json()["tenant_id"] == "t-plain"

    def test_lookup_errors_propagate(self, store):
        async def broken(id_or_slug):
            raise RuntimeError("database unavailable")

        app = FastAPI()
        app.add_middleware(TenantMiddleware, get_tenant=broken, get_member=store.get_member)
        client = TestClient(app)
        with pytest.raises(RuntimeError, match="database unavailable"):
            client.get("/", headers={"X-Tenant-ID": "acme"})


class TestMembership:
    def test_anonymous_request_has_no_role(self, client):
        body = client.get("/whoami", headers={"X-Tenant-ID": "acme"}).json()
        assert body["role"] is None
        assert body["user_id"] is None
        assert body["can_read_reports"] is False

    def test_member_role_and_permissions(self, client):
        token = make_token("u-viewer")
        body = client.get(
            "/whoami", headers={"X-Tenant-ID": "acme", "Authorization": f"Bearer {token}"}
        ).json()
        assert body["role"] == "viewer"
        assert body["user_id"] == "u-viewer"
        assert body["can_read_reports"] is True

    def test_authenticated_non_member(self, client):
        token = make_token("u-stranger")
        body = client.get(
            "/whoami", headers={"X-Tenant-ID": "acme", "Authorization": f"Bearer {token}"}
        ).json()
        assert body["role"] is None

    def test_invalid_token_treated_as_anonymous(self, client):
        body = client.get(
            "/whoami", headers={"X-Tenant-ID": "acme", "Authorization": "Bearer not-a-jwt"}
        ).json()
        assert body["role"] is None


class TestResolvedHook:
    def test_hook_receives_tenant_and_request(self, store):
        calls = []

        async def on_resolved(tenant, request):
            calls.append((tenant.id, request.url.path))

        config = TenantMiddlewareConfig(on_tenant_resolved=on_resolved)
        client = TestClient(build_app(store, config))
        client.get("/whoami", headers={"X-Tenant-ID": "acme"})
        client.get("/whoami", headers={"X-Tenant-ID": "frozen"})

        assert calls == [("t-acme", "/whoami")]


# =============================================================================
# Dependencies
# =============================================================================


class TestDependencies:
    def _headers(self, user_id: str) -> dict[str, str]:
        return {"X-Tenant-ID": "acme", "Authorization": f"Bearer {make_token(user_id)}"}

    def test_role_dependency_allows_admin(self, client):
        response = client.get("/admin", headers=self._headers("u-admin"))
        assert response.status_code == 200
        assert response.json() == {"tenant_id": "t-acme"}

    def test_role_dependency_rejects_viewer(self, client):
        response = client.get("/admin", headers=self._headers("u-viewer"))
        assert response.status_code == 403
        assert response.json()["detail"] == "Role admin or higher required"

    def test_permission_dependency(self, client):
        assert client.get("/reports", headers=self._headers("u-viewer")).status_code == 200
        assert client.get("/reports", headers=self._headers("u-admin")).status_code == 200
        assert client.get("/reports", headers={"X-Tenant-ID": "acme"}).status_code == 403

    def test_require_tenant_without_middleware(self):
        app = FastAPI()

        @app.get("/")
        async def index(ctx: TenantContext = Depends(require_tenant)):
            return {}

        @app.get("/soft")
        async def soft(ctx: TenantContext | None = Depends(get_tenant)):
            return {"tenant": ctx}

        client = TestClient(app)
        assert client.get("/").status_code == 401
        assert client.get("/soft").json() == {"tenant": None}


# =============================================================================
# create_rpc_tenant_context
# =============================================================================


def make_request(headers: dict[str, str] | None = None, user=None, path: str = "/rpc") -> Request:
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    scope = {
        "type": "http",
        "method": "POST",
        "path": path,
        "raw_path": path.encode(),
        "query_string": b"",
        "headers": raw_headers,
        "server": ("testserver", 80),
        "scheme": "http",
        "state": {},
    }
    request = Request(scope)
    request.state.user = user
    return request


class TestRpcContext:
    @pytest.mark.asyncio
    async def test_returns_context(self, store):
        request = make_request({"x-tenant-id": "acme"}, user={"id": "u-admin"})
        ctx = await create_rpc_tenant_context(request, store.get_tenant, store.get_member)
        assert ctx.tenant_id == "t-acme"
        assert ctx.role == "admin"

    @pytest.mark.asyncio
    async def test_user_object_with_id_attribute(self, store):
        class User:
            id = "u-viewer"

        request = make_request({"x-tenant-id": "acme"}, user=User())
        ctx = await create_rpc_tenant_context(request, store.get_tenant, store.get_member)
        assert ctx.role == "viewer"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "headers",
        [{}, {"x-tenant-id": "nobody"}, {"x-tenant-id": "frozen"}],
    )
    async def test_returns_none_on_failure(self, store, headers):
        request = make_request(headers)
        assert await create_rpc_tenant_context(request, store.get_tenant, store.get_member) is None

    @pytest.mark.asyncio
    async def test_uses_config(self, store):
        request = make_request(path="/t/trialco/rpc")
        config = TenantMiddlewareConfig(strategy="path")
        ctx = await create_rpc_tenant_context(request, store.get_tenant, store.get_member, config)
        assert ctx.tenant_id == "t-trial"
        assert get_tenant_context() is None
