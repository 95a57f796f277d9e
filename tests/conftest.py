"""Pytest configuration and fixtures for the authorization engine.

Unit tests run against the in-memory repositories in tests.fakes. HTTP
tests build the app with create_app() and override the composition-root
dependencies so no database is needed.
"""

import os

import pytest
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("TELEMETRY_ENABLED", "false")

from authz.api.v1 import dependencies  # noqa: E402
from authz.application.services import AuthorizationService, PermissionResolver  # noqa: E402
from authz.core.config import get_settings  # noqa: E402
from authz.infrastructure.cache.memory_cache import MemoryCache  # noqa: E402
from authz.main import create_app  # noqa: E402
from tests.fakes import NOW, InMemoryAuditLog, Store  # noqa: E402


@pytest.fixture
def store() -> Store:
    return Store()


@pytest.fixture
def resolver(store: Store) -> PermissionResolver:
    return PermissionResolver(
        permissions_repo=store.permissions,
        groups_repo=store.groups,
        group_permissions_repo=store.group_permissions,
        user_groups_repo=store.user_groups,
        direct_grants_repo=store.direct_grants,
    )


@pytest.fixture
def audit_log() -> InMemoryAuditLog:
    return InMemoryAuditLog()


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache(max_entries=100)


@pytest.fixture
def auth_service(
    resolver: PermissionResolver, memory_cache: MemoryCache, audit_log: InMemoryAuditLog
) -> AuthorizationService:
    return AuthorizationService(
        permission_resolver=resolver,
        cache=memory_cache,
        cache_ttl=300,
        audit_log=audit_log,
        clock=lambda: NOW,
    )


@pytest.fixture
async def client(auth_service: AuthorizationService):
    """Async HTTP client against a fresh app wired to the in-memory store."""
    get_settings.cache_clear()
    app = create_app()

    app.dependency_overrides[dependencies.get_authorization_service] = lambda: auth_service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def headers() -> dict[str, str]:
    """Tenant and caller headers for tenant-a / user-1."""
    return {"X-Tenant-ID": "tenant-a", "X-User-ID": "user-1"}
