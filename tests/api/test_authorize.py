"""HTTP tests for POST /api/v1/authorize and GET /api/v1/authorize/effective."""

from httpx import AsyncClient

from authz.application.services import PermissionResolver
from authz.domain.exceptions import RepositoryException
from tests.fakes import Store


async def test_authorize_single_code_allowed(
    client: AsyncClient, store: Store, headers: dict[str, str]
) -> None:
    store.grant(store.add_permission("finance.invoices.read"))
    response = await client.post(
        "/api/v1/authorize", json={"permission_code": "finance.invoices.read"}, headers=headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["allowed"] is True
    assert data["matched_via"] == "direct"


async def test_authorize_deny_is_200(client: AsyncClient, headers: dict[str, str]) -> None:
    response = await client.post(
        "/api/v1/authorize", json={"permission_code": "finance.invoices.delete"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json() == {
        "allowed": False,
        "matched_via": "default",
        "reason": "No grant or group assignment matches finance.invoices.delete",
        "matched_code": None,
        "group_id": None,
    }


async def test_authorize_group_priority(
    client: AsyncClient, store: Store, headers: dict[str, str]
) -> None:
    store.add_group("admin", priority=100)
    store.add_group("billing", priority=50)
    store.add_member("admin")
    store.add_member("billing")
    store.attach("admin", store.add_permission("*.*.*"))
    store.attach("billing", store.add_permission("finance.invoices.delete"), "deny")

    response = await client.post(
        "/api/v1/authorize", json={"permission_code": "finance.invoices.delete"}, headers=headers
    )
    data = response.json()
    assert data["allowed"] is True
    assert data["group_id"] == "admin"


async def test_authorize_with_context(
    client: AsyncClient, store: Store, headers: dict[str, str]
) -> None:
    store.grant(store.add_permission("finance.payments.approve"), conditions={"max_amount": 100})
    ok = await client.post(
        "/api/v1/authorize",
        json={"permission_code": "finance.payments.approve", "context": {"amount": 50}},
        headers=headers,
    )
    too_much = await client.post(
        "/api/v1/authorize",
        json={"permission_code": "finance.payments.approve", "context": {"amount": 500}},
        headers=headers,
    )
    assert ok.json()["allowed"] is True
    assert too_much.json()["allowed"] is False


async def test_authorize_batch_modes(
    client: AsyncClient, store: Store, headers: dict[str, str]
) -> None:
    store.grant(store.add_permission("finance.invoices.read"))
    codes = ["finance.invoices.read", "finance.invoices.write"]

    any_response = await client.post(
        "/api/v1/authorize", json={"permission_codes": codes, "mode": "any"}, headers=headers
    )
    all_response = await client.post(
        "/api/v1/authorize", json={"permission_codes": codes, "mode": "all"}, headers=headers
    )
    assert any_response.json()["allowed"] is True
    assert all_response.json()["allowed"] is False


async def test_malformed_code_is_400(client: AsyncClient, headers: dict[str, str]) -> None:
    response = await client.post(
        "/api/v1/authorize", json={"permission_code": "finance..read"}, headers=headers
    )
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_body_needs_exactly_one_code_source(client: AsyncClient, headers: dict[str, str]) -> None:
    response = await client.post(
        "/api/v1/authorize",
        json={"permission_code": "a.b.c", "permission_codes": ["a.b.c"]},
        headers=headers,
    )
    assert response.status_code == 422


async def test_missing_tenant_header_is_400(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/authorize",
        json={"permission_code": "a.b.c"},
        headers={"X-User-ID": "user-1"},
    )
    assert response.status_code == 400
    assert "X-Tenant-ID" in response.json()["message"]


async def test_invalid_header_value_is_400(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/authorize",
        json={"permission_code": "a.b.c"},
        headers={"X-Tenant-ID": "tenant:*", "X-User-ID": "user-1"},
    )
    assert response.status_code == 400


async def test_storage_failure_is_503(
    client: AsyncClient, resolver: PermissionResolver, headers: dict[str, str]
) -> None:
    async def broken(*args, **kwargs):
        raise RepositoryException("user_groups.find_active_by_user")

    resolver._user_groups_repo.find_active_by_user = broken  # type: ignore[method-assign]
    response = await client.post(
        "/api/v1/authorize", json={"permission_code": "a.b.c"}, headers=headers
    )
    assert response.status_code == 503
    assert response.json()["error"] == "REPOSITORY_ERROR"


async def test_effective_permissions(
    client: AsyncClient, store: Store, headers: dict[str, str]
) -> None:
    store.grant(store.add_permission("stock.products.read"))
    store.grant(store.add_permission("finance.invoices.read"))
    response = await client.get("/api/v1/authorize/effective", headers=headers)
    assert response.status_code == 200
    assert response.json() == {
        "tenant_id": "tenant-a",
        "user_id": "user-1",
        "permission_codes": ["finance.invoices.read", "stock.products.read"],
    }


async def test_subject_ids_with_separators_get_a_decision(
    client: AsyncClient, store: Store, headers: dict[str, str]
) -> None:
    store.grant(store.add_permission("finance.invoices.read"), user_id="auth0:abc")
    body = {"permission_code": "finance.invoices.read", "user_id": "auth0:abc"}
    response = await client.post("/api/v1/authorize", json=body, headers=headers)
    assert response.status_code == 200
    assert response.json()["allowed"] is True

    body["user_id"] = "urn:user:42"
    response = await client.post("/api/v1/authorize", json=body, headers=headers)
    assert response.status_code == 200
    assert response.json()["matched_via"] == "default"
