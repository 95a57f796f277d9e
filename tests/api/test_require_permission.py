"""Tests for the require_permission route dependency."""

from typing import Annotated

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from authz.api.v1.dependencies import get_authorization_service, require_permission
from authz.application.dtos.decision import Decision
from authz.application.services import AuthorizationService
from authz.core.exception_handlers import register_exception_handlers
from tests.fakes import Store


@pytest.fixture
async def protected_client(auth_service: AuthorizationService):
    """App with one route guarded by finance.invoices.approve."""
    app = FastAPI()
    register_exception_handlers(app)

    @app.post("/invoices/{invoice_id}/approve")
    async def approve(
        invoice_id: str,
        decision: Annotated[Decision, Depends(require_permission("finance.invoices.approve"))],
    ) -> dict[str, str]:
        return {"invoice_id": invoice_id, "matched_via": decision.matched_via.value}

    app.dependency_overrides[get_authorization_service] = lambda: auth_service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def test_denied_caller_gets_403(protected_client: AsyncClient, headers: dict[str, str]) -> None:
    response = await protected_client.post("/invoices/inv-1/approve", headers=headers)
    assert response.status_code == 403
    data = response.json()
    assert data["error"] == "PERMISSION_DENIED"
    assert data["details"]["permission_code"] == "finance.invoices.approve"


async def test_allowed_caller_reaches_route(
    protected_client: AsyncClient, store: Store, headers: dict[str, str]
) -> None:
    store.add_group("approvers", priority=10)
    store.add_member("approvers")
    store.attach("approvers", store.add_permission("finance.invoices.*"))
    response = await protected_client.post("/invoices/inv-1/approve", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"invoice_id": "inv-1", "matched_via": "group"}


async def test_path_params_reach_conditions(
    protected_client: AsyncClient, store: Store, headers: dict[str, str]
) -> None:
    store.grant(
        store.add_permission("finance.invoices.approve"),
        conditions={"version": 1, "all": [{"attr": "path_params.invoice_id", "op": "eq", "value": "inv-1"}]},
    )
    assert (await protected_client.post("/invoices/inv-1/approve", headers=headers)).status_code == 200
    assert (await protected_client.post("/invoices/inv-2/approve", headers=headers)).status_code == 403


async def test_missing_user_header_is_400(protected_client: AsyncClient) -> None:
    response = await protected_client.post(
        "/invoices/inv-1/approve", headers={"X-Tenant-ID": "tenant-a"}
    )
    assert response.status_code == 400
