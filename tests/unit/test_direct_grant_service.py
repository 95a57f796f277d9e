"""Tests for DirectGrantService."""

from datetime import timedelta

import pytest

from authz.application.dtos.provisioning import DirectGrantInput
from authz.application.services import DirectGrantService
from authz.domain.enums import PermissionEffect
from authz.domain.exceptions import ResourceNotFoundException, ValidationException
from tests.fakes import NOW, TENANT, USER, RecordingInvalidator, Store


@pytest.fixture
def invalidator() -> RecordingInvalidator:
    return RecordingInvalidator()


@pytest.fixture
def service(store: Store, invalidator: RecordingInvalidator) -> DirectGrantService:
    return DirectGrantService(
        grants_repo=store.direct_grants,
        permissions_repo=store.permissions,
        invalidator=invalidator,
        clock=lambda: NOW,
    )


async def test_grant_in_tenant(store: Store, service: DirectGrantService, invalidator: RecordingInvalidator) -> None:
    permission = store.add_permission("finance.invoices.read")
    grant = await service.grant(DirectGrantInput(USER, permission.id, tenant_id=TENANT, granted_by="admin-1"))
    assert grant.effect is PermissionEffect.ALLOW
    assert grant.granted_by == "admin-1"
    assert invalidator.calls == [("user", TENANT, USER)]


async def test_tenantless_grant_invalidates_everywhere(
    store: Store, service: DirectGrantService, invalidator: RecordingInvalidator
) -> None:
    permission = store.add_permission("finance.invoices.read")
    await service.grant(DirectGrantInput(USER, permission.id, effect="deny"))
    assert invalidator.calls == [("user_everywhere", USER)]


async def test_regrant_replaces_existing_row(store: Store, service: DirectGrantService) -> None:
    permission = store.add_permission("finance.invoices.read")
    await service.grant(DirectGrantInput(USER, permission.id))
    await service.grant(DirectGrantInput(USER, permission.id, effect=PermissionEffect.DENY))
    assert len(store.direct_grants.rows) == 1
    assert store.direct_grants.rows[(USER, permission.id)].effect is PermissionEffect.DENY


async def test_grant_validates_input(store: Store, service: DirectGrantService) -> None:
    permission = store.add_permission("finance.invoices.read")
    with pytest.raises(ResourceNotFoundException):
        await service.grant(DirectGrantInput(USER, "missing"))
    with pytest.raises(ValidationException):
        await service.grant(DirectGrantInput(USER, permission.id, expires_at=NOW - timedelta(seconds=1)))
    with pytest.raises(ValidationException):
        await service.grant(DirectGrantInput(USER, permission.id, conditions={"version": 1, "all": [1]}))
    with pytest.raises(ValidationException):
        await service.grant(DirectGrantInput(USER, permission.id, effect="grant"))


async def test_grant_on_deleted_permission_rejected(store: Store, service: DirectGrantService) -> None:
    permission = store.add_permission("finance.invoices.read")
    permission.soft_delete(NOW)
    with pytest.raises(ResourceNotFoundException):
        await service.grant(DirectGrantInput(USER, permission.id))


async def test_update_grant_clears_expiry(store: Store, service: DirectGrantService) -> None:
    permission = store.add_permission("finance.invoices.read")
    grant = await service.grant(DirectGrantInput(USER, permission.id, expires_at=NOW + timedelta(days=1)))

    updated = await service.update_grant(grant.id, expires_at=None)
    assert updated.expires_at is None
    assert updated.effect is PermissionEffect.ALLOW


async def test_update_unknown_grant(service: DirectGrantService) -> None:
    with pytest.raises(ResourceNotFoundException):
        await service.update_grant("missing", effect="deny")


async def test_revoke(store: Store, service: DirectGrantService, invalidator: RecordingInvalidator) -> None:
    permission = store.add_permission("finance.invoices.read")
    store.grant(permission)
    assert await service.revoke(USER, permission.id) is True
    assert await service.revoke(USER, permission.id) is False
    assert invalidator.calls == [("user_everywhere", USER)]


async def test_revoke_unknown_permission(service: DirectGrantService) -> None:
    with pytest.raises(ResourceNotFoundException):
        await service.revoke(USER, "missing")
