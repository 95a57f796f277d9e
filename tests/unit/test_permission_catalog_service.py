"""Tests for PermissionCatalogService."""

import pytest

from authz.application.services import PermissionCatalogService
from authz.domain.exceptions import (
    ForbiddenOperationException,
    ResourceNotFoundException,
    ValidationException,
)
from tests.fakes import NOW, RecordingInvalidator, Store


@pytest.fixture
def invalidator() -> RecordingInvalidator:
    return RecordingInvalidator()


@pytest.fixture
def service(store: Store, invalidator: RecordingInvalidator) -> PermissionCatalogService:
    return PermissionCatalogService(store.permissions, invalidator)


async def test_list_by_module_groups_and_sorts(store: Store, service: PermissionCatalogService) -> None:
    store.add_permission("stock.products.update")
    store.add_permission("stock.products.read")
    store.add_permission("finance.invoices.read")
    store.add_permission("admin.tenants.create", is_system=True)
    store.add_permission("stock.orders.read").soft_delete(NOW)

    modules = await service.list_by_module()
    assert [m.module for m in modules] == ["admin", "finance", "stock"]
    stock = modules[-1]
    assert [r.resource for r in stock.resources] == ["products"]
    assert [p.action for p in stock.resources[0].permissions] == ["read", "update"]


async def test_list_by_module_can_hide_system(store: Store, service: PermissionCatalogService) -> None:
    store.add_permission("admin.tenants.create", is_system=True)
    store.add_permission("finance.invoices.read")
    modules = await service.list_by_module(include_system=False)
    assert [m.module for m in modules] == ["finance"]


async def test_update_permission_descriptive_fields(store: Store, service: PermissionCatalogService) -> None:
    permission = store.add_permission("finance.invoices.read", description="old")
    updated = await service.update_permission(
        permission.id, name="Read invoices", description=None, metadata={"deprecated": True}
    )
    assert updated.name == "Read invoices"
    assert updated.description is None
    assert updated.is_deprecated is True
    assert updated.code.value == "finance.invoices.read"


async def test_update_permission_blank_name(store: Store, service: PermissionCatalogService) -> None:
    permission = store.add_permission("finance.invoices.read")
    with pytest.raises(ValidationException):
        await service.update_permission(permission.id, name=" ")


async def test_delete_permission_invalidates_all(
    store: Store, service: PermissionCatalogService, invalidator: RecordingInvalidator
) -> None:
    permission = store.add_permission("finance.invoices.read")
    await service.delete_permission(permission.id)
    assert store.permissions.rows[permission.id].is_deleted
    assert invalidator.calls == [("all",)]
    with pytest.raises(ResourceNotFoundException):
        await service.delete_permission(permission.id)


async def test_delete_system_permission_refused(store: Store, service: PermissionCatalogService) -> None:
    permission = store.add_permission("admin.tenants.create", is_system=True)
    with pytest.raises(ForbiddenOperationException):
        await service.delete_permission(permission.id)
