"""Tests for PermissionGroupService: lifecycle, assignments, ownership and invalidation."""

from datetime import timedelta

import pytest

from authz.application.dtos.provisioning import GroupCreate, GroupUpdate, PermissionAssignmentInput
from authz.application.services import PermissionGroupService
from authz.domain.enums import PermissionEffect
from authz.domain.exceptions import (
    CyclicGroupHierarchyException,
    DuplicateAssignmentException,
    ForbiddenOperationException,
    ResourceNotFoundException,
    ValidationException,
)
from tests.fakes import NOW, OTHER_TENANT, TENANT, USER, RecordingInvalidator, Store


@pytest.fixture
def invalidator() -> RecordingInvalidator:
    return RecordingInvalidator()


@pytest.fixture
def service(store: Store, invalidator: RecordingInvalidator) -> PermissionGroupService:
    return PermissionGroupService(
        groups_repo=store.groups,
        group_permissions_repo=store.group_permissions,
        user_groups_repo=store.user_groups,
        permissions_repo=store.permissions,
        invalidator=invalidator,
        clock=lambda: NOW,
    )


async def test_create_group_slugifies_name(service: PermissionGroupService) -> None:
    group = await service.create_group(GroupCreate(name="Billing Team", tenant_id=TENANT, priority=50))
    assert group.slug == "billing-team"
    assert group.priority == 50
    assert group.tenant_id == TENANT


async def test_create_group_rejects_duplicate_slug(service: PermissionGroupService) -> None:
    await service.create_group(GroupCreate(name="Billing", tenant_id=TENANT))
    with pytest.raises(DuplicateAssignmentException):
        await service.create_group(GroupCreate(name="billing", tenant_id=TENANT))


async def test_same_slug_allowed_in_other_tenant(service: PermissionGroupService) -> None:
    await service.create_group(GroupCreate(name="Billing", tenant_id=TENANT))
    group = await service.create_group(GroupCreate(name="Billing", tenant_id=OTHER_TENANT))
    assert group.tenant_id == OTHER_TENANT


async def test_create_group_with_foreign_parent_rejected(store: Store, service: PermissionGroupService) -> None:
    store.add_group("foreign", tenant_id=OTHER_TENANT)
    with pytest.raises(ValidationException):
        await service.create_group(GroupCreate(name="Child", tenant_id=TENANT, parent_id="foreign"))


async def test_update_group_detects_cycle(store: Store, service: PermissionGroupService) -> None:
    store.add_group("root")
    store.add_group("mid", parent_id="root")
    store.add_group("leaf", parent_id="mid")
    with pytest.raises(CyclicGroupHierarchyException):
        await service.update_group("root", GroupUpdate.of(parent_id="leaf"), tenant_id=TENANT)


async def test_update_group_applies_only_set_fields(
    store: Store, service: PermissionGroupService, invalidator: RecordingInvalidator
) -> None:
    store.add_group("ops", priority=3, description="keep me")
    group = await service.update_group("ops", GroupUpdate.of(priority=7), tenant_id=TENANT)
    assert group.priority == 7
    assert group.description == "keep me"
    assert invalidator.calls == [("tenant", TENANT)]


async def test_system_group_change_invalidates_everything(
    store: Store, service: PermissionGroupService, invalidator: RecordingInvalidator
) -> None:
    store.add_group("everyone", tenant_id=None)
    await service.update_group("everyone", GroupUpdate.of(is_active=False))
    assert invalidator.calls == [("all",)]


async def test_tenant_cannot_edit_foreign_group(store: Store, service: PermissionGroupService) -> None:
    store.add_group("ops", tenant_id=OTHER_TENANT)
    permission = store.add_permission("stock.products.read")
    with pytest.raises(ForbiddenOperationException):
        await service.update_group("ops", GroupUpdate.of(priority=1), tenant_id=TENANT)
    with pytest.raises(ForbiddenOperationException):
        await service.add_permission("ops", permission.id, tenant_id=TENANT)
    with pytest.raises(ForbiddenOperationException):
        await service.assign_user("ops", USER, tenant_id=TENANT)


async def test_tenant_cannot_edit_system_group(store: Store, service: PermissionGroupService) -> None:
    store.add_group("everyone", tenant_id=None)
    with pytest.raises(ForbiddenOperationException):
        await service.delete_group("everyone", tenant_id=TENANT)


async def test_delete_group_with_members_requires_force(store: Store, service: PermissionGroupService) -> None:
    store.add_group("ops")
    store.add_member("ops")
    with pytest.raises(ValidationException):
        await service.delete_group("ops", tenant_id=TENANT)
    await service.delete_group("ops", tenant_id=TENANT, force=True)
    assert store.groups.rows["ops"].is_deleted
    assert (USER, "ops") in store.user_groups.rows


async def test_delete_group_with_children_rejected(store: Store, service: PermissionGroupService) -> None:
    store.add_group("parent")
    store.add_group("child", parent_id="parent")
    with pytest.raises(ValidationException):
        await service.delete_group("parent", force=True)


async def test_delete_system_group_rejected(store: Store, service: PermissionGroupService) -> None:
    store.add_group("admin", is_system=True)
    with pytest.raises(ForbiddenOperationException):
        await service.delete_group("admin")


async def test_add_permission_replaces_existing(store: Store, service: PermissionGroupService) -> None:
    store.add_group("ops")
    permission = store.add_permission("stock.products.update")
    await service.add_permission("ops", permission.id, "allow")
    await service.add_permission("ops", permission.id, "DENY", {"max_amount": 5})

    assignment = store.group_permissions.rows[("ops", permission.id)]
    assert assignment.effect is PermissionEffect.DENY
    assert assignment.conditions == {"max_amount": 5}


async def test_add_permission_rejects_bad_input(store: Store, service: PermissionGroupService) -> None:
    store.add_group("ops")
    store.add_group("off", is_active=False)
    permission = store.add_permission("stock.products.update")
    with pytest.raises(ValidationException):
        await service.add_permission("ops", permission.id, "maybe")
    with pytest.raises(ValidationException):
        await service.add_permission("ops", permission.id, conditions={"version": 1})
    with pytest.raises(ValidationException):
        await service.add_permission("off", permission.id)
    with pytest.raises(ResourceNotFoundException):
        await service.add_permission("ops", "missing")


async def test_bulk_add_collects_added_skipped_and_errors(
    store: Store, service: PermissionGroupService, invalidator: RecordingInvalidator
) -> None:
    store.add_group("ops")
    present = store.add_permission("stock.products.read")
    store.add_permission("stock.products.update")
    store.attach("ops", present)

    result = await service.bulk_add_permissions(
        "ops",
        [
            PermissionAssignmentInput("stock.products.read"),
            PermissionAssignmentInput("stock.products.update", PermissionEffect.DENY),
            PermissionAssignmentInput("stock.products.delete"),
            PermissionAssignmentInput("not a code"),
        ],
        tenant_id=TENANT,
    )
    assert result.added == ["stock.products.update"]
    assert result.skipped == ["stock.products.read"]
    assert [e.code for e in result.errors] == ["stock.products.delete", "not a code"]
    assert invalidator.calls == [("tenant", TENANT)]


async def test_remove_permission(store: Store, service: PermissionGroupService) -> None:
    store.add_group("ops")
    permission = store.add_permission("stock.products.read")
    store.attach("ops", permission)
    assert await service.remove_permission("ops", permission.id) is True
    assert await service.remove_permission("ops", permission.id) is False


async def test_assign_user_invalidates_only_member(
    store: Store, service: PermissionGroupService, invalidator: RecordingInvalidator
) -> None:
    store.add_group("ops")
    membership = await service.assign_user(
        "ops", USER, granted_by="admin-1", expires_at=NOW + timedelta(days=1)
    )
    assert membership.granted_by == "admin-1"
    assert invalidator.calls == [("user", TENANT, USER)]


async def test_assign_user_rejects_past_expiry(store: Store, service: PermissionGroupService) -> None:
    store.add_group("ops")
    with pytest.raises(ValidationException):
        await service.assign_user("ops", USER, expires_at=NOW)


async def test_remove_user(store: Store, service: PermissionGroupService) -> None:
    store.add_group("ops")
    store.add_member("ops")
    assert await service.remove_user("ops", USER, tenant_id=TENANT) is True
    assert await service.remove_user("ops", USER, tenant_id=TENANT) is False


async def test_unknown_group_is_not_found(service: PermissionGroupService) -> None:
    with pytest.raises(ResourceNotFoundException):
        await service.remove_user("missing", USER)
