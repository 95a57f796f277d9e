"""Permission group service: group lifecycle, group permissions and memberships.

Every mutation drops the cached snapshots it can affect: a tenant group's
changes invalidate that tenant, a system-wide group's changes invalidate
every tenant, and membership changes invalidate only the member.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from authz.application.dtos.provisioning import (
    BulkAssignmentError,
    BulkAssignmentResult,
    GroupCreate,
    GroupUpdate,
    PermissionAssignmentInput,
)
from authz.application.interfaces.repositories import (
    IGroupPermissionAssignmentsRepository,
    IPermissionGroupsRepository,
    IPermissionsRepository,
    IUserGroupAssignmentsRepository,
)
from authz.application.interfaces.services import IPermissionCacheInvalidator
from authz.application.services.common import (
    ensure_future_expiry,
    parse_effect,
    validate_conditions,
)
from authz.domain.entities import (
    GroupPermissionAssignment,
    PermissionGroup,
    UserGroupAssignment,
    slugify,
)
from authz.domain.enums import PermissionEffect
from authz.domain.exceptions import (
    CyclicGroupHierarchyException,
    DuplicateAssignmentException,
    ForbiddenOperationException,
    ResourceNotFoundException,
    ValidationException,
)
from authz.domain.value_objects import PermissionCode
from authz.shared.utils.datetime import utc_now
from authz.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset({"name", "description", "color", "priority", "parent_id", "is_active"})


class PermissionGroupService:
    """Administrative mutations on groups and their assignments."""

    def __init__(
        self,
        groups_repo: IPermissionGroupsRepository,
        group_permissions_repo: IGroupPermissionAssignmentsRepository,
        user_groups_repo: IUserGroupAssignmentsRepository,
        permissions_repo: IPermissionsRepository,
        invalidator: IPermissionCacheInvalidator | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._groups_repo = groups_repo
        self._group_permissions_repo = group_permissions_repo
        self._user_groups_repo = user_groups_repo
        self._permissions_repo = permissions_repo
        self._invalidator = invalidator
        self._clock = clock

    async def create_group(self, data: GroupCreate) -> PermissionGroup:
        """Create a group. Slug defaults to slugify(name) and is unique per tenant.

        Raises:
            DuplicateAssignmentException: If the slug is taken in the tenant.
            ResourceNotFoundException: If parent_id does not exist.
            ValidationException: If the parent is inactive or not visible in the tenant.
        """
        slug = data.slug or slugify(data.name)
        await self._ensure_slug_free(slug, data.tenant_id)
        if data.parent_id is not None:
            await self._get_valid_parent(data.parent_id, data.tenant_id)
        group = PermissionGroup(
            id=generate_cuid(),
            name=data.name.strip(),
            slug=slug,
            tenant_id=data.tenant_id,
            description=data.description,
            color=data.color,
            priority=data.priority,
            parent_id=data.parent_id,
            is_system=data.is_system,
        )
        saved = await self._groups_repo.save(group)
        logger.info("Created permission group %s (%s) in tenant %s", saved.id, saved.slug, saved.tenant_id)
        return saved

    async def update_group(
        self, group_id: str, changes: GroupUpdate, tenant_id: str | None = None
    ) -> PermissionGroup:
        """Apply a partial update.

        When tenant_id is given the group must belong to it; system-wide
        groups cannot be edited by tenants.

        Raises:
            ResourceNotFoundException: If the group or new parent does not exist.
            ForbiddenOperationException: If the tenant does not own the group.
            DuplicateAssignmentException: If the new name's slug is taken.
            CyclicGroupHierarchyException: If the new parent is the group or a descendant.
        """
        unknown = changes.fields_set - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationException(f"Unknown group fields: {sorted(unknown)}", field="fields")
        group = await self._get_group(group_id)
        self._ensure_owned(group, tenant_id)

        if "name" in changes.fields_set and changes.name and changes.name.strip() != group.name:
            new_slug = slugify(changes.name)
            await self._ensure_slug_free(new_slug, group.tenant_id, exclude_id=group.id)
            group.rename(changes.name)
        if "parent_id" in changes.fields_set and changes.parent_id != group.parent_id:
            if changes.parent_id is not None:
                await self._ensure_no_cycle(group, changes.parent_id)
            group.set_parent(changes.parent_id)
        if "description" in changes.fields_set:
            group.description = changes.description
        if "color" in changes.fields_set:
            group.color = changes.color
        if "priority" in changes.fields_set and changes.priority is not None:
            group.priority = changes.priority
        if "is_active" in changes.fields_set and changes.is_active is not None:
            if changes.is_active:
                group.activate()
            else:
                group.deactivate()
        group.updated_at = self._clock()

        saved = await self._groups_repo.save(group)
        await self._invalidate_group(saved)
        return saved

    async def delete_group(
        self, group_id: str, tenant_id: str | None = None, force: bool = False
    ) -> None:
        """Soft-delete a group. Membership rows are kept for audit.

        Raises:
            ForbiddenOperationException: If the group is a system group or not owned.
            ValidationException: If the group has children, or members and force is False.
        """
        group = await self._get_group(group_id)
        self._ensure_owned(group, tenant_id)
        if await self._groups_repo.find_children(group.id):
            raise ValidationException(
                "Cannot delete a group that has child groups", field="group_id"
            )
        if not force:
            members = await self._user_groups_repo.find_by_group(group.id)
            now = self._clock()
            if any(not m.is_expired(now) for m in members):
                raise ValidationException(
                    "Group is assigned to users; use force to delete it anyway",
                    field="group_id",
                )
        group.soft_delete(self._clock())
        await self._groups_repo.save(group)
        await self._invalidate_group(group)
        logger.info("Deleted permission group %s", group.id)

    async def add_permission(
        self,
        group_id: str,
        permission_id: str,
        effect: PermissionEffect | str = PermissionEffect.ALLOW,
        conditions: dict[str, Any] | None = None,
        *,
        tenant_id: str | None = None,
    ) -> GroupPermissionAssignment:
        """Attach a permission to a group; an existing row for the pair is replaced.

        Raises:
            ResourceNotFoundException: If the group or permission does not exist.
            ValidationException: If the group is inactive or conditions are invalid.
        """
        group = await self._get_active_group(group_id)
        self._ensure_owned(group, tenant_id)
        permission = await self._permissions_repo.get_by_id(permission_id)
        if permission is None or permission.is_deleted:
            raise ResourceNotFoundException("permission", permission_id)
        assignment = GroupPermissionAssignment(
            id=generate_cuid(),
            group_id=group.id,
            permission_id=permission.id,
            effect=parse_effect(effect),
            conditions=validate_conditions(conditions),
            created_at=self._clock(),
        )
        saved = await self._group_permissions_repo.upsert(assignment)
        await self._invalidate_group(group)
        return saved

    async def bulk_add_permissions(
        self,
        group_id: str,
        items: Sequence[PermissionAssignmentInput],
        *,
        tenant_id: str | None = None,
    ) -> BulkAssignmentResult:
        """Attach many permissions by code. Codes already in the group are skipped.

        Per-item failures (bad code, unknown permission, bad conditions) are
        collected in errors and do not stop the batch.
        """
        group = await self._get_active_group(group_id)
        self._ensure_owned(group, tenant_id)
        existing = {a.permission_id for a in await self._group_permissions_repo.find_by_group(group.id)}
        added: list[str] = []
        skipped: list[str] = []
        errors: list[BulkAssignmentError] = []
        now = self._clock()

        for item in items:
            try:
                code = PermissionCode.create(item.permission_code)
                permission = await self._permissions_repo.find_by_code(code)
                if permission is None or permission.is_deleted:
                    errors.append(BulkAssignmentError(item.permission_code, "Permission not found"))
                    continue
                if permission.id in existing:
                    skipped.append(item.permission_code)
                    continue
                await self._group_permissions_repo.upsert(
                    GroupPermissionAssignment(
                        id=generate_cuid(),
                        group_id=group.id,
                        permission_id=permission.id,
                        effect=parse_effect(item.effect),
                        conditions=validate_conditions(item.conditions),
                        created_at=now,
                    )
                )
            except ValidationException as e:
                errors.append(BulkAssignmentError(item.permission_code, e.message))
                continue
            existing.add(permission.id)
            added.append(item.permission_code)

        if added:
            await self._invalidate_group(group)
        return BulkAssignmentResult(added=added, skipped=skipped, errors=errors)

    async def remove_permission(
        self, group_id: str, permission_id: str, *, tenant_id: str | None = None
    ) -> bool:
        """Detach a permission from a group. Returns False when it was not attached."""
        group = await self._get_group(group_id)
        self._ensure_owned(group, tenant_id)
        if await self._permissions_repo.get_by_id(permission_id) is None:
            raise ResourceNotFoundException("permission", permission_id)
        removed = await self._group_permissions_repo.remove(group.id, permission_id)
        if removed:
            await self._invalidate_group(group)
        return removed

    async def assign_user(
        self,
        group_id: str,
        user_id: str,
        granted_by: str | None = None,
        expires_at: datetime | None = None,
        *,
        tenant_id: str | None = None,
    ) -> UserGroupAssignment:
        """Add user to group; re-assigning replaces grantor and expiry.

        Raises:
            ResourceNotFoundException: If the group does not exist.
            ValidationException: If the group is inactive or expires_at is not in the future.
        """
        group = await self._get_active_group(group_id)
        self._ensure_owned(group, tenant_id)
        now = self._clock()
        assignment = UserGroupAssignment(
            id=generate_cuid(),
            user_id=user_id,
            group_id=group.id,
            granted_by=granted_by,
            expires_at=ensure_future_expiry(expires_at, now),
            assigned_at=now,
        )
        saved = await self._user_groups_repo.upsert(assignment)
        await self._invalidate_member(group, user_id)
        return saved

    async def remove_user(
        self, group_id: str, user_id: str, *, tenant_id: str | None = None
    ) -> bool:
        """Remove user from group. Returns False when the user was not a member."""
        group = await self._get_group(group_id)
        self._ensure_owned(group, tenant_id)
        removed = await self._user_groups_repo.remove(user_id, group.id)
        if removed:
            await self._invalidate_member(group, user_id)
        return removed

    async def _get_group(self, group_id: str) -> PermissionGroup:
        group = await self._groups_repo.get_by_id(group_id)
        if group is None or group.is_deleted:
            raise ResourceNotFoundException("permission_group", group_id)
        return group

    async def _get_active_group(self, group_id: str) -> PermissionGroup:
        group = await self._get_group(group_id)
        if not group.is_active:
            raise ValidationException("Group must be active and not deleted", field="group_id")
        return group

    async def _get_valid_parent(self, parent_id: str, tenant_id: str | None) -> PermissionGroup:
        parent = await self._groups_repo.get_by_id(parent_id)
        if parent is None:
            raise ResourceNotFoundException("permission_group", parent_id)
        if not parent.is_active or parent.is_deleted:
            raise ValidationException("Parent group must be active", field="parent_id")
        if parent.tenant_id is not None and parent.tenant_id != tenant_id:
            raise ValidationException(
                "Parent group must belong to the same tenant or be system-wide",
                field="parent_id",
            )
        return parent

    async def _ensure_slug_free(
        self, slug: str, tenant_id: str | None, exclude_id: str | None = None
    ) -> None:
        existing = await self._groups_repo.find_by_slug_and_tenant(slug, tenant_id)
        if existing is not None and existing.id != exclude_id:
            raise DuplicateAssignmentException(
                "A group with this name already exists",
                "group_slug",
                {"slug": slug, "tenant_id": tenant_id},
            )

    async def _ensure_no_cycle(self, group: PermissionGroup, parent_id: str) -> None:
        if parent_id == group.id:
            raise CyclicGroupHierarchyException(group.id, parent_id)
        await self._get_valid_parent(parent_id, group.tenant_id)
        if parent_id in await self._descendant_ids(group.id):
            raise CyclicGroupHierarchyException(group.id, parent_id)

    async def _descendant_ids(self, group_id: str) -> set[str]:
        seen: set[str] = set()
        pending = [group_id]
        while pending:
            current = pending.pop()
            for child in await self._groups_repo.find_children(current):
                if child.id not in seen:
                    seen.add(child.id)
                    pending.append(child.id)
        return seen

    @staticmethod
    def _ensure_owned(group: PermissionGroup, tenant_id: str | None) -> None:
        if tenant_id is None or group.tenant_id == tenant_id:
            return
        if group.tenant_id is None:
            raise ForbiddenOperationException(
                "System groups cannot be edited by tenants", {"group_id": group.id}
            )
        raise ForbiddenOperationException(
            "Permission group does not belong to your tenant",
            {"group_id": group.id, "tenant_id": tenant_id},
        )

    async def _invalidate_group(self, group: PermissionGroup) -> None:
        if self._invalidator is None:
            return
        if group.tenant_id is None:
            await self._invalidator.invalidate_all()
        else:
            await self._invalidator.invalidate_tenant(group.tenant_id)

    async def _invalidate_member(self, group: PermissionGroup, user_id: str) -> None:
        if self._invalidator is None:
            return
        if group.tenant_id is None:
            await self._invalidator.invalidate_user_everywhere(user_id)
        else:
            await self._invalidator.invalidate_user(group.tenant_id, user_id)

