"""Tenant bootstrap: default Admin and User groups for a new tenant."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from authz.application.dtos.provisioning import TenantBootstrapResult
from authz.application.interfaces.repositories import (
    IGroupPermissionAssignmentsRepository,
    IPermissionGroupsRepository,
    IPermissionsRepository,
    IUserGroupAssignmentsRepository,
)
from authz.application.interfaces.services import IPermissionCacheInvalidator
from authz.core.constants import (
    ADMIN_GROUP_COLOR,
    ADMIN_GROUP_NAME,
    ADMIN_GROUP_PRIORITY,
    ADMIN_GROUP_SLUG,
    DEFAULT_USER_PERMISSIONS,
    USER_GROUP_COLOR,
    USER_GROUP_NAME,
    USER_GROUP_PRIORITY,
    USER_GROUP_SLUG,
)
from authz.domain.entities import (
    GroupPermissionAssignment,
    Permission,
    PermissionGroup,
    UserGroupAssignment,
)
from authz.domain.enums import PermissionEffect
from authz.domain.exceptions import ResourceNotFoundException, ValidationException
from authz.domain.value_objects import PermissionCode
from authz.shared.utils.datetime import utc_now
from authz.shared.utils.generators import generate_cuid, tenant_prefix

logger = logging.getLogger(__name__)


def admin_group_slug(tenant_id: str) -> str:
    return f"{ADMIN_GROUP_SLUG}-{tenant_prefix(tenant_id)}"


def user_group_slug(tenant_id: str) -> str:
    return f"{USER_GROUP_SLUG}-{tenant_prefix(tenant_id)}"


class TenantBootstrapService:
    """Creates a tenant's default groups and its first administrator."""

    def __init__(
        self,
        groups_repo: IPermissionGroupsRepository,
        group_permissions_repo: IGroupPermissionAssignmentsRepository,
        user_groups_repo: IUserGroupAssignmentsRepository,
        permissions_repo: IPermissionsRepository,
        invalidator: IPermissionCacheInvalidator | None = None,
        clock: Callable[[], datetime] = utc_now,
        default_user_permissions: Sequence[str] = DEFAULT_USER_PERMISSIONS,
    ) -> None:
        self._groups_repo = groups_repo
        self._group_permissions_repo = group_permissions_repo
        self._user_groups_repo = user_groups_repo
        self._permissions_repo = permissions_repo
        self._invalidator = invalidator
        self._clock = clock
        self._default_user_permissions = tuple(default_user_permissions)

    async def bootstrap_tenant(self, tenant_id: str) -> TenantBootstrapResult:
        """Create Admin (every catalog permission) and User (defaults) groups.

        Idempotent: groups already present under their slugs are left as
        they are and reported with created=False.
        """
        if not tenant_id or not tenant_id.strip():
            raise ValidationException("tenant_id is required", field="tenant_id")

        admin = await self._groups_repo.find_by_slug_and_tenant(admin_group_slug(tenant_id), tenant_id)
        user = await self._groups_repo.find_by_slug_and_tenant(user_group_slug(tenant_id), tenant_id)
        if admin is not None and user is not None:
            return TenantBootstrapResult(tenant_id, admin.id, user.id, created=False)

        if admin is None:
            admin = await self._create_group(
                tenant_id,
                name=ADMIN_GROUP_NAME,
                slug=admin_group_slug(tenant_id),
                description="Full access to every permission in the catalog.",
                color=ADMIN_GROUP_COLOR,
                priority=ADMIN_GROUP_PRIORITY,
            )
            await self._grant_all(admin, await self._permissions_repo.list_all())
        if user is None:
            user = await self._create_group(
                tenant_id,
                name=USER_GROUP_NAME,
                slug=user_group_slug(tenant_id),
                description="Basic access to the user's own data.",
                color=USER_GROUP_COLOR,
                priority=USER_GROUP_PRIORITY,
            )
            codes = [PermissionCode.create(c) for c in self._default_user_permissions]
            await self._grant_all(user, await self._permissions_repo.find_many_by_codes(codes))

        if self._invalidator is not None:
            await self._invalidator.invalidate_tenant(tenant_id)
        logger.info("Bootstrapped permission groups for tenant %s", tenant_id)
        return TenantBootstrapResult(tenant_id, admin.id, user.id, created=True)

    async def assign_admin(
        self, tenant_id: str, user_id: str, granted_by: str | None = None
    ) -> UserGroupAssignment:
        """Make user_id a member of the tenant's Admin group.

        Raises:
            ResourceNotFoundException: If the tenant has not been bootstrapped.
        """
        slug = admin_group_slug(tenant_id)
        admin = await self._groups_repo.find_by_slug_and_tenant(slug, tenant_id)
        if admin is None:
            raise ResourceNotFoundException("permission_group", slug)
        saved = await self._user_groups_repo.upsert(
            UserGroupAssignment(
                id=generate_cuid(),
                user_id=user_id,
                group_id=admin.id,
                granted_by=granted_by,
                assigned_at=self._clock(),
            )
        )
        if self._invalidator is not None:
            await self._invalidator.invalidate_user(tenant_id, user_id)
        logger.info("User %s assigned to admin group of tenant %s", user_id, tenant_id)
        return saved

    async def _create_group(
        self,
        tenant_id: str,
        *,
        name: str,
        slug: str,
        description: str,
        color: str,
        priority: int,
    ) -> PermissionGroup:
        return await self._groups_repo.save(
            PermissionGroup(
                id=generate_cuid(),
                name=name,
                slug=slug,
                tenant_id=tenant_id,
                description=description,
                color=color,
                priority=priority,
            )
        )

    async def _grant_all(self, group: PermissionGroup, permissions: Sequence[Permission]) -> None:
        now = self._clock()
        for permission in permissions:
            if permission.is_deleted:
                continue
            await self._group_permissions_repo.upsert(
                GroupPermissionAssignment(
                    id=generate_cuid(),
                    group_id=group.id,
                    permission_id=permission.id,
                    effect=PermissionEffect.ALLOW,
                    created_at=now,
                )
            )
