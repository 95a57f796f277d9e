"""Assignment repositories: group->permission, user->group, user->permission.

Upserts are last-writer-wins on the natural key; removals report whether a
row existed.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from authz.domain.entities import (
    GroupPermissionAssignment,
    UserDirectPermissionGrant,
    UserGroupAssignment,
)
from authz.domain.enums import PermissionEffect
from authz.infrastructure.persistence.models.assignments import (
    DirectGrantModel,
    GroupPermissionModel,
    UserGroupModel,
)
from authz.infrastructure.persistence.models.permission_group import PermissionGroupModel
from authz.infrastructure.persistence.repositories.base import BaseRepository
from authz.shared.utils.datetime import ensure_utc


def _group_permission(row: GroupPermissionModel) -> GroupPermissionAssignment:
    return GroupPermissionAssignment(
        id=row.id,
        group_id=row.group_id,
        permission_id=row.permission_id,
        effect=PermissionEffect.parse(row.effect),
        conditions=row.conditions,
        created_at=ensure_utc(row.created_at),
    )


def _user_group(row: UserGroupModel) -> UserGroupAssignment:
    return UserGroupAssignment(
        id=row.id,
        user_id=row.user_id,
        group_id=row.group_id,
        granted_by=row.granted_by,
        expires_at=ensure_utc(row.expires_at),
        assigned_at=ensure_utc(row.assigned_at),
    )


def _direct_grant(row: DirectGrantModel) -> UserDirectPermissionGrant:
    return UserDirectPermissionGrant(
        id=row.id,
        user_id=row.user_id,
        permission_id=row.permission_id,
        effect=PermissionEffect.parse(row.effect),
        conditions=row.conditions,
        expires_at=ensure_utc(row.expires_at),
        granted_by=row.granted_by,
        tenant_id=row.tenant_id,
        created_at=ensure_utc(row.created_at),
    )


class GroupPermissionRepository(BaseRepository[GroupPermissionModel]):
    """SQLAlchemy implementation of IGroupPermissionAssignmentsRepository."""

    duplicate_assignment_type = "group_permission"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, GroupPermissionModel)

    async def find_by_group(self, group_id: str) -> list[GroupPermissionAssignment]:
        return await self.find_by_groups([group_id])

    async def find_by_groups(
        self, group_ids: Sequence[str]
    ) -> list[GroupPermissionAssignment]:
        if not group_ids:
            return []
        async with self._guard("group_permission.find_by_groups"):
            result = await self.db.execute(
                select(GroupPermissionModel).where(
                    GroupPermissionModel.group_id.in_(set(group_ids))
                )
            )
            return [_group_permission(r) for r in result.scalars().all()]

    async def upsert(self, assignment: GroupPermissionAssignment) -> GroupPermissionAssignment:
        async with self._guard("group_permission.upsert"):
            result = await self.db.execute(
                select(GroupPermissionModel).where(
                    GroupPermissionModel.group_id == assignment.group_id,
                    GroupPermissionModel.permission_id == assignment.permission_id,
                )
            )
            row = result.scalar_one_or_none()
        if row is None:
            row = GroupPermissionModel(
                id=assignment.id,
                group_id=assignment.group_id,
                permission_id=assignment.permission_id,
                created_at=assignment.created_at,
            )
        row.effect = assignment.effect.value
        row.conditions = assignment.conditions
        return _group_permission(await self._flush(row, "group_permission.upsert"))

    async def remove(self, group_id: str, permission_id: str) -> bool:
        async with self._guard("group_permission.remove"):
            result = await self.db.execute(
                delete(GroupPermissionModel).where(
                    GroupPermissionModel.group_id == group_id,
                    GroupPermissionModel.permission_id == permission_id,
                )
            )
        return bool(result.rowcount)


class UserGroupRepository(BaseRepository[UserGroupModel]):
    """SQLAlchemy implementation of IUserGroupAssignmentsRepository."""

    duplicate_assignment_type = "user_group"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, UserGroupModel)

    async def find_active_by_user(
        self, user_id: str, tenant_id: str, now: datetime
    ) -> list[UserGroupAssignment]:
        async with self._guard("user_group.find_active_by_user"):
            result = await self.db.execute(
                select(UserGroupModel)
                .join(PermissionGroupModel, PermissionGroupModel.id == UserGroupModel.group_id)
                .where(
                    UserGroupModel.user_id == user_id,
                    or_(UserGroupModel.expires_at.is_(None), UserGroupModel.expires_at > now),
                    or_(
                        PermissionGroupModel.tenant_id == tenant_id,
                        PermissionGroupModel.tenant_id.is_(None),
                    ),
                )
            )
            return [_user_group(r) for r in result.scalars().all()]

    async def find_by_group(self, group_id: str) -> list[UserGroupAssignment]:
        async with self._guard("user_group.find_by_group"):
            result = await self.db.execute(
                select(UserGroupModel).where(UserGroupModel.group_id == group_id)
            )
            return [_user_group(r) for r in result.scalars().all()]

    async def upsert(self, assignment: UserGroupAssignment) -> UserGroupAssignment:
        async with self._guard("user_group.upsert"):
            result = await self.db.execute(
                select(UserGroupModel).where(
                    UserGroupModel.user_id == assignment.user_id,
                    UserGroupModel.group_id == assignment.group_id,
                )
            )
            row = result.scalar_one_or_none()
        if row is None:
            row = UserGroupModel(
                id=assignment.id,
                user_id=assignment.user_id,
                group_id=assignment.group_id,
            )
        row.granted_by = assignment.granted_by
        row.expires_at = assignment.expires_at
        row.assigned_at = assignment.assigned_at
        return _user_group(await self._flush(row, "user_group.upsert"))

    async def remove(self, user_id: str, group_id: str) -> bool:
        async with self._guard("user_group.remove"):
            result = await self.db.execute(
                delete(UserGroupModel).where(
                    UserGroupModel.user_id == user_id,
                    UserGroupModel.group_id == group_id,
                )
            )
        return bool(result.rowcount)


class DirectGrantRepository(BaseRepository[DirectGrantModel]):
    """SQLAlchemy implementation of IUserDirectPermissionGrantsRepository."""

    duplicate_assignment_type = "direct_grant"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, DirectGrantModel)

    async def find_active_by_user(
        self, user_id: str, now: datetime, *, tenant_id: str | None = None
    ) -> list[UserDirectPermissionGrant]:
        stmt = select(DirectGrantModel).where(
            DirectGrantModel.user_id == user_id,
            or_(DirectGrantModel.expires_at.is_(None), DirectGrantModel.expires_at > now),
        )
        if tenant_id is not None:
            stmt = stmt.where(
                or_(DirectGrantModel.tenant_id.is_(None), DirectGrantModel.tenant_id == tenant_id)
            )
        async with self._guard("direct_grant.find_active_by_user"):
            result = await self.db.execute(stmt)
            return [_direct_grant(r) for r in result.scalars().all()]

    async def get_by_id(self, grant_id: str) -> UserDirectPermissionGrant | None:
        row = await self._get_row(grant_id)
        return _direct_grant(row) if row else None

    async def upsert(self, grant: UserDirectPermissionGrant) -> UserDirectPermissionGrant:
        async with self._guard("direct_grant.upsert"):
            result = await self.db.execute(
                select(DirectGrantModel).where(
                    DirectGrantModel.user_id == grant.user_id,
                    DirectGrantModel.permission_id == grant.permission_id,
                )
            )
            row = result.scalar_one_or_none()
        if row is None:
            row = DirectGrantModel(
                id=grant.id,
                user_id=grant.user_id,
                permission_id=grant.permission_id,
                created_at=grant.created_at,
            )
        row.tenant_id = grant.tenant_id
        row.effect = grant.effect.value
        row.conditions = grant.conditions
        row.expires_at = grant.expires_at
        row.granted_by = grant.granted_by
        return _direct_grant(await self._flush(row, "direct_grant.upsert"))

    async def revoke(self, user_id: str, permission_id: str) -> bool:
        async with self._guard("direct_grant.revoke"):
            result = await self.db.execute(
                delete(DirectGrantModel).where(
                    DirectGrantModel.user_id == user_id,
                    DirectGrantModel.permission_id == permission_id,
                )
            )
        return bool(result.rowcount)
