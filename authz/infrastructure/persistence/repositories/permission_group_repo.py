"""Permission group repository. Returns domain PermissionGroup entities."""

from __future__ import annotations

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from authz.domain.entities import PermissionGroup
from authz.infrastructure.persistence.models.permission_group import PermissionGroupModel
from authz.infrastructure.persistence.repositories.base import BaseRepository
from authz.shared.utils.datetime import ensure_utc


def _to_entity(row: PermissionGroupModel) -> PermissionGroup:
    """Map ORM PermissionGroupModel to PermissionGroup."""
    return PermissionGroup(
        id=row.id,
        name=row.name,
        slug=row.slug,
        tenant_id=row.tenant_id,
        description=row.description,
        color=row.color,
        priority=row.priority,
        parent_id=row.parent_id,
        is_system=row.is_system,
        is_active=row.is_active,
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
        deleted_at=ensure_utc(row.deleted_at),
    )


class PermissionGroupRepository(BaseRepository[PermissionGroupModel]):
    """SQLAlchemy implementation of IPermissionGroupsRepository."""

    duplicate_assignment_type = "group_slug"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, PermissionGroupModel)

    async def find_by_slug_and_tenant(
        self, slug: str, tenant_id: str | None
    ) -> PermissionGroup | None:
        tenant_clause = (
            PermissionGroupModel.tenant_id.is_(None)
            if tenant_id is None
            else PermissionGroupModel.tenant_id == tenant_id
        )
        async with self._guard("permission_group.find_by_slug"):
            result = await self.db.execute(
                select(PermissionGroupModel).where(
                    PermissionGroupModel.slug == slug,
                    tenant_clause,
                    PermissionGroupModel.deleted_at.is_(None),
                )
            )
            row = result.scalar_one_or_none()
        return _to_entity(row) if row else None

    async def find_active_for_tenant(self, tenant_id: str) -> list[PermissionGroup]:
        async with self._guard("permission_group.find_active_for_tenant"):
            result = await self.db.execute(
                select(PermissionGroupModel).where(
                    or_(
                        PermissionGroupModel.tenant_id == tenant_id,
                        PermissionGroupModel.tenant_id.is_(None),
                    ),
                    PermissionGroupModel.is_active.is_(True),
                    PermissionGroupModel.deleted_at.is_(None),
                )
            )
            return [_to_entity(r) for r in result.scalars().all()]

    async def get_by_id(self, group_id: str) -> PermissionGroup | None:
        row = await self._get_row(group_id)
        return _to_entity(row) if row else None

    async def find_children(self, group_id: str) -> list[PermissionGroup]:
        async with self._guard("permission_group.find_children"):
            result = await self.db.execute(
                select(PermissionGroupModel).where(
                    PermissionGroupModel.parent_id == group_id,
                    PermissionGroupModel.deleted_at.is_(None),
                )
            )
            return [_to_entity(r) for r in result.scalars().all()]

    async def save(self, group: PermissionGroup) -> PermissionGroup:
        row = await self._get_row(group.id)
        if row is None:
            row = PermissionGroupModel(id=group.id)
        row.name = group.name
        row.slug = group.slug
        row.tenant_id = group.tenant_id
        row.description = group.description
        row.color = group.color
        row.priority = group.priority
        row.parent_id = group.parent_id
        row.is_system = group.is_system
        row.is_active = group.is_active
        row.deleted_at = group.deleted_at
        return _to_entity(await self._flush(row, "permission_group.save"))
