"""Permission catalog repository. Returns domain Permission entities."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from authz.domain.entities import Permission, PermissionMetadata
from authz.domain.exceptions import ValidationException
from authz.domain.value_objects import PermissionCode
from authz.infrastructure.persistence.models.permission import PermissionModel
from authz.infrastructure.persistence.repositories.base import BaseRepository
from authz.shared.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)


def _to_entity(row: PermissionModel) -> Permission | None:
    """Map ORM row to Permission; rows with a malformed code are skipped."""
    try:
        code = PermissionCode.create(row.code)
    except ValidationException:
        logger.warning("Data integrity: permission %s has malformed code %r", row.id, row.code)
        return None
    return Permission(
        id=row.id,
        code=code,
        name=row.name,
        description=row.description,
        module=row.module,
        resource=row.resource,
        action=row.action,
        is_system=row.is_system,
        metadata=PermissionMetadata.from_dict(row.permission_metadata),
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
        deleted_at=ensure_utc(row.deleted_at),
    )


def _entities(rows: Sequence[PermissionModel]) -> list[Permission]:
    return [p for p in (_to_entity(r) for r in rows) if p is not None]


class PermissionRepository(BaseRepository[PermissionModel]):
    """SQLAlchemy implementation of IPermissionsRepository."""

    duplicate_assignment_type = "permission_code"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, PermissionModel)

    async def list_all(self) -> list[Permission]:
        async with self._guard("permission.list_all"):
            result = await self.db.execute(
                select(PermissionModel)
                .where(PermissionModel.deleted_at.is_(None))
                .order_by(PermissionModel.module, PermissionModel.resource, PermissionModel.action)
            )
            return _entities(result.scalars().all())

    async def find_many_by_codes(self, codes: Sequence[PermissionCode]) -> list[Permission]:
        if not codes:
            return []
        async with self._guard("permission.find_many_by_codes"):
            result = await self.db.execute(
                select(PermissionModel).where(
                    PermissionModel.code.in_({c.value for c in codes}),
                    PermissionModel.deleted_at.is_(None),
                )
            )
            return _entities(result.scalars().all())

    async def find_many_by_ids(self, ids: Sequence[str]) -> list[Permission]:
        if not ids:
            return []
        async with self._guard("permission.find_many_by_ids"):
            result = await self.db.execute(
                select(PermissionModel).where(PermissionModel.id.in_(set(ids)))
            )
            return _entities(result.scalars().all())

    async def find_by_code(self, code: PermissionCode) -> Permission | None:
        async with self._guard("permission.find_by_code"):
            result = await self.db.execute(
                select(PermissionModel).where(
                    PermissionModel.code == code.value,
                    PermissionModel.deleted_at.is_(None),
                )
            )
            row = result.scalar_one_or_none()
        return _to_entity(row) if row else None

    async def get_by_id(self, permission_id: str) -> Permission | None:
        row = await self._get_row(permission_id)
        return _to_entity(row) if row else None

    async def save(self, permission: Permission) -> Permission:
        row = await self._get_row(permission.id)
        if row is None:
            row = PermissionModel(id=permission.id, code=permission.code.value)
        row.name = permission.name
        row.description = permission.description
        row.module = permission.module or permission.code.module
        row.resource = permission.resource or permission.code.resource
        row.action = permission.action or permission.code.action
        row.is_system = permission.is_system
        row.permission_metadata = permission.metadata.to_dict()
        row.deleted_at = permission.deleted_at
        saved = await self._flush(row, "permission.save")
        return _to_entity(saved) or permission
