"""Permission audit log repository. Append-only; implements IPermissionAuditLogRepository."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from authz.application.dtos.audit_log import PermissionAuditEntry
from authz.infrastructure.persistence.models.audit_log import PermissionAuditLogModel
from authz.infrastructure.persistence.repositories.base import BaseRepository
from authz.shared.utils.datetime import ensure_utc
from authz.shared.utils.generators import generate_cuid


def _json_safe(context: dict[str, Any] | None) -> dict[str, Any] | None:
    """Coerce request context to plain JSON (datetimes and ids become strings)."""
    if not context:
        return None
    return json.loads(json.dumps(context, default=str))


def _orm_to_entry(row: PermissionAuditLogModel) -> PermissionAuditEntry:
    return PermissionAuditEntry(
        tenant_id=row.tenant_id,
        user_id=row.user_id,
        permission_code=row.permission_code,
        allowed=row.allowed,
        matched_via=row.matched_via,
        reason=row.reason or "",
        context=row.context,
        checked_at=ensure_utc(row.checked_at),
    )


class PermissionAuditLogRepository(BaseRepository[PermissionAuditLogModel]):
    """Append-only audit log of authorization checks. No update/delete."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, PermissionAuditLogModel)

    async def log(self, entry: PermissionAuditEntry) -> None:
        """Append one entry inside a savepoint so a failed write leaves the session usable."""
        row = PermissionAuditLogModel(
            id=generate_cuid(),
            tenant_id=entry.tenant_id,
            user_id=entry.user_id,
            permission_code=entry.permission_code,
            allowed=entry.allowed,
            matched_via=entry.matched_via,
            reason=entry.reason,
            context=_json_safe(entry.context),
            checked_at=entry.checked_at,
        )
        async with self._guard("permission_audit_log.log"):
            async with self.db.begin_nested():
                self.db.add(row)

    async def list_for_user(
        self,
        tenant_id: str,
        user_id: str,
        *,
        since: datetime | None = None,
        limit: int = 100,
    ) -> list[PermissionAuditEntry]:
        """Return a user's checks in a tenant, newest first."""
        stmt = select(PermissionAuditLogModel).where(
            PermissionAuditLogModel.tenant_id == tenant_id,
            PermissionAuditLogModel.user_id == user_id,
        )
        if since is not None:
            stmt = stmt.where(PermissionAuditLogModel.checked_at >= since)
        stmt = stmt.order_by(PermissionAuditLogModel.checked_at.desc()).limit(limit)
        async with self._guard("permission_audit_log.list_for_user"):
            result = await self.db.execute(stmt)
            return [_orm_to_entry(r) for r in result.scalars().all()]
