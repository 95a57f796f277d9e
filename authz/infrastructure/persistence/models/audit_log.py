"""Permission audit log ORM model. Append-only record of authorization checks."""

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, Connection, DateTime, Index, String, Text, event, text
from sqlalchemy.orm import Mapped, Mapper, mapped_column

from authz.infrastructure.persistence.database import Base
from authz.infrastructure.persistence.models.permission import JSONType
from authz.shared.utils.generators import generate_cuid


class PermissionAuditLogModel(Base):
    """One authorization check: who asked for what, where, and the outcome. No update/delete."""

    __tablename__ = "permission_audit_log"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_cuid)
    tenant_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    permission_code: Mapped[str] = mapped_column(String(255), nullable=False)
    allowed: Mapped[bool] = mapped_column(Boolean, nullable=False)
    matched_via: Mapped[str] = mapped_column(String(16), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    context: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    checked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False
    )

    __table_args__ = (
        Index("ix_permission_audit_log_checked", "tenant_id", "checked_at"),
    )


@event.listens_for(PermissionAuditLogModel, "before_update")
def _prevent_audit_log_updates(
    _mapper: Mapper[Any], _connection: Connection, _target: PermissionAuditLogModel
) -> None:
    """Audit entries are append-only; updates are forbidden."""
    raise ValueError("Permission audit entries are immutable and cannot be updated.")


@event.listens_for(PermissionAuditLogModel, "before_delete")
def _prevent_audit_log_deletes(
    _mapper: Mapper[Any], _connection: Connection, _target: PermissionAuditLogModel
) -> None:
    """Audit entries cannot be deleted."""
    raise ValueError("Permission audit entries cannot be deleted.")
