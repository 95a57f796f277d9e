"""Assignment ORM models: group->permission, user->group, user->permission."""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from authz.infrastructure.persistence.database import Base
from authz.infrastructure.persistence.models.mixins import CuidMixin
from authz.infrastructure.persistence.models.permission import JSONType


class GroupPermissionModel(CuidMixin, Base):
    """Group -> permission with effect and conditions. Table: permission_group_permission."""

    __tablename__ = "permission_group_permission"

    group_id: Mapped[str] = mapped_column(
        String, ForeignKey("permission_group.id", ondelete="CASCADE"), nullable=False
    )
    permission_id: Mapped[str] = mapped_column(
        String, ForeignKey("permission.id", ondelete="CASCADE"), nullable=False
    )
    effect: Mapped[str] = mapped_column(String(8), nullable=False, default="allow")
    conditions: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("group_id", "permission_id", name="uq_group_permission"),
    )


class UserGroupModel(CuidMixin, Base):
    """User -> group membership. Table: user_permission_group."""

    __tablename__ = "user_permission_group"

    user_id: Mapped[str] = mapped_column(String, nullable=False)
    group_id: Mapped[str] = mapped_column(
        String, ForeignKey("permission_group.id", ondelete="CASCADE"), nullable=False
    )
    granted_by: Mapped[str | None] = mapped_column(String, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "group_id", name="uq_user_permission_group"),
        Index("ix_user_permission_group_user", "user_id"),
    )


class DirectGrantModel(CuidMixin, Base):
    """User -> permission direct grant. Table: user_direct_permission."""

    __tablename__ = "user_direct_permission"

    user_id: Mapped[str] = mapped_column(String, nullable=False)
    permission_id: Mapped[str] = mapped_column(
        String, ForeignKey("permission.id", ondelete="CASCADE"), nullable=False
    )
    tenant_id: Mapped[str | None] = mapped_column(String, nullable=True)
    effect: Mapped[str] = mapped_column(String(8), nullable=False, default="allow")
    conditions: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    granted_by: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "permission_id", name="uq_user_direct_permission"),
        Index("ix_user_direct_permission_user", "user_id"),
    )
