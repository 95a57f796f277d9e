"""Permission catalog ORM model. Codes are global; unique by code."""

from typing import Any

from sqlalchemy import JSON, Boolean, Index, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from authz.infrastructure.persistence.database import Base
from authz.infrastructure.persistence.models.mixins import AuthzModel

JSONType = JSON().with_variant(JSONB(), "postgresql")


class PermissionModel(AuthzModel, Base):
    """Permission. Table: permission. module.resource.action[.scope]."""

    __tablename__ = "permission"

    code: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    module: Mapped[str] = mapped_column(String(64), nullable=False)
    resource: Mapped[str] = mapped_column(String(64), nullable=False)
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    is_system: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    permission_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSONType, nullable=True
    )

    __table_args__ = (
        Index("ix_permission_module_resource", "module", "resource", "action"),
    )
