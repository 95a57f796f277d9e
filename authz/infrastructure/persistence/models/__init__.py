"""Persistence models: ORM entities and mixins."""

from authz.infrastructure.persistence.models.assignments import (
    DirectGrantModel,
    GroupPermissionModel,
    UserGroupModel,
)
from authz.infrastructure.persistence.models.audit_log import PermissionAuditLogModel
from authz.infrastructure.persistence.models.mixins import (
    AuthzModel,
    CuidMixin,
    SoftDeleteMixin,
    TimestampMixin,
)
from authz.infrastructure.persistence.models.permission import PermissionModel
from authz.infrastructure.persistence.models.permission_group import PermissionGroupModel

__all__ = [
    "AuthzModel",
    "CuidMixin",
    "DirectGrantModel",
    "GroupPermissionModel",
    "PermissionAuditLogModel",
    "PermissionGroupModel",
    "PermissionModel",
    "SoftDeleteMixin",
    "TimestampMixin",
    "UserGroupModel",
]
