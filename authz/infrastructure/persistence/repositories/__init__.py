"""Persistence repositories. Re-exports for dependency injection."""

from authz.infrastructure.persistence.repositories.assignment_repos import (
    DirectGrantRepository,
    GroupPermissionRepository,
    UserGroupRepository,
)
from authz.infrastructure.persistence.repositories.audit_log_repo import (
    PermissionAuditLogRepository,
)
from authz.infrastructure.persistence.repositories.base import BaseRepository
from authz.infrastructure.persistence.repositories.permission_group_repo import (
    PermissionGroupRepository,
)
from authz.infrastructure.persistence.repositories.permission_repo import (
    PermissionRepository,
)

__all__ = [
    "BaseRepository",
    "DirectGrantRepository",
    "GroupPermissionRepository",
    "PermissionAuditLogRepository",
    "PermissionGroupRepository",
    "PermissionRepository",
    "UserGroupRepository",
]
