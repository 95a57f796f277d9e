"""Ports: repository and service protocols implemented by infrastructure."""

from authz.application.interfaces.repositories import (
    IGroupPermissionAssignmentsRepository,
    IPermissionAuditLogRepository,
    IPermissionGroupsRepository,
    IPermissionsRepository,
    IUserDirectPermissionGrantsRepository,
    IUserGroupAssignmentsRepository,
)
from authz.application.interfaces.services import (
    ICacheService,
    IPermissionCacheInvalidator,
    IPermissionResolver,
)

__all__ = [
    "ICacheService",
    "IGroupPermissionAssignmentsRepository",
    "IPermissionAuditLogRepository",
    "IPermissionCacheInvalidator",
    "IPermissionGroupsRepository",
    "IPermissionResolver",
    "IPermissionsRepository",
    "IUserDirectPermissionGrantsRepository",
    "IUserGroupAssignmentsRepository",
]
