"""Domain entities.

Pure domain models; no ORM or persistence concerns.
"""

from authz.domain.entities.assignments import (
    GroupPermissionAssignment,
    UserDirectPermissionGrant,
    UserGroupAssignment,
)
from authz.domain.entities.base import IdentityMixin
from authz.domain.entities.permission import Permission, PermissionMetadata
from authz.domain.entities.permission_group import PermissionGroup, slugify

__all__ = [
    "GroupPermissionAssignment",
    "IdentityMixin",
    "Permission",
    "PermissionGroup",
    "PermissionMetadata",
    "UserDirectPermissionGrant",
    "UserGroupAssignment",
    "slugify",
]
