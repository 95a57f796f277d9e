"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference domain entities or application DTOs only; no infrastructure imports.
Implementations raise RepositoryException on storage failure.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from authz.application.dtos.audit_log import PermissionAuditEntry
    from authz.domain.entities import (
        GroupPermissionAssignment,
        Permission,
        PermissionGroup,
        UserDirectPermissionGrant,
        UserGroupAssignment,
    )
    from authz.domain.value_objects import PermissionCode


class IPermissionsRepository(Protocol):
    """Permission catalog (not soft-deleted rows unless fetched by id)."""

    async def list_all(self) -> list[Permission]:
        """Return every non-deleted permission."""

    async def find_many_by_codes(self, codes: Sequence[PermissionCode]) -> list[Permission]:
        """Return permissions whose code value is in codes."""

    async def find_many_by_ids(self, ids: Sequence[str]) -> list[Permission]:
        """Return permissions by id (missing ids are ignored)."""

    async def find_by_code(self, code: PermissionCode) -> Permission | None:
        """Return permission by exact code value."""

    async def get_by_id(self, permission_id: str) -> Permission | None:
        """Return permission by ID."""

    async def save(self, permission: Permission) -> Permission:
        """Insert or update a permission (last writer wins)."""


class IPermissionGroupsRepository(Protocol):
    """Permission groups; tenant-owned or system-wide."""

    async def find_by_slug_and_tenant(
        self, slug: str, tenant_id: str | None
    ) -> PermissionGroup | None:
        """Return the non-deleted group with slug owned by tenant_id (None = system-wide)."""

    async def find_active_for_tenant(self, tenant_id: str) -> list[PermissionGroup]:
        """Return active, non-deleted groups owned by tenant_id or system-wide."""

    async def get_by_id(self, group_id: str) -> PermissionGroup | None:
        """Return group by ID."""

    async def find_children(self, group_id: str) -> list[PermissionGroup]:
        """Return non-deleted groups whose parent_id is group_id."""

    async def save(self, group: PermissionGroup) -> PermissionGroup:
        """Insert or update a group. Raises DuplicateAssignmentException on slug clash."""


class IGroupPermissionAssignmentsRepository(Protocol):
    """Group -> permission assignments."""

    async def find_by_group(self, group_id: str) -> list[GroupPermissionAssignment]:
        """Return assignments of one group."""

    async def find_by_groups(
        self, group_ids: Sequence[str]
    ) -> list[GroupPermissionAssignment]:
        """Return assignments of several groups in one read."""

    async def upsert(self, assignment: GroupPermissionAssignment) -> GroupPermissionAssignment:
        """Insert or replace the row for (group_id, permission_id)."""

    async def remove(self, group_id: str, permission_id: str) -> bool:
        """Delete the row for (group_id, permission_id). Returns True if a row was removed."""


class IUserGroupAssignmentsRepository(Protocol):
    """User -> group memberships."""

    async def find_active_by_user(
        self, user_id: str, tenant_id: str, now: datetime
    ) -> list[UserGroupAssignment]:
        """Return unexpired memberships of user in groups visible in tenant_id."""

    async def find_by_group(self, group_id: str) -> list[UserGroupAssignment]:
        """Return every membership of a group (expired included)."""

    async def upsert(self, assignment: UserGroupAssignment) -> UserGroupAssignment:
        """Insert or replace the row for (user_id, group_id)."""

    async def remove(self, user_id: str, group_id: str) -> bool:
        """Delete the row for (user_id, group_id). Returns True if a row was removed."""


class IUserDirectPermissionGrantsRepository(Protocol):
    """User -> permission direct grants."""

    async def find_active_by_user(
        self, user_id: str, now: datetime, *, tenant_id: str | None = None
    ) -> list[UserDirectPermissionGrant]:
        """Return unexpired grants of user; with tenant_id, only grants applying in it."""

    async def get_by_id(self, grant_id: str) -> UserDirectPermissionGrant | None:
        """Return grant by ID."""

    async def upsert(self, grant: UserDirectPermissionGrant) -> UserDirectPermissionGrant:
        """Insert or replace the row for (user_id, permission_id)."""

    async def revoke(self, user_id: str, permission_id: str) -> bool:
        """Delete the row for (user_id, permission_id). Returns True if a row was removed."""


class IPermissionAuditLogRepository(Protocol):
    """Append-only log of authorization checks."""

    async def log(self, entry: PermissionAuditEntry) -> None:
        """Append one check record."""
