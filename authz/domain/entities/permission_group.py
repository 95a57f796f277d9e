"""Permission group domain entity.

A named, prioritized bundle of permissions. Tenant-owned, or system-wide
when tenant_id is None. The parent pointer is organizational only: a
group's permission set is exactly its direct assignments.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime

from authz.domain.entities.base import IdentityMixin
from authz.domain.exceptions import (
    CyclicGroupHierarchyException,
    ForbiddenOperationException,
    ValidationException,
)
from authz.shared.utils.datetime import utc_now

_SLUG_WHITESPACE = re.compile(r"\s+")
_SLUG_INVALID = re.compile(r"[^a-z0-9_-]")


def slugify(name: str) -> str:
    """Lower-case name and replace whitespace runs with '-'."""
    slug = _SLUG_WHITESPACE.sub("-", name.strip().lower())
    return _SLUG_INVALID.sub("", slug)


@dataclass(eq=False)
class PermissionGroup(IdentityMixin):
    """Domain entity for a permission group.

    Higher priority wins when a user's groups yield conflicting effects for
    the same request. Slug is unique within the owning tenant.
    """

    id: str
    name: str
    slug: str
    tenant_id: str | None = None
    description: str | None = None
    color: str | None = None
    priority: int = 0
    parent_id: str | None = None
    is_system: bool = False
    is_active: bool = True
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    deleted_at: datetime | None = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate group business rules. Raises ValidationException if invalid."""
        if not self.id:
            raise ValidationException("Group ID is required", field="id")
        if not self.name or not self.name.strip():
            raise ValidationException("Group name is required", field="name")
        if not self.slug:
            raise ValidationException("Group slug is required", field="slug")
        if self.parent_id is not None and self.parent_id == self.id:
            raise CyclicGroupHierarchyException(self.id, self.parent_id)

    @property
    def is_system_wide(self) -> bool:
        return self.tenant_id is None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def is_visible_in(self, tenant_id: str) -> bool:
        """Return True if the group is owned by tenant_id or is system-wide."""
        return self.tenant_id is None or self.tenant_id == tenant_id

    def is_usable_in(self, tenant_id: str) -> bool:
        """Active, not deleted and visible in tenant_id."""
        return self.is_active and not self.is_deleted and self.is_visible_in(tenant_id)

    def rename(self, name: str) -> None:
        """Change name and re-derive the slug from it."""
        if not name or not name.strip():
            raise ValidationException("Group name is required", field="name")
        self.name = name.strip()
        self.slug = slugify(self.name)
        self._touch()

    def set_parent(self, parent_id: str | None) -> None:
        """Set the organizational parent. Cycle checks beyond self-parenting
        need the whole tree and are done by the group service.
        """
        if parent_id is not None and parent_id == self.id:
            raise CyclicGroupHierarchyException(self.id, parent_id)
        self.parent_id = parent_id
        self._touch()

    def activate(self) -> None:
        self.is_active = True
        self._touch()

    def deactivate(self) -> None:
        self.is_active = False
        self._touch()

    def soft_delete(self, when: datetime | None = None) -> None:
        """Mark the group deleted and inactive.

        Raises:
            ForbiddenOperationException: If the group is a system group.
        """
        if self.is_system:
            raise ForbiddenOperationException(
                "System groups cannot be deleted", {"group_id": self.id}
            )
        self.deleted_at = when or utc_now()
        self.is_active = False
        self._touch()

    def _touch(self) -> None:
        self.updated_at = utc_now()
