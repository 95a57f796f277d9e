"""DTOs for administrative mutations on groups, assignments and catalog rows."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from authz.domain.enums import PermissionEffect


@dataclass(frozen=True)
class GroupCreate:
    """Input for creating a permission group. tenant_id None creates a system-wide group."""

    name: str
    tenant_id: str | None = None
    description: str | None = None
    color: str | None = None
    priority: int = 0
    parent_id: str | None = None
    slug: str | None = None
    is_system: bool = False


@dataclass(frozen=True)
class GroupUpdate:
    """Partial update of a group. Only fields in `fields_set` are applied."""

    name: str | None = None
    description: str | None = None
    color: str | None = None
    priority: int | None = None
    parent_id: str | None = None
    is_active: bool | None = None
    fields_set: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, **changes: Any) -> "GroupUpdate":
        return cls(**changes, fields_set=frozenset(changes))


@dataclass(frozen=True)
class PermissionAssignmentInput:
    """One permission (by code) to attach to a group in a bulk operation."""

    permission_code: str
    effect: PermissionEffect = PermissionEffect.ALLOW
    conditions: dict[str, Any] | None = None


@dataclass(frozen=True)
class BulkAssignmentError:
    code: str
    reason: str


@dataclass(frozen=True)
class BulkAssignmentResult:
    """Outcome of bulk_add_permissions: codes added, codes already present, failures."""

    added: list[str]
    skipped: list[str]
    errors: list[BulkAssignmentError]


@dataclass(frozen=True)
class DirectGrantInput:
    """Input for granting (or denying) a permission straight to a user."""

    user_id: str
    permission_id: str
    effect: PermissionEffect = PermissionEffect.ALLOW
    conditions: dict[str, Any] | None = None
    expires_at: datetime | None = None
    granted_by: str | None = None
    tenant_id: str | None = None


@dataclass(frozen=True)
class PermissionCatalogItem:
    """Catalog read-model row."""

    id: str
    code: str
    name: str
    description: str | None
    action: str
    is_system: bool
    is_deprecated: bool


@dataclass(frozen=True)
class PermissionCatalogResource:
    resource: str
    permissions: list[PermissionCatalogItem]


@dataclass(frozen=True)
class PermissionCatalogModule:
    """Permissions of one module, grouped by resource and sorted by action."""

    module: str
    resources: list[PermissionCatalogResource]


@dataclass(frozen=True)
class TenantBootstrapResult:
    """Default groups of a tenant; created is False when they already existed."""

    tenant_id: str
    admin_group_id: str
    user_group_id: str
    created: bool
