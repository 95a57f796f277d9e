"""Application DTOs (no dependency on ORM)."""

from authz.application.dtos.audit_log import PermissionAuditEntry
from authz.application.dtos.decision import Decision
from authz.application.dtos.provisioning import (
    BulkAssignmentError,
    BulkAssignmentResult,
    DirectGrantInput,
    GroupCreate,
    GroupUpdate,
    PermissionAssignmentInput,
    PermissionCatalogItem,
    PermissionCatalogModule,
    PermissionCatalogResource,
    TenantBootstrapResult,
)
from authz.application.dtos.snapshot import PermissionSnapshot, SnapshotRule

__all__ = [
    "BulkAssignmentError",
    "BulkAssignmentResult",
    "Decision",
    "DirectGrantInput",
    "GroupCreate",
    "GroupUpdate",
    "PermissionAssignmentInput",
    "PermissionAuditEntry",
    "PermissionCatalogItem",
    "PermissionCatalogModule",
    "PermissionCatalogResource",
    "PermissionSnapshot",
    "SnapshotRule",
    "TenantBootstrapResult",
]
