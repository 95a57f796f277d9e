"""DTOs for the permission audit log (one row per authorization check)."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class PermissionAuditEntry:
    """Input for appending one permission check record. Append-only; no update."""

    tenant_id: str
    user_id: str
    permission_code: str
    allowed: bool
    matched_via: str
    reason: str
    context: dict[str, Any] | None
    checked_at: datetime
