"""Service interfaces (ports) for the application layer."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from authz.application.dtos.decision import Decision
    from authz.application.dtos.snapshot import PermissionSnapshot
    from authz.domain.value_objects import PermissionCode


class IPermissionResolver(Protocol):
    """Builds a user's permission snapshot and decides requests against it."""

    async def load_snapshot(
        self, tenant_id: str, user_id: str, now: datetime
    ) -> PermissionSnapshot:
        """Read direct grants and group assignments of user in tenant."""
        ...

    def decide(
        self,
        snapshot: PermissionSnapshot,
        requested_code: PermissionCode,
        context: dict[str, Any],
        now: datetime,
    ) -> Decision:
        """Combine snapshot rules into one Decision (pure)."""
        ...

    def allowed_codes(self, snapshot: PermissionSnapshot, now: datetime) -> set[str]:
        """Return codes allowed without request context."""
        ...


class ICacheService(Protocol):
    """Protocol for cache (e.g. Redis or in-process TTL cache)."""

    def is_available(self) -> bool:
        """Return True if cache is usable."""
        ...

    async def get(self, key: str) -> Any:
        """Return cached value or None."""
        ...

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store value with TTL in seconds."""
        ...

    async def delete(self, key: str) -> bool:
        """Remove key."""
        ...

    async def delete_pattern(self, pattern: str) -> int:
        """Remove keys matching glob pattern. Returns count removed."""
        ...


class IPermissionCacheInvalidator(Protocol):
    """Drops cached permission snapshots after provisioning mutations."""

    async def invalidate_user(self, tenant_id: str, user_id: str) -> None: ...

    async def invalidate_user_everywhere(self, user_id: str) -> None: ...

    async def invalidate_tenant(self, tenant_id: str) -> None: ...

    async def invalidate_all(self) -> None: ...
