"""Snapshot cache invalidation by user, tenant or everything."""

import logging

from authz.infrastructure.cache.cache_protocol import CacheProtocol
from authz.infrastructure.cache.keys import (
    all_permissions_pattern,
    permission_key,
    tenant_permission_pattern,
    user_permission_pattern,
)

logger = logging.getLogger(__name__)


class SnapshotCacheInvalidator:
    """Implements IPermissionCacheInvalidator over any cache backend. No-op without a cache."""

    def __init__(self, cache: CacheProtocol | None) -> None:
        self.cache = cache

    def _enabled(self) -> bool:
        return self.cache is not None and self.cache.is_available()

    async def invalidate_user(self, tenant_id: str, user_id: str) -> None:
        """Drop one user's snapshot in one tenant."""
        if self._enabled():
            await self.cache.delete(permission_key(tenant_id, user_id))

    async def invalidate_user_everywhere(self, user_id: str) -> None:
        """Drop a user's snapshots in every tenant (tenant-less grants, system groups)."""
        if self._enabled():
            removed = await self.cache.delete_pattern(user_permission_pattern(user_id))
            logger.debug("Invalidated %s snapshots of user %s", removed, user_id)

    async def invalidate_tenant(self, tenant_id: str) -> None:
        """Drop every snapshot of a tenant."""
        if self._enabled():
            removed = await self.cache.delete_pattern(tenant_permission_pattern(tenant_id))
            logger.debug("Invalidated %s snapshots in tenant %s", removed, tenant_id)

    async def invalidate_all(self) -> None:
        """Drop every snapshot (system-wide group or catalog change)."""
        if self._enabled():
            removed = await self.cache.delete_pattern(all_permissions_pattern())
            logger.info("Invalidated all %s permission snapshots", removed)
