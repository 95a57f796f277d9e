"""Cache backends for permission snapshots and key utilities.

CacheService (Redis) and MemoryCache (in-process) both satisfy CacheProtocol;
key format lives in keys.py (DRY).
"""

from authz.infrastructure.cache.cache_protocol import CacheProtocol
from authz.infrastructure.cache.invalidator import SnapshotCacheInvalidator
from authz.infrastructure.cache.keys import (
    all_permissions_pattern,
    permission_key,
    tenant_permission_pattern,
    user_permission_pattern,
)
from authz.infrastructure.cache.memory_cache import MemoryCache
from authz.infrastructure.cache.redis_cache import CacheService

__all__ = [
    "CacheProtocol",
    "all_permissions_pattern",
    "CacheService",
    "MemoryCache",
    "SnapshotCacheInvalidator",
    "permission_key",
    "tenant_permission_pattern",
    "user_permission_pattern",
]
