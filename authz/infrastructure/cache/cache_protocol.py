"""Cache protocol shared by the Redis and in-process backends (DIP)."""

from typing import Any, Protocol


class CacheProtocol(Protocol):
    """Backend for the permission snapshot cache. Values are JSON-compatible."""

    def is_available(self) -> bool:
        """Return True if the backend is usable."""
        ...

    async def get(self, key: str) -> Any:
        """Return cached value or None."""
        ...

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store value with TTL in seconds. Returns True on success."""
        ...

    async def delete(self, key: str) -> bool:
        """Remove key from cache."""
        ...

    async def delete_pattern(self, pattern: str) -> int:
        """Remove keys matching a glob pattern (e.g. permission:tenant-1:*)."""
        ...
