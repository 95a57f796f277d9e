"""Cache key builders. Single place for key format (DRY).

Key components (tenant_id, user_id) are percent-encoded, so a separator or
glob metacharacter inside an id can neither collide with another key nor
widen an invalidation pattern to other tenants.
"""

from urllib.parse import quote

from authz.core.constants import CACHE_KEY_SEP, CACHE_PREFIX_PERMISSION


def _encode(value: str) -> str:
    """Escape every character outside [A-Za-z0-9_.~-], including ':', '*', '?', '[', ']' and '%'."""
    return quote(value, safe="")


def permission_key(tenant_id: str, user_id: str) -> str:
    """Cache key for a user's permission snapshot within a tenant."""
    return (
        f"{CACHE_PREFIX_PERMISSION}{CACHE_KEY_SEP}{_encode(tenant_id)}"
        f"{CACHE_KEY_SEP}{_encode(user_id)}"
    )


def tenant_permission_pattern(tenant_id: str) -> str:
    """Glob pattern matching every user snapshot of a tenant."""
    return f"{CACHE_PREFIX_PERMISSION}{CACHE_KEY_SEP}{_encode(tenant_id)}{CACHE_KEY_SEP}*"


def user_permission_pattern(user_id: str) -> str:
    """Glob pattern matching a user's snapshots in every tenant."""
    return f"{CACHE_PREFIX_PERMISSION}{CACHE_KEY_SEP}*{CACHE_KEY_SEP}{_encode(user_id)}"


def all_permissions_pattern() -> str:
    """Glob pattern matching every permission snapshot."""
    return f"{CACHE_PREFIX_PERMISSION}{CACHE_KEY_SEP}*"
