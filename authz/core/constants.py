"""Core constants: cache key prefixes and shared literal values.

Single source of truth for cache key structure (DRY).
"""

# Cache key prefixes
CACHE_PREFIX_PERMISSION = "permission"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Default tenant groups created at tenant bootstrap
ADMIN_GROUP_NAME = "Admin"
ADMIN_GROUP_PRIORITY = 100
ADMIN_GROUP_COLOR = "#DC2626"
USER_GROUP_NAME = "User"
USER_GROUP_PRIORITY = 10
USER_GROUP_COLOR = "#2563EB"
ADMIN_GROUP_SLUG = "admin"
USER_GROUP_SLUG = "user"

# Permissions granted to every tenant's User group
DEFAULT_USER_PERMISSIONS: tuple[str, ...] = (
    "self.profile.read",
    "self.profile.update",
    "self.profile.update-email",
    "self.profile.update-password",
    "self.profile.update-username",
    "self.sessions.read",
    "self.sessions.list",
    "self.sessions.revoke",
    "self.permissions.read",
    "self.permissions.list",
    "self.groups.read",
    "self.groups.list",
    "self.audit.read",
    "self.audit.list",
    "self.employee.read",
)
