"""Assignment records: group->permission, user->group and user->permission.

Pure data with minimal behavior. Expired rows are retained for audit and
filtered out by query; is_expired() is the single expiry rule.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from authz.domain.entities.base import IdentityMixin
from authz.domain.enums import PermissionEffect
from authz.domain.exceptions import ValidationException
from authz.shared.utils.datetime import has_expired, utc_now


@dataclass(eq=False)
class GroupPermissionAssignment(IdentityMixin):
    """(group, permission, effect, conditions). Unique per (group_id, permission_id)."""

    id: str
    group_id: str
    permission_id: str
    effect: PermissionEffect = PermissionEffect.ALLOW
    conditions: dict[str, Any] | None = None
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        self.effect = PermissionEffect.parse(self.effect)
        if not self.group_id or not self.permission_id:
            raise ValidationException(
                "group_id and permission_id are required", field="group_id"
            )

    @property
    def key(self) -> tuple[str, str]:
        return (self.group_id, self.permission_id)


@dataclass(eq=False)
class UserGroupAssignment(IdentityMixin):
    """Membership of a user in a group. granted_by None means system-granted."""

    id: str
    user_id: str
    group_id: str
    granted_by: str | None = None
    expires_at: datetime | None = None
    assigned_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if not self.user_id or not self.group_id:
            raise ValidationException(
                "user_id and group_id are required", field="user_id"
            )

    @property
    def key(self) -> tuple[str, str]:
        return (self.user_id, self.group_id)

    @property
    def is_system_granted(self) -> bool:
        return self.granted_by is None

    def is_expired(self, now: datetime) -> bool:
        """True iff expires_at is set and <= now."""
        return has_expired(self.expires_at, now)


@dataclass(eq=False)
class UserDirectPermissionGrant(IdentityMixin):
    """Permission bound straight to a user, evaluated before any group.

    tenant_id None means the grant follows the user into every tenant.
    """

    id: str
    user_id: str
    permission_id: str
    effect: PermissionEffect = PermissionEffect.ALLOW
    conditions: dict[str, Any] | None = None
    expires_at: datetime | None = None
    granted_by: str | None = None
    tenant_id: str | None = None
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        self.effect = PermissionEffect.parse(self.effect)
        if not self.user_id or not self.permission_id:
            raise ValidationException(
                "user_id and permission_id are required", field="user_id"
            )

    @property
    def key(self) -> tuple[str, str]:
        return (self.user_id, self.permission_id)

    def is_expired(self, now: datetime) -> bool:
        """True iff expires_at is set and <= now."""
        return has_expired(self.expires_at, now)

    def applies_in(self, tenant_id: str) -> bool:
        return self.tenant_id is None or self.tenant_id == tenant_id
