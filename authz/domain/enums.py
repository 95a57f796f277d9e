"""Domain enumerations for the authorization engine.

Enums represent fixed sets of domain values (e.g. grant effect).
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class PermissionEffect(_ValuesMixin, str, Enum):
    """Outcome attached to a group permission assignment or a direct grant."""

    ALLOW = "allow"
    DENY = "deny"

    @classmethod
    def parse(cls, value: "str | PermissionEffect") -> "PermissionEffect":
        """Return the effect for value, case-insensitive.

        Raises:
            ValueError: If value is not 'allow' or 'deny'.
        """
        if isinstance(value, PermissionEffect):
            return value
        return cls(str(value).strip().lower())

    @property
    def is_allow(self) -> bool:
        return self is PermissionEffect.ALLOW

    @property
    def is_deny(self) -> bool:
        return self is PermissionEffect.DENY


class DecisionSource(_ValuesMixin, str, Enum):
    """Which layer of the resolver produced a decision."""

    DIRECT = "direct"
    GROUP = "group"
    DEFAULT = "default"
