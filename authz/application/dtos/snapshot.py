"""Per-user permission snapshot: the data one resolution reads.

A snapshot is everything the decision needs for (tenant_id, user_id),
flattened into rules so it can be cached as JSON and re-evaluated for
any requested code. Expiry instants are kept on each rule and checked
against the caller's `now` at decision time, so a cached snapshot never
resurrects an expired grant.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from authz.domain.enums import DecisionSource, PermissionEffect
from authz.shared.utils.datetime import ensure_utc, has_expired


@dataclass(frozen=True)
class SnapshotRule:
    """One effect that may apply to a request: a direct grant or a group assignment."""

    source: DecisionSource
    permission_code: str
    effect: PermissionEffect
    conditions: dict[str, Any] | None = None
    expires_at: datetime | None = None
    group_id: str | None = None
    group_name: str | None = None
    priority: int = 0

    def is_expired(self, now: datetime) -> bool:
        return has_expired(self.expires_at, now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.value,
            "permission_code": self.permission_code,
            "effect": self.effect.value,
            "conditions": self.conditions,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "group_id": self.group_id,
            "group_name": self.group_name,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SnapshotRule":
        expires_at = data.get("expires_at")
        return cls(
            source=DecisionSource(data["source"]),
            permission_code=data["permission_code"],
            effect=PermissionEffect.parse(data["effect"]),
            conditions=data.get("conditions"),
            expires_at=ensure_utc(datetime.fromisoformat(expires_at)) if expires_at else None,
            group_id=data.get("group_id"),
            group_name=data.get("group_name"),
            priority=int(data.get("priority", 0)),
        )


@dataclass(frozen=True)
class PermissionSnapshot:
    """Direct and group rules of one user within one tenant."""

    tenant_id: str
    user_id: str
    direct_rules: tuple[SnapshotRule, ...] = field(default_factory=tuple)
    group_rules: tuple[SnapshotRule, ...] = field(default_factory=tuple)

    @property
    def rules(self) -> tuple[SnapshotRule, ...]:
        return self.direct_rules + self.group_rules

    def to_dict(self) -> dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
            "direct_rules": [r.to_dict() for r in self.direct_rules],
            "group_rules": [r.to_dict() for r in self.group_rules],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PermissionSnapshot":
        return cls(
            tenant_id=data["tenant_id"],
            user_id=data["user_id"],
            direct_rules=tuple(SnapshotRule.from_dict(r) for r in data.get("direct_rules", [])),
            group_rules=tuple(SnapshotRule.from_dict(r) for r in data.get("group_rules", [])),
        )
