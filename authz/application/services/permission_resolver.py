"""Permission resolver: combines direct grants and group assignments into one decision.

Order of evaluation for a requested code:

1. Direct grants of the user: any applicable DENY wins outright, then any
   applicable ALLOW.
2. Group assignments of the user's active, tenant-visible groups: among the
   applicable effects only the highest priority band counts; a DENY in that
   band wins over an ALLOW.
3. Nothing applicable: default deny.

A rule applies when it is not expired at `now`, its stored permission code
matches the requested code, and its conditions hold against the context.
Group hierarchy is organizational only; parents grant nothing to children.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from functools import lru_cache
from typing import Any

from authz.application.dtos.decision import Decision
from authz.application.dtos.snapshot import PermissionSnapshot, SnapshotRule
from authz.application.interfaces.repositories import (
    IGroupPermissionAssignmentsRepository,
    IPermissionGroupsRepository,
    IPermissionsRepository,
    IUserDirectPermissionGrantsRepository,
    IUserGroupAssignmentsRepository,
)
from authz.domain.entities import (
    GroupPermissionAssignment,
    Permission,
    PermissionGroup,
    UserDirectPermissionGrant,
    UserGroupAssignment,
)
from authz.domain.enums import DecisionSource
from authz.domain.exceptions import ConditionEvaluationError, ValidationException
from authz.domain.value_objects import PermissionCode, evaluate_conditions

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4096)
def _parse_code(value: str) -> PermissionCode:
    return PermissionCode.create(value)


def _stored_code(value: str) -> PermissionCode | None:
    try:
        return _parse_code(value)
    except ValidationException:
        logger.warning(
            "Data integrity: stored permission code %r is malformed; skipping rule", value
        )
        return None


def _later_expiry(a: datetime | None, b: datetime | None) -> datetime | None:
    if a is None or b is None:
        return None
    return max(a, b)


class PermissionResolver:
    """Resolves authorization decisions from the five repository reads (implements IPermissionResolver)."""

    def __init__(
        self,
        permissions_repo: IPermissionsRepository,
        groups_repo: IPermissionGroupsRepository,
        group_permissions_repo: IGroupPermissionAssignmentsRepository,
        user_groups_repo: IUserGroupAssignmentsRepository,
        direct_grants_repo: IUserDirectPermissionGrantsRepository,
    ) -> None:
        self._permissions_repo = permissions_repo
        self._groups_repo = groups_repo
        self._group_permissions_repo = group_permissions_repo
        self._user_groups_repo = user_groups_repo
        self._direct_grants_repo = direct_grants_repo

    async def resolve(
        self,
        tenant_id: str,
        user_id: str,
        requested_code: PermissionCode,
        context: dict[str, Any] | None,
        now: datetime,
    ) -> Decision:
        """Load the user's snapshot and decide requested_code against it."""
        snapshot = await self.load_snapshot(tenant_id, user_id, now)
        return self.decide(snapshot, requested_code, context or {}, now)

    async def load_snapshot(
        self, tenant_id: str, user_id: str, now: datetime
    ) -> PermissionSnapshot:
        """Read grants, memberships, groups, assignments and permissions for one user.

        Independent reads run concurrently; all share tenant_id and now.
        Repository failures propagate unchanged.
        """
        grants, memberships, groups = await asyncio.gather(
            self._direct_grants_repo.find_active_by_user(user_id, now, tenant_id=tenant_id),
            self._user_groups_repo.find_active_by_user(user_id, tenant_id, now),
            self._groups_repo.find_active_for_tenant(tenant_id),
        )
        grants = [g for g in grants if not g.is_expired(now) and g.applies_in(tenant_id)]
        member_groups = self._member_groups(tenant_id, memberships, groups, now)

        assignments, direct_permissions = await asyncio.gather(
            self._load_group_assignments(list(member_groups)),
            self._load_permissions({g.permission_id for g in grants}),
        )
        missing_ids = {a.permission_id for a in assignments} - set(direct_permissions)
        permissions = {**direct_permissions, **await self._load_permissions(missing_ids)}

        return PermissionSnapshot(
            tenant_id=tenant_id,
            user_id=user_id,
            direct_rules=tuple(self._direct_rules(grants, permissions)),
            group_rules=tuple(self._group_rules(assignments, member_groups, permissions)),
        )

    def decide(
        self,
        snapshot: PermissionSnapshot,
        requested_code: PermissionCode,
        context: dict[str, Any],
        now: datetime,
    ) -> Decision:
        """Combine snapshot rules into one Decision. Pure; never touches storage."""
        evaluation_context = self._evaluation_context(snapshot, context)

        def applicable(rules: Iterable[SnapshotRule]) -> list[SnapshotRule]:
            return [
                r for r in rules
                if self._rule_applies(r, requested_code, evaluation_context, now)
            ]

        direct = applicable(snapshot.direct_rules)
        for rule in direct:
            if rule.effect.is_deny:
                return Decision(
                    allowed=False,
                    matched_via=DecisionSource.DIRECT,
                    reason=f"Direct deny on {rule.permission_code}",
                    matched_code=rule.permission_code,
                )
        for rule in direct:
            if rule.effect.is_allow:
                return Decision(
                    allowed=True,
                    matched_via=DecisionSource.DIRECT,
                    reason=f"Direct grant on {rule.permission_code}",
                    matched_code=rule.permission_code,
                )

        grouped = applicable(snapshot.group_rules)
        if grouped:
            return self._decide_group_band(grouped)

        return Decision.default_deny(requested_code.value)

    def allowed_codes(self, snapshot: PermissionSnapshot, now: datetime) -> set[str]:
        """Return stored codes allowed without request context.

        Only unconditional ALLOW rules are candidates; a candidate is kept when
        deciding it against the snapshot still allows, treating every
        conditional DENY as applicable.
        """
        codes: set[str] = set()
        for rule in snapshot.rules:
            if not rule.effect.is_allow or rule.conditions or rule.is_expired(now):
                continue
            code = _stored_code(rule.permission_code)
            if code is not None and self._allowed_without_context(snapshot, code, now):
                codes.add(rule.permission_code)
        return codes

    def _allowed_without_context(
        self, snapshot: PermissionSnapshot, code: PermissionCode, now: datetime
    ) -> bool:
        def applicable(rules: Iterable[SnapshotRule]) -> list[SnapshotRule]:
            matched = []
            for r in rules:
                if r.is_expired(now) or (r.conditions and not r.effect.is_deny):
                    continue
                stored = _stored_code(r.permission_code)
                if stored is not None and stored.matches(code):
                    matched.append(r)
            return matched

        direct = applicable(snapshot.direct_rules)
        if any(r.effect.is_deny for r in direct):
            return False
        if direct:
            return True
        grouped = applicable(snapshot.group_rules)
        return bool(grouped) and self._decide_group_band(grouped).allowed

    @staticmethod
    def _decide_group_band(rules: Sequence[SnapshotRule]) -> Decision:
        top = max(r.priority for r in rules)
        band = [r for r in rules if r.priority == top]
        deny = next((r for r in band if r.effect.is_deny), None)
        if deny is not None:
            return Decision(
                allowed=False,
                matched_via=DecisionSource.GROUP,
                reason=f"Denied by group {deny.group_name} (priority {top}) on {deny.permission_code}",
                matched_code=deny.permission_code,
                group_id=deny.group_id,
            )
        allow = band[0]
        return Decision(
            allowed=True,
            matched_via=DecisionSource.GROUP,
            reason=f"Allowed by group {allow.group_name} (priority {top}) on {allow.permission_code}",
            matched_code=allow.permission_code,
            group_id=allow.group_id,
        )

    @staticmethod
    def _evaluation_context(
        snapshot: PermissionSnapshot, context: dict[str, Any]
    ) -> dict[str, Any]:
        # Identity comes from the snapshot; context keys never override it.
        return {**context, "tenant_id": snapshot.tenant_id, "user_id": snapshot.user_id}

    def _rule_applies(
        self,
        rule: SnapshotRule,
        requested_code: PermissionCode,
        context: dict[str, Any],
        now: datetime,
    ) -> bool:
        if rule.is_expired(now):
            return False
        stored = _stored_code(rule.permission_code)
        if stored is None or not stored.matches(requested_code):
            return False
        try:
            return evaluate_conditions(rule.conditions, context)
        except ConditionEvaluationError as e:
            logger.warning(
                "Data integrity: conditions on %s rule %s (group=%s) are invalid: %s",
                rule.source.value,
                rule.permission_code,
                rule.group_id,
                e.message,
            )
            return False

    @staticmethod
    def _member_groups(
        tenant_id: str,
        memberships: Sequence[UserGroupAssignment],
        groups: Sequence[PermissionGroup],
        now: datetime,
    ) -> dict[str, tuple[PermissionGroup, datetime | None]]:
        """Map group_id -> (group, membership expiry) for usable groups the user belongs to."""
        usable = {g.id: g for g in groups if g.is_usable_in(tenant_id)}
        result: dict[str, tuple[PermissionGroup, datetime | None]] = {}
        for m in memberships:
            group = usable.get(m.group_id)
            if group is None or m.is_expired(now):
                continue
            if m.group_id in result:
                expires_at = _later_expiry(result[m.group_id][1], m.expires_at)
            else:
                expires_at = m.expires_at
            result[m.group_id] = (group, expires_at)
        return result

    async def _load_group_assignments(
        self, group_ids: list[str]
    ) -> list[GroupPermissionAssignment]:
        if not group_ids:
            return []
        return await self._group_permissions_repo.find_by_groups(group_ids)

    async def _load_permissions(self, ids: set[str]) -> dict[str, Permission]:
        if not ids:
            return {}
        found = await self._permissions_repo.find_many_by_ids(sorted(ids))
        return {p.id: p for p in found}

    @staticmethod
    def _direct_rules(
        grants: Sequence[UserDirectPermissionGrant],
        permissions: dict[str, Permission],
    ) -> Iterable[SnapshotRule]:
        for grant in grants:
            permission = permissions.get(grant.permission_id)
            if permission is None:
                logger.warning(
                    "Data integrity: direct grant %s references unknown permission %s",
                    grant.id,
                    grant.permission_id,
                )
                continue
            if permission.is_deleted:
                continue
            yield SnapshotRule(
                source=DecisionSource.DIRECT,
                permission_code=permission.code.value,
                effect=grant.effect,
                conditions=grant.conditions,
                expires_at=grant.expires_at,
            )

    @staticmethod
    def _group_rules(
        assignments: Sequence[GroupPermissionAssignment],
        member_groups: dict[str, tuple[PermissionGroup, datetime | None]],
        permissions: dict[str, Permission],
    ) -> Iterable[SnapshotRule]:
        for assignment in assignments:
            entry = member_groups.get(assignment.group_id)
            if entry is None:
                continue
            group, membership_expires_at = entry
            permission = permissions.get(assignment.permission_id)
            if permission is None:
                logger.warning(
                    "Data integrity: group %s assignment %s references unknown permission %s",
                    group.id,
                    assignment.id,
                    assignment.permission_id,
                )
                continue
            if permission.is_deleted:
                continue
            yield SnapshotRule(
                source=DecisionSource.GROUP,
                permission_code=permission.code.value,
                effect=assignment.effect,
                conditions=assignment.conditions,
                expires_at=membership_expires_at,
                group_id=group.id,
                group_name=group.name,
                priority=group.priority,
            )
