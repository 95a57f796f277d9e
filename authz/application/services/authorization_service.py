"""Authorization service: the decision entry point for callers.

Validates the requested code, reads the user's permission snapshot
(through the cache when one is configured), asks the resolver for a
Decision and records the check in the audit log.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from authz.application.dtos.audit_log import PermissionAuditEntry
from authz.application.dtos.decision import Decision
from authz.application.dtos.snapshot import PermissionSnapshot
from authz.application.interfaces.repositories import IPermissionAuditLogRepository
from authz.application.interfaces.services import ICacheService, IPermissionResolver
from authz.domain.exceptions import AuthorizationException, ValidationException
from authz.domain.value_objects import PermissionCode
from authz.infrastructure.cache.invalidator import SnapshotCacheInvalidator
from authz.infrastructure.cache.keys import permission_key
from authz.shared.telemetry.tracing import add_span_attributes, traced
from authz.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)


def _parse_codes(codes: Sequence[str]) -> list[PermissionCode]:
    if not codes:
        raise ValidationException("At least one permission code is required", field="permission_codes")
    return [PermissionCode.create(c) for c in codes]


class AuthorizationService:
    """Centralized permission checking; uses cache when available (5 min TTL typical).

    Repository failures raised by the resolver propagate as
    RepositoryException; they are never turned into a deny.
    """

    def __init__(
        self,
        permission_resolver: IPermissionResolver,
        cache: ICacheService | None = None,
        cache_ttl: int = 300,
        audit_log: IPermissionAuditLogRepository | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.permission_resolver = permission_resolver
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.audit_log = audit_log
        self._clock = clock
        self._invalidator = SnapshotCacheInvalidator(cache)

    @traced("authz.authorize")
    async def authorize(
        self,
        tenant_id: str,
        user_id: str,
        permission_code: str,
        context: dict[str, Any] | None = None,
    ) -> Decision:
        """Decide whether user may perform permission_code in tenant.

        Raises:
            ValidationException: If permission_code is malformed (before any storage access).
            RepositoryException: If storage fails.
        """
        code = PermissionCode.create(permission_code)
        now = self._clock()
        snapshot = await self.get_snapshot(tenant_id, user_id, now)
        decision = self.permission_resolver.decide(snapshot, code, context or {}, now)
        add_span_attributes(
            **{
                "authz.tenant_id": tenant_id,
                "authz.user_id": user_id,
                "authz.permission_code": code.value,
                "authz.allowed": decision.allowed,
                "authz.matched_via": decision.matched_via.value,
            }
        )
        await self._record(tenant_id, user_id, code.value, decision, context, now)
        return decision

    async def require(
        self,
        tenant_id: str,
        user_id: str,
        permission_code: str,
        context: dict[str, Any] | None = None,
    ) -> Decision:
        """Return the allowing Decision or raise AuthorizationException."""
        decision = await self.authorize(tenant_id, user_id, permission_code, context)
        if not decision.allowed:
            raise AuthorizationException(permission_code=permission_code, reason=decision.reason)
        return decision

    async def authorize_any(
        self,
        tenant_id: str,
        user_id: str,
        permission_codes: Sequence[str],
        context: dict[str, Any] | None = None,
    ) -> Decision:
        """Allow when at least one code is allowed; returns the first allowing decision.

        Every code is validated before any is evaluated. When none is
        allowed the last denying decision is returned.
        """
        codes = _parse_codes(permission_codes)
        for code in codes:
            decision = await self.authorize(tenant_id, user_id, code.value, context)
            if decision.allowed:
                return decision
        return decision

    async def authorize_all(
        self,
        tenant_id: str,
        user_id: str,
        permission_codes: Sequence[str],
        context: dict[str, Any] | None = None,
    ) -> Decision:
        """Allow only when every code is allowed; returns the first denying decision."""
        codes = _parse_codes(permission_codes)
        for code in codes:
            decision = await self.authorize(tenant_id, user_id, code.value, context)
            if not decision.allowed:
                return decision
        return decision

    async def effective_permission_codes(self, tenant_id: str, user_id: str) -> set[str]:
        """Return stored codes the user holds without request context (e.g. for menus)."""
        now = self._clock()
        snapshot = await self.get_snapshot(tenant_id, user_id, now)
        return self.permission_resolver.allowed_codes(snapshot, now)

    async def get_snapshot(
        self, tenant_id: str, user_id: str, now: datetime
    ) -> PermissionSnapshot:
        """Return the user's snapshot, from cache when present."""
        if not (self.cache and self.cache.is_available()):
            return await self.permission_resolver.load_snapshot(tenant_id, user_id, now)

        key = permission_key(tenant_id, user_id)
        cached = await self.cache.get(key)
        if cached is not None:
            try:
                return PermissionSnapshot.from_dict(cached)
            except (KeyError, TypeError, ValueError):
                logger.warning("Discarding malformed cached snapshot %s", key)
                await self.cache.delete(key)

        snapshot = await self.permission_resolver.load_snapshot(tenant_id, user_id, now)
        await self.cache.set(key, snapshot.to_dict(), ttl=self.cache_ttl)
        return snapshot

    async def invalidate_user(self, tenant_id: str, user_id: str) -> None:
        """Invalidate the cached snapshot of one user in one tenant."""
        await self._invalidator.invalidate_user(tenant_id, user_id)

    async def invalidate_user_everywhere(self, user_id: str) -> None:
        """Invalidate a user's snapshots in every tenant (tenant-less direct grants)."""
        await self._invalidator.invalidate_user_everywhere(user_id)

    async def invalidate_tenant(self, tenant_id: str) -> None:
        """Invalidate all cached snapshots for a tenant."""
        await self._invalidator.invalidate_tenant(tenant_id)

    async def invalidate_all(self) -> None:
        """Invalidate every cached snapshot (system-wide group or catalog change)."""
        await self._invalidator.invalidate_all()

    async def _record(
        self,
        tenant_id: str,
        user_id: str,
        permission_code: str,
        decision: Decision,
        context: dict[str, Any] | None,
        now: datetime,
    ) -> None:
        if self.audit_log is None:
            return
        entry = PermissionAuditEntry(
            tenant_id=tenant_id,
            user_id=user_id,
            permission_code=permission_code,
            allowed=decision.allowed,
            matched_via=decision.matched_via.value,
            reason=decision.reason,
            context=context,
            checked_at=now,
        )
        try:
            await self.audit_log.log(entry)
        except Exception:
            logger.exception(
                "Failed to write permission audit entry (tenant=%s user=%s code=%s)",
                tenant_id,
                user_id,
                permission_code,
            )
