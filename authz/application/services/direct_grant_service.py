"""Direct grant service: grant, update and revoke per-user permissions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from authz.application.dtos.provisioning import DirectGrantInput
from authz.application.interfaces.repositories import (
    IPermissionsRepository,
    IUserDirectPermissionGrantsRepository,
)
from authz.application.interfaces.services import IPermissionCacheInvalidator
from authz.application.services.common import (
    ensure_future_expiry,
    parse_effect,
    validate_conditions,
)
from authz.domain.entities import UserDirectPermissionGrant
from authz.domain.enums import PermissionEffect
from authz.domain.exceptions import ResourceNotFoundException
from authz.shared.utils.datetime import utc_now
from authz.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class DirectGrantService:
    """Administrative mutations on direct grants. Each one drops the user's cached snapshots."""

    def __init__(
        self,
        grants_repo: IUserDirectPermissionGrantsRepository,
        permissions_repo: IPermissionsRepository,
        invalidator: IPermissionCacheInvalidator | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._grants_repo = grants_repo
        self._permissions_repo = permissions_repo
        self._invalidator = invalidator
        self._clock = clock

    async def grant(self, data: DirectGrantInput) -> UserDirectPermissionGrant:
        """Grant (or deny) a permission to a user; an existing grant for the pair is replaced.

        Raises:
            ResourceNotFoundException: If the permission does not exist.
            ValidationException: If conditions are invalid or expires_at is not in the future.
        """
        permission = await self._permissions_repo.get_by_id(data.permission_id)
        if permission is None or permission.is_deleted:
            raise ResourceNotFoundException("permission", data.permission_id)
        now = self._clock()
        grant = UserDirectPermissionGrant(
            id=generate_cuid(),
            user_id=data.user_id,
            permission_id=permission.id,
            effect=parse_effect(data.effect),
            conditions=validate_conditions(data.conditions),
            expires_at=ensure_future_expiry(data.expires_at, now),
            granted_by=data.granted_by,
            tenant_id=data.tenant_id,
            created_at=now,
        )
        saved = await self._grants_repo.upsert(grant)
        logger.info(
            "Direct %s on %s granted to user %s (tenant=%s)",
            saved.effect.value,
            permission.code.value,
            saved.user_id,
            saved.tenant_id,
        )
        await self._invalidate(saved)
        return saved

    async def update_grant(
        self,
        grant_id: str,
        *,
        effect: PermissionEffect | str | None = None,
        conditions: dict[str, Any] | None = _UNSET,
        expires_at: datetime | None = _UNSET,
    ) -> UserDirectPermissionGrant:
        """Change effect, conditions or expiry. Pass None to clear conditions or expiry.

        Raises:
            ResourceNotFoundException: If the grant does not exist.
        """
        grant = await self._grants_repo.get_by_id(grant_id)
        if grant is None:
            raise ResourceNotFoundException("direct_grant", grant_id)
        if effect is not None:
            grant.effect = parse_effect(effect)
        if conditions is not _UNSET:
            grant.conditions = validate_conditions(conditions)
        if expires_at is not _UNSET:
            grant.expires_at = ensure_future_expiry(expires_at, self._clock())
        saved = await self._grants_repo.upsert(grant)
        await self._invalidate(saved)
        return saved

    async def revoke(self, user_id: str, permission_id: str) -> bool:
        """Delete the user's grant on permission_id. Returns False when none existed.

        Raises:
            ResourceNotFoundException: If the permission does not exist.
        """
        if await self._permissions_repo.get_by_id(permission_id) is None:
            raise ResourceNotFoundException("permission", permission_id)
        removed = await self._grants_repo.revoke(user_id, permission_id)
        if removed and self._invalidator is not None:
            await self._invalidator.invalidate_user_everywhere(user_id)
        return removed

    async def _invalidate(self, grant: UserDirectPermissionGrant) -> None:
        if self._invalidator is None:
            return
        if grant.tenant_id is None:
            await self._invalidator.invalidate_user_everywhere(grant.user_id)
        else:
            await self._invalidator.invalidate_user(grant.tenant_id, grant.user_id)
