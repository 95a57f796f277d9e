"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for the caller identity, DB sessions and
application services. Routes depend only on these dependencies, not on
infrastructure directly.
"""

from __future__ import annotations

import re
from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from authz.application.dtos.decision import Decision
from authz.application.services import AuthorizationService, PermissionResolver
from authz.core.config import get_settings
from authz.infrastructure.persistence.database import get_db_transactional, read_session_scope
from authz.infrastructure.persistence.repositories import (
    DirectGrantRepository,
    GroupPermissionRepository,
    PermissionAuditLogRepository,
    PermissionGroupRepository,
    PermissionRepository,
    UserGroupRepository,
)

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")


def _header_value(request: Request, name: str) -> str:
    value = request.headers.get(name)
    if not value:
        raise HTTPException(status_code=400, detail=f"Missing required header: {name}")
    if not _IDENTIFIER_RE.fullmatch(value):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid {name} (use alphanumeric, hyphen, underscore; max 64 characters)",
        )
    return value


def get_tenant_id(request: Request) -> str:
    """Tenant of the current request, from the configured tenant header."""
    return _header_value(request, get_settings().tenant_header_name)


def get_user_id(request: Request) -> str:
    """Caller of the current request, from the configured user header."""
    return _header_value(request, get_settings().user_header_name)


def get_cache(request: Request):
    """Snapshot cache created at startup (None when disabled)."""
    return getattr(request.app.state, "cache", None)


async def get_permission_resolver() -> AsyncIterator[PermissionResolver]:
    """Resolver over task-scoped read sessions; cache hits open no session."""
    async with read_session_scope() as session:
        yield PermissionResolver(
            permissions_repo=PermissionRepository(session),
            groups_repo=PermissionGroupRepository(session),
            group_permissions_repo=GroupPermissionRepository(session),
            user_groups_repo=UserGroupRepository(session),
            direct_grants_repo=DirectGrantRepository(session),
        )


async def get_authorization_service(
    request: Request,
    resolver: Annotated[PermissionResolver, Depends(get_permission_resolver)],
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> AuthorizationService:
    """Build AuthorizationService with resolver, optional cache and audit log."""
    settings = get_settings()
    return AuthorizationService(
        permission_resolver=resolver,
        cache=get_cache(request),
        cache_ttl=settings.cache_ttl_permissions,
        audit_log=PermissionAuditLogRepository(db) if settings.audit_enabled else None,
    )


def require_permission(permission_code: str):
    """Dependency factory: require that the caller holds permission_code in the request tenant.

    Raises AuthorizationException (403) on deny; returns the allowing Decision.
    """

    async def _require(
        request: Request,
        tenant_id: Annotated[str, Depends(get_tenant_id)],
        user_id: Annotated[str, Depends(get_user_id)],
        auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
    ) -> Decision:
        context = {"path_params": dict(request.path_params)}
        return await auth_svc.require(tenant_id, user_id, permission_code, context)

    return _require
