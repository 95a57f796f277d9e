"""Authorization checks: single or batch decision, and effective permissions."""

from typing import Annotated

from fastapi import APIRouter, Depends

from authz.api.v1.dependencies import get_authorization_service, get_tenant_id, get_user_id
from authz.application.services import AuthorizationService
from authz.schemas.authorization import (
    AuthorizeRequest,
    DecisionResponse,
    EffectivePermissionsResponse,
)

router = APIRouter()


@router.post("", response_model=DecisionResponse)
async def authorize(
    body: AuthorizeRequest,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    user_id: Annotated[str, Depends(get_user_id)],
    auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> DecisionResponse:
    """Decide whether a user may perform one code, or any/all of several.

    A deny is a 200 response with allowed=false; malformed codes are 400 and
    storage failures 503.
    """
    subject_tenant = body.tenant_id or tenant_id
    subject_user = body.user_id or user_id
    if body.permission_code is not None:
        decision = await auth_svc.authorize(
            subject_tenant, subject_user, body.permission_code, body.context
        )
    elif body.mode == "all":
        decision = await auth_svc.authorize_all(
            subject_tenant, subject_user, body.permission_codes, body.context
        )
    else:
        decision = await auth_svc.authorize_any(
            subject_tenant, subject_user, body.permission_codes, body.context
        )
    return DecisionResponse(**decision.to_dict())


@router.get("/effective", response_model=EffectivePermissionsResponse)
async def effective_permissions(
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    user_id: Annotated[str, Depends(get_user_id)],
    auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> EffectivePermissionsResponse:
    """List codes the caller holds without request context (menus, feature flags)."""
    codes = await auth_svc.effective_permission_codes(tenant_id, user_id)
    return EffectivePermissionsResponse(
        tenant_id=tenant_id, user_id=user_id, permission_codes=sorted(codes)
    )
