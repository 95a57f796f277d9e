"""Application services: decisions, caching facade and provisioning."""

from authz.application.services.authorization_service import AuthorizationService
from authz.application.services.direct_grant_service import DirectGrantService
from authz.application.services.permission_catalog_service import PermissionCatalogService
from authz.application.services.permission_group_service import PermissionGroupService
from authz.application.services.permission_resolver import PermissionResolver
from authz.application.services.tenant_bootstrap_service import (
    TenantBootstrapService,
    admin_group_slug,
    user_group_slug,
)

__all__ = [
    "AuthorizationService",
    "DirectGrantService",
    "PermissionCatalogService",
    "PermissionGroupService",
    "PermissionResolver",
    "TenantBootstrapService",
    "admin_group_slug",
    "user_group_slug",
]
