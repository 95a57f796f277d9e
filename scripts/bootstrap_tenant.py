"""Create a tenant's default permission groups and, optionally, its first admin.

Usage:
    python -m scripts.bootstrap_tenant <tenant_id> [admin_user_id]
Requires DATABASE_URL. The catalog must already be seeded.
"""

import asyncio
import sys

from authz.application.services import TenantBootstrapService
from authz.core.config import get_settings
from authz.core.lifespan import build_cache
from authz.infrastructure.cache import SnapshotCacheInvalidator
from authz.infrastructure.persistence.database import new_session
from authz.infrastructure.persistence.repositories import (
    GroupPermissionRepository,
    PermissionGroupRepository,
    PermissionRepository,
    UserGroupRepository,
)
from authz.shared.telemetry.logging import setup_logging


async def main() -> None:
    """Bootstrap the given tenant."""
    if len(sys.argv) < 2:
        print(
            "Usage: python -m scripts.bootstrap_tenant <tenant_id> [admin_user_id]",
            file=sys.stderr,
        )
        sys.exit(1)
    tenant_id = sys.argv[1]
    admin_user_id = sys.argv[2] if len(sys.argv) > 2 else None

    settings = get_settings()
    setup_logging()
    cache = await build_cache(settings)

    async with new_session() as session:
        async with session.begin():
            svc = TenantBootstrapService(
                groups_repo=PermissionGroupRepository(session),
                group_permissions_repo=GroupPermissionRepository(session),
                user_groups_repo=UserGroupRepository(session),
                permissions_repo=PermissionRepository(session),
                invalidator=SnapshotCacheInvalidator(cache),
            )
            result = await svc.bootstrap_tenant(tenant_id)
            if admin_user_id:
                await svc.assign_admin(tenant_id, admin_user_id)

    if cache is not None and hasattr(cache, "disconnect"):
        await cache.disconnect()

    state = "created" if result.created else "already present"
    print(f"Tenant {tenant_id}: admin={result.admin_group_id} user={result.user_group_id} ({state})")
    if admin_user_id:
        print(f"Assigned {admin_user_id} to the admin group")


if __name__ == "__main__":
    asyncio.run(main())
