"""Permission catalog service: grouped listing and descriptive edits."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from authz.application.dtos.provisioning import (
    PermissionCatalogItem,
    PermissionCatalogModule,
    PermissionCatalogResource,
)
from authz.application.interfaces.repositories import IPermissionsRepository
from authz.application.interfaces.services import IPermissionCacheInvalidator
from authz.domain.entities import Permission, PermissionMetadata
from authz.domain.exceptions import ResourceNotFoundException

logger = logging.getLogger(__name__)

_UNSET: Any = object()


def _to_item(permission: Permission) -> PermissionCatalogItem:
    return PermissionCatalogItem(
        id=permission.id,
        code=permission.code.value,
        name=permission.name,
        description=permission.description,
        action=permission.action or permission.code.action,
        is_system=permission.is_system,
        is_deprecated=permission.is_deprecated,
    )


class PermissionCatalogService:
    """Read and maintain the permission catalog. Codes are never edited."""

    def __init__(
        self,
        permissions_repo: IPermissionsRepository,
        invalidator: IPermissionCacheInvalidator | None = None,
    ) -> None:
        self._permissions_repo = permissions_repo
        self._invalidator = invalidator

    async def list_by_module(self, include_system: bool = True) -> list[PermissionCatalogModule]:
        """Return permissions grouped by module then resource, each sorted by action."""
        permissions = await self._permissions_repo.list_all()
        tree: dict[str, dict[str, list[Permission]]] = defaultdict(lambda: defaultdict(list))
        for permission in permissions:
            if permission.is_deleted or (permission.is_system and not include_system):
                continue
            module = permission.module or permission.code.module
            resource = permission.resource or permission.code.resource
            tree[module][resource].append(permission)

        return [
            PermissionCatalogModule(
                module=module,
                resources=[
                    PermissionCatalogResource(
                        resource=resource,
                        permissions=[
                            _to_item(p)
                            for p in sorted(items, key=lambda p: (p.action or "", p.code.value))
                        ],
                    )
                    for resource, items in sorted(resources.items())
                ],
            )
            for module, resources in sorted(tree.items())
        ]

    async def update_permission(
        self,
        permission_id: str,
        *,
        name: str | None = None,
        description: str | None = _UNSET,
        metadata: PermissionMetadata | dict[str, Any] | None = None,
    ) -> Permission:
        """Edit name, description or metadata. Pass description=None to clear it.

        Raises:
            ResourceNotFoundException: If the permission does not exist.
            ValidationException: If name is blank.
        """
        permission = await self._get(permission_id)
        if name is not None:
            permission.rename(name)
        if description is not _UNSET:
            permission.describe(description)
        if metadata is not None:
            if not isinstance(metadata, PermissionMetadata):
                metadata = PermissionMetadata.from_dict(metadata)
            permission.update_metadata(metadata)
        return await self._permissions_repo.save(permission)

    async def delete_permission(self, permission_id: str) -> None:
        """Soft-delete a permission; it stops matching in every snapshot.

        Raises:
            ResourceNotFoundException: If the permission does not exist.
            ForbiddenOperationException: If the permission is a system permission.
        """
        permission = await self._get(permission_id)
        permission.soft_delete()
        await self._permissions_repo.save(permission)
        logger.info("Deleted permission %s (%s)", permission.id, permission.code.value)
        if self._invalidator is not None:
            await self._invalidator.invalidate_all()

    async def _get(self, permission_id: str) -> Permission:
        permission = await self._permissions_repo.get_by_id(permission_id)
        if permission is None or permission.is_deleted:
            raise ResourceNotFoundException("permission", permission_id)
        return permission
