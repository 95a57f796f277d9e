"""Permission catalog entity.

Binds a PermissionCode to descriptive metadata. Read-mostly: only name,
description and metadata change after creation; the code never does.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from authz.domain.entities.base import IdentityMixin
from authz.domain.exceptions import ForbiddenOperationException, ValidationException
from authz.domain.value_objects.permission_code import PermissionCode
from authz.shared.utils.datetime import utc_now

PERMISSION_METADATA_VERSION = 1


@dataclass(frozen=True)
class PermissionMetadata:
    """Typed subset of permission metadata consumed by the engine.

    Only `deprecated` is interpreted; every other key is carried as an
    opaque pass-through blob in `extra`.
    """

    schema_version: int = PERMISSION_METADATA_VERSION
    deprecated: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> "PermissionMetadata":
        data = dict(raw or {})
        schema_version = data.pop("schema_version", PERMISSION_METADATA_VERSION)
        deprecated = data.pop("deprecated", False) is True
        return cls(schema_version=int(schema_version), deprecated=deprecated, extra=data)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "schema_version": self.schema_version,
            "deprecated": self.deprecated,
        }


@dataclass(eq=False)
class Permission(IdentityMixin):
    """Domain entity for a catalog permission.

    module/resource/action are derived from the code when not given.
    System permissions are seeded, may have descriptive fields edited, and
    cannot be deleted.
    """

    id: str
    code: PermissionCode
    name: str
    description: str | None = None
    module: str | None = None
    resource: str | None = None
    action: str | None = None
    is_system: bool = False
    metadata: PermissionMetadata = field(default_factory=PermissionMetadata)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    deleted_at: datetime | None = None

    def __post_init__(self) -> None:
        self.module = self.module or self.code.module
        self.resource = self.resource or self.code.resource
        self.action = self.action or self.code.action
        self.validate()

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "code" and "code" in self.__dict__ and value != self.__dict__["code"]:
            raise ForbiddenOperationException(
                "Permission code is immutable", {"permission_id": self.__dict__.get("id")}
            )
        super().__setattr__(name, value)

    def validate(self) -> None:
        """Validate permission business rules. Raises ValidationException if invalid."""
        if not self.id:
            raise ValidationException("Permission ID is required", field="id")
        if not self.name or not self.name.strip():
            raise ValidationException("Permission name is required", field="name")

    @property
    def is_deprecated(self) -> bool:
        return self.metadata.deprecated

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def matches(self, code: PermissionCode) -> bool:
        """Return True if this permission's code matches code (symmetric wildcard rule)."""
        return self.code.matches(code)

    def rename(self, name: str) -> None:
        if not name or not name.strip():
            raise ValidationException("Permission name is required", field="name")
        self.name = name.strip()
        self._touch()

    def describe(self, description: str | None) -> None:
        self.description = description
        self._touch()

    def update_metadata(self, metadata: PermissionMetadata) -> None:
        self.metadata = metadata
        self._touch()

    def soft_delete(self, when: datetime | None = None) -> None:
        """Mark the permission deleted. System permissions cannot be deleted.

        Raises:
            ForbiddenOperationException: If the permission is a system permission.
        """
        if self.is_system:
            raise ForbiddenOperationException(
                "System permissions cannot be deleted",
                {"permission_id": self.id, "code": self.code.value},
            )
        self.deleted_at = when or utc_now()
        self._touch()

    def _touch(self) -> None:
        self.updated_at = utc_now()
