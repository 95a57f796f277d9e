"""Domain value objects: immutable, self-validating, identity-free."""

from authz.domain.value_objects.conditions import (
    CONDITIONS_SCHEMA_VERSION,
    ConditionSet,
    evaluate_conditions,
)
from authz.domain.value_objects.permission_code import (
    ROOT_SEGMENT,
    WILDCARD,
    PermissionCode,
)

__all__ = [
    "CONDITIONS_SCHEMA_VERSION",
    "ConditionSet",
    "PermissionCode",
    "ROOT_SEGMENT",
    "WILDCARD",
    "evaluate_conditions",
]
