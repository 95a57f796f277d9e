"""Domain layer: entities, value objects, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from authz.domain.entities import (
    GroupPermissionAssignment,
    Permission,
    PermissionGroup,
    PermissionMetadata,
    UserDirectPermissionGrant,
    UserGroupAssignment,
)
from authz.domain.enums import DecisionSource, PermissionEffect
from authz.domain.exceptions import (
    AuthorizationException,
    AuthzException,
    ConditionEvaluationError,
    CyclicGroupHierarchyException,
    DuplicateAssignmentException,
    ForbiddenOperationException,
    RepositoryException,
    ResourceNotFoundException,
    ValidationException,
)
from authz.domain.value_objects import ConditionSet, PermissionCode

__all__ = [
    # Entities
    "GroupPermissionAssignment",
    "Permission",
    "PermissionGroup",
    "PermissionMetadata",
    "UserDirectPermissionGrant",
    "UserGroupAssignment",
    # Enums
    "DecisionSource",
    "PermissionEffect",
    # Exceptions
    "AuthorizationException",
    "AuthzException",
    "ConditionEvaluationError",
    "CyclicGroupHierarchyException",
    "DuplicateAssignmentException",
    "ForbiddenOperationException",
    "RepositoryException",
    "ResourceNotFoundException",
    "ValidationException",
    # Value objects
    "ConditionSet",
    "PermissionCode",
]
