"""Domain exceptions for the authorization engine.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class AuthzException(Exception):
    """Base exception for all authorization engine errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(AuthzException):
    """Raised when input validation fails (e.g. malformed permission code)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthorizationException(AuthzException):
    """Raised when the resolver denies the requested permission code."""

    def __init__(
        self,
        permission_code: str | None = None,
        reason: str | None = None,
        message: str = "Permission denied",
    ) -> None:
        """Initialize with optional permission code and denial reason.

        Args:
            permission_code: Code that was requested (e.g. 'stock.products.read').
            reason: Reason reported by the resolver decision.
            message: Human-readable message; default used when code omitted.
        """
        if permission_code:
            message = f"Permission denied: {permission_code}"
        details: dict[str, Any] = {}
        if permission_code:
            details["permission_code"] = permission_code
        if reason:
            details["reason"] = reason
        super().__init__(message, "PERMISSION_DENIED", details)


class ForbiddenOperationException(AuthzException):
    """Raised when an administrative mutation is not allowed (e.g. editing a system group)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "FORBIDDEN_OPERATION", details)


class ResourceNotFoundException(AuthzException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'permission_group', 'permission').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class DuplicateAssignmentException(AuthzException):
    """Raised when creating a row that violates a uniqueness rule (slug, assignment)."""

    def __init__(self, message: str, assignment_type: str, details_extra: dict[str, Any] | None = None) -> None:
        """Initialize with message and assignment context.

        Args:
            message: Human-readable description (e.g. 'Group slug already exists in tenant').
            assignment_type: 'group_slug', 'group_permission', 'user_group' or 'direct_grant'.
            details_extra: Optional extra keys (e.g. group_id, permission_id).
        """
        details = dict(details_extra or {})
        details["assignment_type"] = assignment_type
        super().__init__(message, "DUPLICATE_ASSIGNMENT", details)


class CyclicGroupHierarchyException(AuthzException):
    """Raised when a parent assignment would create a cycle in the group tree."""

    def __init__(self, group_id: str, parent_id: str) -> None:
        super().__init__(
            "Cannot create circular reference in group hierarchy",
            "CYCLIC_GROUP_HIERARCHY",
            {"group_id": group_id, "parent_id": parent_id},
        )


class RepositoryException(AuthzException):
    """Raised when the storage layer fails during a read or write.

    Never converted into a deny decision: callers decide whether to fail
    open or closed.
    """

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        details: dict[str, Any] = {"operation": operation}
        if cause is not None:
            details["cause"] = type(cause).__name__
        super().__init__(
            f"Storage failure during {operation}",
            "REPOSITORY_ERROR",
            details,
        )


class ConditionEvaluationError(AuthzException):
    """Raised when a stored condition predicate is malformed.

    Internal to the resolver: it is logged and treated as a non-match.
    """

    def __init__(self, message: str, conditions: Any = None) -> None:
        super().__init__(
            message,
            "CONDITION_EVALUATION_ERROR",
            {"conditions": conditions} if conditions is not None else {},
        )
