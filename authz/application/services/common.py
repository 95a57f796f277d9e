"""Write-time checks shared by the provisioning services."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from authz.domain.enums import PermissionEffect
from authz.domain.exceptions import ConditionEvaluationError, ValidationException
from authz.domain.value_objects import ConditionSet
from authz.shared.utils.datetime import ensure_utc


def validate_conditions(raw: Mapping[str, Any] | None) -> dict[str, Any] | None:
    """Return the conditions to store (None when empty).

    Raises:
        ValidationException: If raw is not a valid condition document.
    """
    try:
        condition_set = ConditionSet.parse(raw)
    except ConditionEvaluationError as e:
        raise ValidationException(e.message, field="conditions") from e
    return None if condition_set is None else dict(raw)


def ensure_future_expiry(expires_at: datetime | None, now: datetime) -> datetime | None:
    """Return expires_at as UTC, rejecting instants at or before now."""
    if expires_at is None:
        return None
    expires_at = ensure_utc(expires_at)
    if expires_at <= now:
        raise ValidationException("Expiration date must be in the future", field="expires_at")
    return expires_at


def parse_effect(value: PermissionEffect | str) -> PermissionEffect:
    """Return value as a PermissionEffect, rejecting anything but allow/deny."""
    try:
        return PermissionEffect.parse(value)
    except ValueError as e:
        raise ValidationException("Effect must be 'allow' or 'deny'", field="effect") from e
