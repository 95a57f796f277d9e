"""PermissionCode value object: hierarchical, wildcard-capable capability identifier.

Format: ``module[.resource[.action[.scope]]]`` (e.g. 'stock.products.read',
'hr.employees.read.all', 'stock.*.read'). Omitted resource/action default
to the '_root' sentinel, so 'stock' means module-level (menu) access.
"""

import re
from dataclasses import dataclass, field
from typing import ClassVar

from authz.domain.exceptions import ValidationException

ROOT_SEGMENT = "_root"
WILDCARD = "*"
SEPARATOR = "."
MIN_SEGMENTS = 1
MAX_SEGMENTS = 4

_SEGMENT_RE = re.compile(r"^[a-z0-9*_-]+$", re.IGNORECASE)


def _format_error(value: object) -> str | None:
    """Return a reason string when value is not a valid code, else None."""
    if not isinstance(value, str) or not value:
        return "Permission code must be a non-empty string"
    segments = value.split(SEPARATOR)
    if not MIN_SEGMENTS <= len(segments) <= MAX_SEGMENTS:
        return (
            f"Permission code must have {MIN_SEGMENTS}-{MAX_SEGMENTS} segments "
            f"(module[.resource[.action[.scope]]]), got {len(segments)}"
        )
    for segment in segments:
        if not segment:
            return "Permission code segments must not be empty"
        if not _SEGMENT_RE.match(segment):
            return (
                f"Invalid permission code segment {segment!r}: "
                "allowed characters are letters, digits, '*', '_' and '-'"
            )
    return None


def _segment_matches(left: str, right: str) -> bool:
    return left == WILDCARD or right == WILDCARD or left == right


@dataclass(frozen=True)
class PermissionCode:
    """Value object for a permission code. Immutable once constructed.

    Validation runs on construction and raises ValidationException; input
    is never normalized. Matching is symmetric: a wildcard on either side
    matches the corresponding segment of the other code. Scope is
    descriptive and is not part of the match.
    """

    value: str
    module: str = field(init=False)
    resource: str = field(init=False)
    action: str = field(init=False)
    scope: str | None = field(init=False)
    is_wildcard: bool = field(init=False)

    MATCHED_SEGMENTS: ClassVar[tuple[str, ...]] = ("module", "resource", "action")

    def __post_init__(self) -> None:
        error = _format_error(self.value)
        if error:
            raise ValidationException(error, field="permission_code")
        segments = self.value.split(SEPARATOR)
        padded = segments + [ROOT_SEGMENT] * (3 - len(segments))
        object.__setattr__(self, "module", padded[0])
        object.__setattr__(self, "resource", padded[1])
        object.__setattr__(self, "action", padded[2])
        object.__setattr__(self, "scope", segments[3] if len(segments) == MAX_SEGMENTS else None)
        object.__setattr__(self, "is_wildcard", WILDCARD in segments)

    @classmethod
    def create(cls, value: str) -> "PermissionCode":
        """Parse value into a PermissionCode.

        Raises:
            ValidationException: If value is malformed.
        """
        return cls(value)

    @classmethod
    def create_from_parts(cls, module: str, resource: str, action: str) -> "PermissionCode":
        """Compose a code from module, resource and action segments."""
        return cls(SEPARATOR.join((module, resource, action)))

    @staticmethod
    def is_valid(value: str) -> bool:
        """Return True when value would be accepted by create()."""
        return _format_error(value) is None

    def matches(self, other: "PermissionCode") -> bool:
        """Return True if this code and other grant the same capability.

        Two concrete codes match only when their values are equal. When
        either side holds a wildcard, module/resource/action are compared
        pairwise and '*' on either side matches.
        """
        if not self.is_wildcard and not other.is_wildcard:
            return self.value == other.value
        return all(
            _segment_matches(getattr(self, name), getattr(other, name))
            for name in self.MATCHED_SEGMENTS
        )

    def equals(self, other: "PermissionCode") -> bool:
        """Strict equality of the raw value."""
        return self.value == other.value

    def __str__(self) -> str:
        return self.value
