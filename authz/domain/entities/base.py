"""Identity capability shared by domain entities.

Entities are plain dataclasses declared with eq=False and compose this
mixin for identity semantics: two entities are equal when they have the
same concrete type and id, whatever their other attributes.
"""

from typing import Any


class IdentityMixin:
    """Equality and hashing by (type, id)."""

    id: str

    def same_identity(self, other: Any) -> bool:
        return type(other) is type(self) and other.id == self.id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IdentityMixin):
            return NotImplemented
        return self.same_identity(other)

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))
