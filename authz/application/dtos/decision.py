"""Decision returned by the resolver and the authorization facade."""

from dataclasses import dataclass
from typing import Any

from authz.domain.enums import DecisionSource


@dataclass(frozen=True)
class Decision:
    """Outcome of one authorization check.

    matched_code is the stored permission code that decided the request
    (None for default deny); group_id is set when matched_via is GROUP.
    """

    allowed: bool
    matched_via: DecisionSource
    reason: str
    matched_code: str | None = None
    group_id: str | None = None

    @classmethod
    def default_deny(cls, requested_code: str) -> "Decision":
        return cls(
            allowed=False,
            matched_via=DecisionSource.DEFAULT,
            reason=f"No grant or group assignment matches {requested_code}",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "allowed": self.allowed,
            "matched_via": self.matched_via.value,
            "reason": self.reason,
            "matched_code": self.matched_code,
            "group_id": self.group_id,
        }
