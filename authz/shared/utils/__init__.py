"""Shared utilities: datetime and id generators."""

from authz.shared.utils.datetime import ensure_utc, has_expired, utc_now
from authz.shared.utils.generators import generate_cuid, tenant_prefix

__all__ = [
    "ensure_utc",
    "generate_cuid",
    "has_expired",
    "tenant_prefix",
    "utc_now",
]
