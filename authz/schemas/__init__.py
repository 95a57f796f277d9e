"""Pydantic request/response schemas for the API."""

from authz.schemas.authorization import (
    AuthorizeRequest,
    DecisionResponse,
    EffectivePermissionsResponse,
)
from authz.schemas.health import HealthResponse

__all__ = [
    "AuthorizeRequest",
    "DecisionResponse",
    "EffectivePermissionsResponse",
    "HealthResponse",
]
