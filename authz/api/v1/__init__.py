"""API v1: authorization checks and route protection."""

from authz.api.v1.router import api_router, health_router

__all__ = ["api_router", "health_router"]
