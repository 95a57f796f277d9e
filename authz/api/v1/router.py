"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from authz.api.v1.dependencies.
"""

from fastapi import APIRouter

from authz.api.v1.endpoints import authorize, health

api_router = APIRouter()

api_router.include_router(authorize.router, prefix="/authorize", tags=["authorization"])

health_router = health.router
