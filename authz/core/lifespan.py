"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (snapshot cache, telemetry,
DB engine dispose).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from authz.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


async def build_cache(settings: Settings):
    """Return the snapshot cache selected by settings.cache_backend (None for 'none')."""
    if settings.cache_backend == "redis":
        from authz.infrastructure.cache.redis_cache import CacheService

        cache = CacheService()
        await cache.connect()
        return cache
    if settings.cache_backend == "memory":
        from authz.infrastructure.cache.memory_cache import MemoryCache

        return MemoryCache(max_entries=settings.cache_max_entries)
    return None


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: snapshot cache, telemetry (if enabled). Shutdown order:
    cache disconnect, telemetry shutdown, SQL engine dispose.
    """
    settings = get_settings()

    # ---- Startup ----
    app.state.cache = await build_cache(settings)
    logger.info("Permission snapshot cache: %s", settings.cache_backend)

    if settings.telemetry_enabled:
        from authz.infrastructure.persistence.database import get_engine
        from authz.shared.telemetry.telemetry import TelemetryConfig, set_telemetry

        telemetry = TelemetryConfig.from_settings(settings)
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument(app, engine=get_engine(), redis_enabled=settings.redis_enabled)

    yield

    # ---- Shutdown ----
    cache = getattr(app.state, "cache", None)
    if cache is not None and hasattr(cache, "disconnect"):
        await cache.disconnect()
        logger.info("Cache disconnected")
    app.state.cache = None

    from authz.shared.telemetry.telemetry import get_telemetry, set_telemetry

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        set_telemetry(None)
        logger.info("Telemetry shutdown complete")

    from authz.infrastructure.persistence import database

    if getattr(database, "engine", None) is not None:
        await database.engine.dispose()
        logger.info("Database engine disposed")
