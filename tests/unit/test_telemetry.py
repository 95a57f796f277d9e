"""Tests for telemetry setup and the traced decorator."""

import pytest

from authz.core.config import Settings
from authz.shared.telemetry.telemetry import TelemetryConfig
from authz.shared.telemetry.tracing import traced


def test_disabled_telemetry_builds_no_provider() -> None:
    telemetry = TelemetryConfig.from_settings(Settings(telemetry_enabled=False))
    assert telemetry.setup_telemetry() is None
    telemetry.shutdown()


def test_from_settings_copies_service_identity() -> None:
    telemetry = TelemetryConfig.from_settings(
        Settings(app_name="authz-test", telemetry_environment="ci")
    )
    assert telemetry.service_name == "authz-test"
    assert telemetry.environment == "ci"


async def test_traced_async_returns_result() -> None:
    @traced("test.op")
    async def op(tenant_id: str) -> str:
        return tenant_id.upper()

    assert await op(tenant_id="t1") == "T1"


def test_traced_sync_reraises() -> None:
    @traced()
    def boom() -> None:
        raise RuntimeError("fail")

    with pytest.raises(RuntimeError):
        boom()
