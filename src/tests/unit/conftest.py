"""Fixtures for sqltestutil unit tests."""

from unittest.mock import AsyncMock

import pytest

from sqltestutil.config import PostgresConfig
from sqltestutil.infra import ContainerAPI, ImageAPI
from sqltestutil.readiness import Clock


class FakeClock(Clock):
    """Clock whose time only moves when sleep() is awaited."""

    def __init__(self) -> None:
        self.current = 0.0
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    """Deterministic clock for readiness polling."""
    return FakeClock()


@pytest.fixture
def mock_container_api() -> AsyncMock:
    """Mock ContainerAPI for testing."""
    api = AsyncMock(spec=ContainerAPI)
    api.create = AsyncMock(return_value="abc123")
    api.start = AsyncMock()
    api.inspect = AsyncMock(return_value=None)
    api.stop = AsyncMock()
    api.remove = AsyncMock()
    return api


@pytest.fixture
def mock_image_api() -> AsyncMock:
    """Mock ImageAPI for testing. The image is present by default."""
    api = AsyncMock(spec=ImageAPI)
    api.inspect = AsyncMock(return_value={"Id": "sha256:feed"})
    api.pull = AsyncMock()
    return api


@pytest.fixture
def postgres_config() -> PostgresConfig:
    """Postgres config with defaults, independent of the environment."""
    return PostgresConfig(
        default_image="postgres",
        database="pgtest",
        user="pgtest",
        container_port=5432,
        host_ip="127.0.0.1",
        poll_interval=0.5,
        default_health_check_timeout=30.0,
    )


def inspect_result(health: str | None = None, port: str | None = "54321") -> dict:
    """Build a minimal container inspect payload."""
    state: dict = {"Running": True}
    if health is not None:
        state["Health"] = {"Status": health}
    ports: dict = {}
    if port is not None:
        ports["5432/tcp"] = [{"HostIp": "127.0.0.1", "HostPort": port}]
    return {"Id": "abc123", "State": state, "NetworkSettings": {"Ports": ports}}


@pytest.fixture
def make_inspect():
    """Factory for container inspect payloads."""
    return inspect_result
