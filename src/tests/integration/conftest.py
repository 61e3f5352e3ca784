"""Integration test fixtures.

These tests talk to a real Docker daemon (SQLTESTUTIL_DOCKER_HOST, default
unix:///var/run/docker.sock) and are skipped when it is unreachable.
"""

import os

import httpx
import pytest

from sqltestutil.config import DockerConfig
from sqltestutil.infra import ContainerAPI, DockerClient

# Postgres major version used by the tests; override for a local cache
POSTGRES_VERSION = os.getenv("SQLTESTUTIL_TEST_POSTGRES_VERSION", "16")


def _docker_reachable(config: DockerConfig) -> bool:
    host = config.host
    try:
        if host.startswith("unix://"):
            transport = httpx.HTTPTransport(uds=host.replace("unix://", ""))
            with httpx.Client(transport=transport, base_url="http://localhost", timeout=2) as client:
                return client.get("/_ping").status_code == 200
        with httpx.Client(base_url=host.replace("tcp://", "http://"), timeout=2) as client:
            return client.get("/_ping").status_code == 200
    except httpx.HTTPError:
        return False


@pytest.fixture(autouse=True)
def require_docker() -> None:
    """Skip integration tests when no Docker daemon is available."""
    if not _docker_reachable(DockerConfig()):
        pytest.skip("Docker daemon not reachable")


@pytest.fixture
def postgres_version() -> str:
    return POSTGRES_VERSION


@pytest.fixture
async def container_api():
    """ContainerAPI with a fresh client, closed after the test."""
    async with DockerClient(DockerConfig()) as docker:
        yield ContainerAPI(docker)
