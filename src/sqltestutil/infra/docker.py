"""Docker Engine API client.

Provides async Docker API access for images and containers.
Supports both Unix socket and TCP connections.

There is no global client: each public call opens its own DockerClient
and closes it on exit.
"""

import json
import logging
from typing import Protocol

import httpx
from pydantic import BaseModel

from sqltestutil.config import DockerConfig, get_config

logger = logging.getLogger(__name__)

_NANOSECONDS = 1_000_000_000


class ProgressSink(Protocol):
    """Anything accepting raw bytes, e.g. sys.stdout.buffer or an open file."""

    def write(self, data: bytes, /) -> object: ...


# =============================================================================
# Pydantic Models
# =============================================================================


class HealthConfig(BaseModel):
    """Docker-native health probe definition."""

    test: list[str]
    interval: float = 1.0
    timeout: float = 5.0
    retries: int = 3

    model_config = {"frozen": True}

    def to_api(self) -> dict:
        """Convert to Docker API format (durations in nanoseconds)."""
        return {
            "Test": self.test,
            "Interval": int(self.interval * _NANOSECONDS),
            "Timeout": int(self.timeout * _NANOSECONDS),
            "Retries": self.retries,
        }


class PortBinding(BaseModel):
    """Host side of a published port. HostPort "0" lets Docker pick."""

    host_ip: str = "127.0.0.1"
    host_port: str = "0"

    model_config = {"frozen": True}

    def to_api(self) -> dict:
        return {"HostIp": self.host_ip, "HostPort": self.host_port}


class HostConfig(BaseModel):
    """Docker HostConfig for container creation."""

    port_bindings: dict[str, list[PortBinding]] = {}

    model_config = {"frozen": True}

    def to_api(self) -> dict:
        """Convert to Docker API format."""
        return {
            "PortBindings": {
                port: [binding.to_api() for binding in bindings]
                for port, bindings in self.port_bindings.items()
            },
        }


class ContainerConfig(BaseModel):
    """Docker container configuration for creation."""

    image: str
    cmd: list[str] = []
    env: list[str] = []
    exposed_ports: dict[str, dict] = {}
    healthcheck: HealthConfig | None = None
    host_config: HostConfig = HostConfig()

    model_config = {"frozen": True}

    def to_api(self) -> dict:
        """Convert to Docker API JSON format."""
        result: dict = {
            "Image": self.image,
            "ExposedPorts": self.exposed_ports,
            "HostConfig": self.host_config.to_api(),
        }
        if self.cmd:
            result["Cmd"] = self.cmd
        if self.env:
            result["Env"] = self.env
        if self.healthcheck:
            result["Healthcheck"] = self.healthcheck.to_api()
        return result


# =============================================================================
# Docker Client
# =============================================================================


class DockerClient:
    """Async Docker API client.

    Usage:
        async with DockerClient() as docker:
            await ContainerAPI(docker).inspect(container_id)
    """

    def __init__(self, config: DockerConfig | None = None) -> None:
        self._config = config or get_config().docker
        self._host = self._config.host
        self._client: httpx.AsyncClient | None = None

    @property
    def config(self) -> DockerConfig:
        return self._config

    def _create_client(self) -> httpx.AsyncClient:
        """Create a new HTTP client."""
        timeout = self._config.api_timeout
        if self._host.startswith("unix://"):
            socket_path = self._host.replace("unix://", "")
            transport = httpx.AsyncHTTPTransport(uds=socket_path)
            return httpx.AsyncClient(
                transport=transport,
                base_url="http://localhost",
                timeout=timeout,
            )
        else:
            base_url = self._host
            if base_url.startswith("tcp://"):
                base_url = base_url.replace("tcp://", "http://")
            return httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def get(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = self._create_client()
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "DockerClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


# =============================================================================
# Container API
# =============================================================================


class ContainerAPI:
    """Docker Container API operations."""

    def __init__(self, client: DockerClient) -> None:
        self._docker = client

    async def list(self, filters: dict | None = None) -> list[dict]:
        """List containers, including stopped ones."""
        client = await self._docker.get()
        params: dict = {"all": "true"}
        if filters:
            params["filters"] = json.dumps(filters)
        resp = await client.get("/containers/json", params=params)
        resp.raise_for_status()
        return resp.json()

    async def create(self, config: ContainerConfig) -> str:
        """Create a container and return its runtime-assigned id."""
        client = await self._docker.get()
        resp = await client.post("/containers/create", json=config.to_api())
        resp.raise_for_status()
        container_id = resp.json()["Id"]
        logger.debug("Created container: %s", container_id)
        return container_id

    async def start(self, container_id: str) -> None:
        """Start a container."""
        client = await self._docker.get()
        resp = await client.post(f"/containers/{container_id}/start")
        if resp.status_code not in (204, 304):
            resp.raise_for_status()
        logger.debug("Started container: %s", container_id)

    async def inspect(self, container_id: str) -> dict | None:
        """Inspect a container. Returns None if it does not exist."""
        client = await self._docker.get()
        resp = await client.get(f"/containers/{container_id}/json")
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    async def stop(self, container_id: str, timeout: int | None = None) -> None:
        """Stop a container."""
        if timeout is None:
            timeout = self._docker.config.stop_timeout
        client = await self._docker.get()
        # Docker holds the request open for up to the stop grace period
        resp = await client.post(
            f"/containers/{container_id}/stop",
            params={"t": str(timeout)},
            timeout=self._docker.config.api_timeout + timeout,
        )
        if resp.status_code not in (204, 304):
            resp.raise_for_status()
        logger.debug("Stopped container: %s", container_id)

    async def remove(self, container_id: str, force: bool = False) -> None:
        """Remove a container."""
        client = await self._docker.get()
        resp = await client.delete(
            f"/containers/{container_id}",
            params={"force": "true" if force else "false"},
        )
        resp.raise_for_status()
        logger.debug("Removed container: %s", container_id)


# =============================================================================
# Image API
# =============================================================================


class ImageAPI:
    """Docker Image API operations."""

    def __init__(self, client: DockerClient) -> None:
        self._docker = client

    async def inspect(self, image_ref: str) -> dict | None:
        """Inspect a local image. Returns None if it is not present."""
        client = await self._docker.get()
        resp = await client.get(f"/images/{image_ref}/json")
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    async def pull(self, image_ref: str, progress: ProgressSink | None = None) -> None:
        """Pull image from registry, copying the raw progress stream to progress."""
        client = await self._docker.get()

        if ":" in image_ref.rsplit("/", 1)[-1]:
            image, tag = image_ref.rsplit(":", 1)
        else:
            image, tag = image_ref, "latest"

        async with client.stream(
            "POST",
            "/images/create",
            params={"fromImage": image, "tag": tag},
            timeout=self._docker.config.image_pull_timeout,
        ) as resp:
            resp.raise_for_status()
            async for chunk in resp.aiter_bytes():
                if progress is not None:
                    progress.write(chunk)
