"""sqltestutil infrastructure layer."""

from sqltestutil.infra.docker import (
    ContainerAPI,
    ContainerConfig,
    DockerClient,
    HealthConfig,
    HostConfig,
    ImageAPI,
    PortBinding,
    ProgressSink,
)
from sqltestutil.infra.postgresql import ping, query_scalar

__all__ = [
    # Docker
    "ContainerAPI",
    "ContainerConfig",
    "DockerClient",
    "HealthConfig",
    "HostConfig",
    "ImageAPI",
    "PortBinding",
    "ProgressSink",
    # PostgreSQL
    "ping",
    "query_scalar",
]
