"""Throwaway database containers for tests."""

from sqltestutil.errors import (
    ContainerRemoveError,
    ContainerStopError,
    CredentialGenerationError,
    ErrorCode,
    HealthTimeoutError,
    HealthUnhealthyError,
    ImageResolutionError,
    LifecycleError,
    PortDiscoveryError,
    QueryReadinessTimeoutError,
    ShutdownError,
    SqlTestUtilError,
)
from sqltestutil.postgres import (
    PostgresContainer,
    PostgresProvisioner,
    StartOptions,
    postgres_container,
    start_postgres_container,
)

__all__ = [
    "PostgresContainer",
    "PostgresProvisioner",
    "StartOptions",
    "postgres_container",
    "start_postgres_container",
    # Errors
    "ContainerRemoveError",
    "ContainerStopError",
    "CredentialGenerationError",
    "ErrorCode",
    "HealthTimeoutError",
    "HealthUnhealthyError",
    "ImageResolutionError",
    "LifecycleError",
    "PortDiscoveryError",
    "QueryReadinessTimeoutError",
    "ShutdownError",
    "SqlTestUtilError",
]
