"""Error handling module for sqltestutil.

Every failure while provisioning aborts the whole call; no partially
provisioned container is ever returned. The underlying Docker or driver
exception is chained as ``__cause__``.

Usage:
    from sqltestutil.errors import HealthTimeoutError, SqlTestUtilError

    try:
        pg = await start_postgres_container("16")
    except HealthTimeoutError:
        ...

Cancellation is not wrapped: asyncio.CancelledError propagates unchanged
after rollback.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes."""

    IMAGE_RESOLUTION_FAILED = "IMAGE_RESOLUTION_FAILED"
    CREDENTIAL_GENERATION_FAILED = "CREDENTIAL_GENERATION_FAILED"
    LIFECYCLE_FAILED = "LIFECYCLE_FAILED"
    HEALTH_TIMEOUT = "HEALTH_TIMEOUT"
    HEALTH_UNHEALTHY = "HEALTH_UNHEALTHY"
    PORT_DISCOVERY_FAILED = "PORT_DISCOVERY_FAILED"
    QUERY_READINESS_TIMEOUT = "QUERY_READINESS_TIMEOUT"
    SHUTDOWN_FAILED = "SHUTDOWN_FAILED"


class SqlTestUtilError(Exception):
    """Base exception for sqltestutil.

    Attributes:
        code: The error code from ErrorCode enum
        message: Human-readable error message
    """

    def __init__(self, code: ErrorCode, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class ImageResolutionError(SqlTestUtilError):
    """Image inspect or pull failed. Not retried."""

    def __init__(self, message: str = "Failed to resolve image") -> None:
        super().__init__(ErrorCode.IMAGE_RESOLUTION_FAILED, message)


class CredentialGenerationError(SqlTestUtilError):
    """Secure random source failed while generating a password."""

    def __init__(self, message: str = "Failed to generate password") -> None:
        super().__init__(ErrorCode.CREDENTIAL_GENERATION_FAILED, message)


class LifecycleError(SqlTestUtilError):
    """Container create, start or inspect failed."""

    def __init__(self, message: str = "Container lifecycle operation failed") -> None:
        super().__init__(ErrorCode.LIFECYCLE_FAILED, message)


class HealthTimeoutError(SqlTestUtilError):
    """Container did not report healthy before the deadline."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(
            ErrorCode.HEALTH_TIMEOUT,
            f"Timed out after {timeout}s waiting for container to become healthy",
        )


class HealthUnhealthyError(SqlTestUtilError):
    """Docker reported the container health as unhealthy."""

    def __init__(self, message: str = "Container unhealthy") -> None:
        super().__init__(ErrorCode.HEALTH_UNHEALTHY, message)


class PortDiscoveryError(SqlTestUtilError):
    """Container became healthy without exposing its host port."""

    def __init__(self, message: str = "Failed to get assigned port from container") -> None:
        super().__init__(ErrorCode.PORT_DISCOVERY_FAILED, message)


class QueryReadinessTimeoutError(SqlTestUtilError):
    """Database never answered a query after the health check passed.

    Attributes:
        timeout: The stage timeout in seconds
        last_error: Last connection or query error observed, if any
    """

    def __init__(self, timeout: float, last_error: BaseException | None = None) -> None:
        self.timeout = timeout
        self.last_error = last_error
        message = f"Database not ready after healthcheck passed (timeout: {timeout}s)"
        if last_error is not None:
            message = f"{message}: {last_error}"
        super().__init__(ErrorCode.QUERY_READINESS_TIMEOUT, message)


class ShutdownError(SqlTestUtilError):
    """Base class for shutdown failures."""

    def __init__(self, message: str = "Failed to shut down container") -> None:
        super().__init__(ErrorCode.SHUTDOWN_FAILED, message)


class ContainerStopError(ShutdownError):
    """Stopping the container failed during shutdown."""

    def __init__(self, container_id: str) -> None:
        self.container_id = container_id
        super().__init__(f"Failed to stop container {container_id}")


class ContainerRemoveError(ShutdownError):
    """Removing the container failed during shutdown."""

    def __init__(self, container_id: str) -> None:
        self.container_id = container_id
        super().__init__(f"Failed to remove container {container_id}")
