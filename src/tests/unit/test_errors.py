"""Tests for error handling classes."""

import pytest

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


class TestQueryReadinessTimeoutError:
    """Tests for QueryReadinessTimeoutError."""

    def test_wraps_last_error(self) -> None:
        last = ConnectionRefusedError("connection refused")
        exc = QueryReadinessTimeoutError(30.0, last)

        assert exc.last_error is last
        assert exc.timeout == 30.0
        assert exc.code == ErrorCode.QUERY_READINESS_TIMEOUT
        assert exc.message == (
            "Database not ready after healthcheck passed (timeout: 30.0s): connection refused"
        )

    def test_without_last_error(self) -> None:
        exc = QueryReadinessTimeoutError(5)

        assert exc.last_error is None
        assert exc.message == "Database not ready after healthcheck passed (timeout: 5s)"


class TestHealthTimeoutError:
    """Tests for HealthTimeoutError."""

    def test_message_includes_timeout(self) -> None:
        exc = HealthTimeoutError(2.5)

        assert exc.timeout == 2.5
        assert "2.5s" in str(exc)


class TestShutdownErrors:
    """Stop and remove failures are distinct but share a base class."""

    @pytest.mark.parametrize("error_class", [ContainerStopError, ContainerRemoveError])
    def test_inherits_shutdown_error(self, error_class: type[ShutdownError]) -> None:
        exc = error_class("abc123")

        assert isinstance(exc, ShutdownError)
        assert exc.code == ErrorCode.SHUTDOWN_FAILED
        assert exc.container_id == "abc123"
        assert "abc123" in exc.message

    def test_distinct(self) -> None:
        assert not issubclass(ContainerStopError, ContainerRemoveError)
        assert not issubclass(ContainerRemoveError, ContainerStopError)


class TestErrorCodes:
    """Tests for the error code mapping."""

    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (ImageResolutionError(), ErrorCode.IMAGE_RESOLUTION_FAILED),
            (CredentialGenerationError(), ErrorCode.CREDENTIAL_GENERATION_FAILED),
            (LifecycleError(), ErrorCode.LIFECYCLE_FAILED),
            (HealthTimeoutError(30), ErrorCode.HEALTH_TIMEOUT),
            (HealthUnhealthyError(), ErrorCode.HEALTH_UNHEALTHY),
            (PortDiscoveryError(), ErrorCode.PORT_DISCOVERY_FAILED),
            (QueryReadinessTimeoutError(30), ErrorCode.QUERY_READINESS_TIMEOUT),
            (ShutdownError(), ErrorCode.SHUTDOWN_FAILED),
        ],
    )
    def test_code(self, error: SqlTestUtilError, code: ErrorCode) -> None:
        assert isinstance(error, SqlTestUtilError)
        assert isinstance(error, Exception)
        assert error.code == code
        assert str(error) == error.message

    def test_custom_message(self) -> None:
        exc = LifecycleError("Failed to start container abc123")
        assert exc.message == "Failed to start container abc123"
