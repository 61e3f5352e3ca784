"""Readiness gate for a freshly started database container.

Docker's health status and the database's ability to serve queries are
separate signals: pg_isready only checks that the server accepts
connections, while Postgres may still be replaying WAL after an unclean
start. The gate therefore runs two stages, each with its own deadline:

    WAITING_FOR_HEALTH --(port seen)--> PORT_DISCOVERED
            |                                |
            +---------(healthy)--------------+--> HEALTH_CONFIRMED --> QUERY_VERIFIED

Terminal failures: UNHEALTHY, TIMED_OUT, CANCELLED.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING

import httpx

from sqltestutil.errors import (
    HealthTimeoutError,
    HealthUnhealthyError,
    LifecycleError,
    PortDiscoveryError,
    QueryReadinessTimeoutError,
)
from sqltestutil.logging_schema import LogEvent

if TYPE_CHECKING:
    from sqltestutil.infra import ContainerAPI

logger = logging.getLogger(__name__)

QueryProbe = Callable[[], Awaitable[object]]


class ReadinessState(str, Enum):
    """Readiness gate states."""

    WAITING_FOR_HEALTH = "waiting_for_health"
    PORT_DISCOVERED = "port_discovered"
    HEALTH_CONFIRMED = "health_confirmed"
    QUERY_VERIFIED = "query_verified"

    # Terminal failures
    UNHEALTHY = "unhealthy"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class Clock:
    """Monotonic time source. Tests substitute a fake that advances on sleep."""

    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


def host_port(inspect: dict, container_port: int) -> str:
    """Return the first published host port for container_port, or ""."""
    ports = (inspect.get("NetworkSettings") or {}).get("Ports") or {}
    bindings = ports.get(f"{container_port}/tcp") or []
    if not bindings:
        return ""
    return bindings[0].get("HostPort") or ""


class ReadinessGate:
    """Two-stage poller that decides when a container can serve queries."""

    def __init__(
        self,
        containers: ContainerAPI,
        container_port: int,
        poll_interval: float = 0.5,
        clock: Clock | None = None,
    ) -> None:
        self._containers = containers
        self._container_port = container_port
        self._poll_interval = poll_interval
        self._clock = clock or Clock()
        self.state = ReadinessState.WAITING_FOR_HEALTH
        self.port = ""

    async def wait_for_health(self, container_id: str, timeout: float) -> str:
        """Stage A: poll Docker until the container reports healthy.

        Returns the discovered host port.

        Raises:
            HealthTimeoutError: Deadline passed before healthy.
            HealthUnhealthyError: Docker reported unhealthy.
            PortDiscoveryError: Healthy, but no host port was ever published.
            LifecycleError: Inspect failed or the container disappeared.
            asyncio.CancelledError: The calling task was cancelled.
        """
        deadline = self._clock.now() + timeout
        try:
            while True:
                await self._clock.sleep(self._poll_interval)

                if self._clock.now() > deadline:
                    self.state = ReadinessState.TIMED_OUT
                    raise HealthTimeoutError(timeout)

                inspect = await self._inspect(container_id)

                if not self.port:
                    self.port = host_port(inspect, self._container_port)
                    if self.port:
                        self.state = ReadinessState.PORT_DISCOVERED
                        logger.debug(
                            "Discovered host port",
                            extra={
                                "event": LogEvent.PORT_DISCOVERED,
                                "container": container_id,
                                "port": self.port,
                            },
                        )

                health = (inspect.get("State") or {}).get("Health")
                if health is None:
                    # Health check not yet initialized
                    continue

                status = health.get("Status")
                if status == "unhealthy":
                    self.state = ReadinessState.UNHEALTHY
                    raise HealthUnhealthyError()
                if status == "healthy":
                    break
                # "starting" or unknown: keep waiting
        except asyncio.CancelledError:
            self.state = ReadinessState.CANCELLED
            raise

        if not self.port:
            raise PortDiscoveryError()

        self.state = ReadinessState.HEALTH_CONFIRMED
        logger.info(
            "Container healthy",
            extra={
                "event": LogEvent.CONTAINER_HEALTHY,
                "container": container_id,
                "port": self.port,
            },
        )
        return self.port

    async def wait_for_queries(self, probe: QueryProbe, timeout: float) -> None:
        """Stage B: run probe until it returns 1, on a fresh deadline.

        Probe errors mean "not ready yet"; the last one is attached to the
        timeout error.

        Raises:
            QueryReadinessTimeoutError: Deadline passed without a successful probe.
            asyncio.CancelledError: The calling task was cancelled.
        """
        deadline = self._clock.now() + timeout
        last_error: Exception | None = None

        try:
            while self._clock.now() < deadline:
                try:
                    result = await probe()
                except Exception as e:
                    last_error = e
                else:
                    if result == 1:
                        self.state = ReadinessState.QUERY_VERIFIED
                        return
                    last_error = ValueError(f"Unexpected probe result: {result!r}")
                logger.debug("Database not ready yet: %s", last_error)
                await self._clock.sleep(self._poll_interval)
        except asyncio.CancelledError:
            self.state = ReadinessState.CANCELLED
            raise

        self.state = ReadinessState.TIMED_OUT
        raise QueryReadinessTimeoutError(timeout, last_error) from last_error

    async def _inspect(self, container_id: str) -> dict:
        try:
            inspect = await self._containers.inspect(container_id)
        except httpx.HTTPError as e:
            raise LifecycleError(f"Failed to inspect container {container_id}: {e}") from e
        if inspect is None:
            raise LifecycleError(f"Container {container_id} disappeared while starting")
        return inspect
