"""Throwaway Postgres containers for tests.

Usage:
    pg = await start_postgres_container("16")
    try:
        engine = create_async_engine(...pg.connection_string()...)
        ...
    finally:
        await pg.shutdown()

or, equivalently:

    async with postgres_container("16") as pg:
        ...

Startup and shutdown together take a few seconds (longer when the image
has not been pulled yet), so start one container per test session or
module rather than per test. A container whose handle is dropped without
shutdown() keeps running; nothing reclaims it in the background.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import httpx

from sqltestutil.config import DockerConfig, PostgresConfig, SqlTestUtilConfig, get_config
from sqltestutil.credentials import random_password
from sqltestutil.errors import ContainerRemoveError, ContainerStopError, LifecycleError
from sqltestutil.images import ensure_image
from sqltestutil.infra import (
    ContainerAPI,
    ContainerConfig,
    DockerClient,
    HealthConfig,
    HostConfig,
    ImageAPI,
    PortBinding,
    ProgressSink,
    query_scalar,
)
from sqltestutil.logging_schema import LogEvent
from sqltestutil.readiness import Clock, ReadinessGate

logger = logging.getLogger(__name__)

DsnProbe = Callable[[str], Awaitable[object]]


@dataclass(frozen=True)
class StartOptions:
    """Options for start_postgres_container.

    Attributes:
        health_check_timeout: Seconds each readiness stage may take.
            Zero, negative or None means the configured default (30s).
        image: Base image without tag, e.g. a private registry mirror.
            Empty means the configured default ("postgres").
        pull_progress: Binary sink for raw image pull output.
            None discards it.
    """

    health_check_timeout: float | None = None
    image: str = ""
    pull_progress: ProgressSink | None = None


@dataclass(frozen=True)
class PostgresContainer:
    """A running Postgres container that is ready to accept queries."""

    id: str
    password: str = field(repr=False)
    port: str
    user: str = "pgtest"
    database: str = "pgtest"
    host: str = "127.0.0.1"
    docker_config: DockerConfig | None = field(default=None, repr=False, compare=False)

    def connection_string(self) -> str:
        """Return a connection URL for the running container."""
        return f"postgres://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"

    async def shutdown(self, containers: ContainerAPI | None = None) -> None:
        """Stop and remove the container.

        Call once per container to avoid orphans. Repeated calls are passed
        through to Docker unguarded.

        Raises:
            ContainerStopError: Docker failed to stop the container.
            ContainerRemoveError: Docker failed to remove the container.
        """
        if containers is not None:
            await self._shutdown(containers)
            return
        async with DockerClient(self.docker_config) as docker:
            await self._shutdown(ContainerAPI(docker))

    async def _shutdown(self, containers: ContainerAPI) -> None:
        try:
            await containers.stop(self.id)
        except httpx.HTTPError as e:
            raise ContainerStopError(self.id) from e
        logger.info(
            "Stopped container",
            extra={"event": LogEvent.CONTAINER_STOPPED, "container": self.id},
        )

        try:
            await containers.remove(self.id)
        except httpx.HTTPError as e:
            raise ContainerRemoveError(self.id) from e
        logger.info(
            "Removed container",
            extra={"event": LogEvent.CONTAINER_REMOVED, "container": self.id},
        )


class _Rollback:
    """Containers created by an in-flight provisioning call.

    run() stops and force-removes each of them. Failures are logged and
    never raised, so they cannot replace the error that triggered rollback.
    """

    def __init__(self, containers: ContainerAPI) -> None:
        self._containers = containers
        self._created: list[str] = []

    def add(self, container_id: str) -> None:
        self._created.append(container_id)

    async def run(self) -> None:
        while self._created:
            container_id = self._created.pop()
            logger.info(
                "Rolling back container",
                extra={"event": LogEvent.CLEANUP_STARTED, "container": container_id},
            )
            try:
                await self._containers.stop(container_id)
            except Exception as e:
                logger.warning(
                    "Error stopping container during rollback: %s",
                    e,
                    extra={
                        "event": LogEvent.CLEANUP_FAILED,
                        "container": container_id,
                        "error_type": type(e).__name__,
                    },
                )
            try:
                await self._containers.remove(container_id, force=True)
            except Exception as e:
                logger.error(
                    "Error removing container during rollback: %s",
                    e,
                    extra={
                        "event": LogEvent.CLEANUP_FAILED,
                        "container": container_id,
                        "error_type": type(e).__name__,
                    },
                )
                continue
            logger.info(
                "Rolled back container",
                extra={"event": LogEvent.CLEANUP_COMPLETED, "container": container_id},
            )


class PostgresProvisioner:
    """Brings up one query-ready Postgres container per start() call."""

    def __init__(
        self,
        containers: ContainerAPI,
        images: ImageAPI,
        config: PostgresConfig | None = None,
        docker_config: DockerConfig | None = None,
        probe: DsnProbe | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._containers = containers
        self._images = images
        self._config = config or get_config().postgres
        self._docker_config = docker_config
        self._probe = probe or self._query_probe
        self._clock = clock or Clock()

    async def start(self, version: str, options: StartOptions | None = None) -> PostgresContainer:
        """Pull, create, start and wait for a Postgres container.

        Raises:
            ImageResolutionError, CredentialGenerationError, LifecycleError,
            HealthTimeoutError, HealthUnhealthyError, PortDiscoveryError,
            QueryReadinessTimeoutError: see sqltestutil.errors.
            asyncio.CancelledError: The calling task was cancelled.
        """
        options = options or StartOptions()
        image_ref = f"{options.image or self._config.default_image}:{version}"
        timeout = self._health_check_timeout(options)

        await ensure_image(self._images, image_ref, options.pull_progress)
        password = random_password()

        rollback = _Rollback(self._containers)
        try:
            container_id = await self._create(image_ref, password)
            rollback.add(container_id)
            await self._start(container_id)

            gate = ReadinessGate(
                self._containers,
                self._config.container_port,
                poll_interval=self._config.poll_interval,
                clock=self._clock,
            )
            port = await gate.wait_for_health(container_id, timeout)

            pg = PostgresContainer(
                id=container_id,
                password=password,
                port=port,
                user=self._config.user,
                database=self._config.database,
                host=self._config.host_ip,
                docker_config=self._docker_config,
            )
            dsn = pg.connection_string()
            await gate.wait_for_queries(lambda: self._probe(dsn), timeout)
        except BaseException as e:
            logger.warning(
                "Provisioning failed: %s",
                e,
                extra={"event": LogEvent.READINESS_FAILED, "error_type": type(e).__name__},
            )
            await rollback.run()
            raise

        logger.info(
            "Postgres container ready",
            extra={
                "event": LogEvent.CONTAINER_READY,
                "container": container_id,
                "image": image_ref,
                "port": port,
            },
        )
        return pg

    def _health_check_timeout(self, options: StartOptions) -> float:
        if options.health_check_timeout is None or options.health_check_timeout <= 0:
            return self._config.default_health_check_timeout
        return options.health_check_timeout

    def _container_config(self, image_ref: str, password: str) -> ContainerConfig:
        cfg = self._config
        port = f"{cfg.container_port}/tcp"
        return ContainerConfig(
            image=image_ref,
            env=[
                f"POSTGRES_DB={cfg.database}",
                f"POSTGRES_PASSWORD={password}",
                f"POSTGRES_USER={cfg.user}",
            ],
            exposed_ports={port: {}},
            healthcheck=HealthConfig(
                test=["CMD-SHELL", f"pg_isready -h 127.0.0.1 -U {cfg.user} -d {cfg.database}"],
                interval=cfg.health_interval,
                timeout=cfg.health_timeout,
                retries=cfg.health_retries,
            ),
            # Let Docker pick a free port to avoid races between parallel runs
            host_config=HostConfig(
                port_bindings={port: [PortBinding(host_ip=cfg.host_ip, host_port="0")]},
            ),
        )

    async def _create(self, image_ref: str, password: str) -> str:
        try:
            container_id = await self._containers.create(self._container_config(image_ref, password))
        except httpx.HTTPError as e:
            raise LifecycleError(f"Failed to create container from {image_ref}: {e}") from e
        logger.info(
            "Created container",
            extra={"event": LogEvent.CONTAINER_CREATED, "container": container_id, "image": image_ref},
        )
        return container_id

    async def _start(self, container_id: str) -> None:
        try:
            await self._containers.start(container_id)
        except httpx.HTTPError as e:
            raise LifecycleError(f"Failed to start container {container_id}: {e}") from e
        logger.info(
            "Started container",
            extra={"event": LogEvent.CONTAINER_STARTED, "container": container_id},
        )

    async def _query_probe(self, dsn: str) -> object:
        return await query_scalar(dsn, connect_timeout=self._config.connect_timeout)


async def start_postgres_container(
    version: str,
    options: StartOptions | None = None,
    config: SqlTestUtilConfig | None = None,
) -> PostgresContainer:
    """Start a new Postgres container and wait until it serves queries.

    version is the image tag, e.g. "16" for postgres:16. The container
    binds a random free host port on 127.0.0.1 and gets a random password;
    use connection_string() to connect and shutdown() to dispose of it.

    A Docker client is opened for this call only and closed before
    returning.
    """
    config = config or get_config()
    async with DockerClient(config.docker) as docker:
        provisioner = PostgresProvisioner(
            ContainerAPI(docker),
            ImageAPI(docker),
            config=config.postgres,
            docker_config=config.docker,
        )
        return await provisioner.start(version, options)


@asynccontextmanager
async def postgres_container(
    version: str,
    options: StartOptions | None = None,
    config: SqlTestUtilConfig | None = None,
) -> AsyncIterator[PostgresContainer]:
    """Start a Postgres container for the duration of the block."""
    pg = await start_postgres_container(version, options, config)
    try:
        yield pg
    finally:
        await pg.shutdown()
