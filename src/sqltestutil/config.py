"""sqltestutil configuration using pydantic-settings.

Configuration hierarchy:
- DockerConfig: Container runtime settings
- PostgresConfig: Database container and readiness settings
- LoggingConfig: Logging behavior
- SqlTestUtilConfig: Main config aggregating all sub-configs

Environment variable prefix: SQLTESTUTIL_
Example: SQLTESTUTIL_DOCKER_HOST=tcp://127.0.0.1:2375
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DockerConfig(BaseSettings):
    """Docker runtime configuration."""

    model_config = SettingsConfigDict(env_prefix="SQLTESTUTIL_DOCKER_")

    # Connection
    host: str = Field(
        default="unix:///var/run/docker.sock",
        description="Docker daemon socket or TCP address",
    )

    # Timeouts
    api_timeout: float = Field(default=30.0, description="Docker API call timeout (seconds)")
    image_pull_timeout: float = Field(default=600.0, description="Image pull timeout (seconds)")
    stop_timeout: int = Field(
        default=10,
        description="Grace period before Docker kills a stopping container (seconds)",
    )


class PostgresConfig(BaseSettings):
    """Postgres container configuration.

    The database name and user are fixed per container; only the password
    is generated per instance.
    """

    model_config = SettingsConfigDict(env_prefix="SQLTESTUTIL_POSTGRES_")

    default_image: str = Field(default="postgres", description="Base image without tag")
    database: str = Field(default="pgtest", description="Database created in the container")
    user: str = Field(default="pgtest", description="Admin user created in the container")
    container_port: int = Field(default=5432, description="Postgres port inside the container")
    host_ip: str = Field(default="127.0.0.1", description="Host address the port is bound to")

    # Docker-native health probe
    health_interval: float = Field(default=1.0, description="Health probe interval (seconds)")
    health_timeout: float = Field(default=5.0, description="Health probe timeout (seconds)")
    health_retries: int = Field(default=30, description="Health probe retries before unhealthy")

    # Readiness gate
    poll_interval: float = Field(default=0.5, description="Readiness poll interval (seconds)")
    default_health_check_timeout: float = Field(
        default=30.0,
        description="Per-stage readiness timeout when the caller sets none (seconds)",
    )
    connect_timeout: float = Field(
        default=5.0,
        description="Connect timeout for a single readiness probe (seconds)",
    )


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Supports both text and JSON formats:
    - text: Human-readable for local test runs
    - json: Structured logging for CI log collection
    """

    model_config = SettingsConfigDict(env_prefix="SQLTESTUTIL_LOGGING_")

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="text", description="Log format (text, json)")
    service_name: str = Field(default="sqltestutil", description="Service identifier in logs")


class SqlTestUtilConfig(BaseSettings):
    """Main configuration aggregating all sub-configs.

    Environment variable prefix: SQLTESTUTIL_
    Sub-configs use their own prefixes (SQLTESTUTIL_DOCKER_, etc.)
    """

    model_config = SettingsConfigDict(
        env_prefix="SQLTESTUTIL_",
        env_nested_delimiter="__",
    )

    docker: DockerConfig = Field(default_factory=DockerConfig)
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache
def get_config() -> SqlTestUtilConfig:
    """Get cached configuration singleton."""
    return SqlTestUtilConfig()
