"""Tests for configuration and logging setup."""

import json
import logging

import pytest

from sqltestutil.config import LoggingConfig, PostgresConfig, SqlTestUtilConfig, get_config
from sqltestutil.logging import SqlTestUtilJsonFormatter, setup_logging


class TestConfig:
    """Tests for pydantic-settings configuration."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for key in ("SQLTESTUTIL_DOCKER_HOST", "SQLTESTUTIL_POSTGRES_DEFAULT_IMAGE"):
            monkeypatch.delenv(key, raising=False)

        config = SqlTestUtilConfig()

        assert config.docker.host == "unix:///var/run/docker.sock"
        assert config.postgres.default_image == "postgres"
        assert config.postgres.database == "pgtest"
        assert config.postgres.user == "pgtest"
        assert config.postgres.container_port == 5432
        assert config.postgres.poll_interval == 0.5
        assert config.postgres.default_health_check_timeout == 30.0
        assert config.postgres.health_retries == 30

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SQLTESTUTIL_DOCKER_HOST", "tcp://10.0.0.5:2375")
        monkeypatch.setenv("SQLTESTUTIL_POSTGRES_DEFAULT_IMAGE", "mirror.local/postgres")

        config = SqlTestUtilConfig()

        assert config.docker.host == "tcp://10.0.0.5:2375"
        assert config.postgres.default_image == "mirror.local/postgres"

    def test_get_config_cached(self) -> None:
        get_config.cache_clear()
        assert get_config() is get_config()
        get_config.cache_clear()


class TestLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_text_format(self) -> None:
        setup_logging(LoggingConfig(level="DEBUG", format="text"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert not isinstance(root.handlers[0].formatter, SqlTestUtilJsonFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_json_format(self) -> None:
        setup_logging(LoggingConfig(level="INFO", format="json", service_name="suite"))

        formatter = logging.getLogger().handlers[0].formatter
        assert isinstance(formatter, SqlTestUtilJsonFormatter)

        record = logging.LogRecord(
            "sqltestutil.postgres", logging.INFO, __file__, 10, "Created container", None, None
        )
        record.event = "container_created"
        payload = json.loads(formatter.format(record))

        assert payload["message"] == "Created container"
        assert payload["event"] == "container_created"
        assert payload["service"] == "suite"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "sqltestutil.postgres"

    def test_unknown_level_falls_back_to_info(self) -> None:
        setup_logging(LoggingConfig(level="chatty"))
        assert logging.getLogger().level == logging.INFO


class TestPostgresConfig:
    def test_sub_config_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SQLTESTUTIL_POSTGRES_POLL_INTERVAL", "0.1")
        assert PostgresConfig().poll_interval == 0.1
