"""Typed configuration loaded from environment variables at startup."""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

logger: logging.Logger = logging.getLogger(__name__)


class DatabaseEngine(StrEnum):
    """Relational database engines that can be provisioned."""

    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    MARIADB = "mariadb"

    @property
    def default_port(self) -> int:
        """Return the engine's standard TCP port."""
        return 5432 if self is DatabaseEngine.POSTGRESQL else 3306

    @property
    def service_name(self) -> str:
        """Return the compose service name used by the engine's template."""
        return "postgres" if self is DatabaseEngine.POSTGRESQL else self.value


class StorageDriver(StrEnum):
    """Object storage backends."""

    MINIO = "minio"
    S3 = "s3"

    @property
    def supports_container(self) -> bool:
        """Only the self-hosted S3-compatible driver can run in a container."""
        return self is StorageDriver.MINIO


class SearchEngine(StrEnum):
    """Search engines that can be provisioned."""

    ELASTICSEARCH = "elasticsearch"
    MEILISEARCH = "meilisearch"
    OPENSEARCH = "opensearch"

    @property
    def default_port(self) -> int:
        return 7700 if self is SearchEngine.MEILISEARCH else 9200

    @property
    def service_name(self) -> str:
        return self.value

    @property
    def health_path(self) -> str:
        """Return the HTTP liveness path probed after the container starts."""
        return "/health" if self is SearchEngine.MEILISEARCH else "/_cluster/health"


class ProvisioningConfig(BaseSettings):
    """Fully validated provisioning configuration.

    All values are sourced from ``HIVE_*`` environment variables (or a
    ``.env`` file) at startup. Raises ``ValidationError`` on missing or
    invalid values.
    """

    model_config = SettingsConfigDict(
        env_prefix="HIVE_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_path: Path
    database_engine: DatabaseEngine | None = None
    database_name: str | None = None
    database_user: str | None = None
    database_password: SecretStr | None = None
    storage_driver: StorageDriver | None = None
    storage_bucket: str | None = None
    storage_region: str | None = None
    search_engine: SearchEngine | None = None
    use_docker: bool = True
    name_prefix: str = "hive"
    compose_command: str = "docker compose"
    compose_file: str = "docker-compose.yml"
    readiness_max_attempts: int = Field(default=30, ge=1)
    readiness_interval_seconds: float = Field(default=2.0, gt=0)
    start_timeout_seconds: float = Field(default=300.0, gt=0)
    command_timeout_seconds: float = Field(default=60.0, gt=0)
    include_admin: bool = False
    include_dashboard: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @property
    def app_name(self) -> str:
        """Return the application directory's base name."""
        return self.app_path.resolve().name

    @classmethod
    def load(cls) -> ProvisioningConfig:
        """Load and validate configuration from the environment.

        Logs each resolved setting at DEBUG level. Secrets are never logged.
        Raises ``pydantic.ValidationError`` on missing or invalid values.
        """
        config = cls()  # type: ignore[call-arg]  # env vars supply required fields
        logger.debug(
            "provisioning_config_loaded",
            extra={
                "app_path": str(config.app_path),
                "database_engine": config.database_engine,
                "storage_driver": config.storage_driver,
                "search_engine": config.search_engine,
                "use_docker": config.use_docker,
                "compose_command": config.compose_command,
            },
        )
        return config
