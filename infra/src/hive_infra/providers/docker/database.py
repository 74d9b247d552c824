"""Docker Compose implementation of DatabaseSetup."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from hive_infra.components.database import DatabaseDescriptor
from hive_infra.components.runtime import ContainerRuntime
from hive_infra.config import DatabaseEngine
from hive_infra.credentials import generate_password
from hive_infra.errors import ContainerStartFailed, Err, Ok, ProvisioningErrorKind
from hive_infra.providers.docker.base import DockerServiceSetup
from hive_infra.providers.docker.manifest import ManifestGenerator
from hive_infra.providers.docker.readiness import ReadinessPoller

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_ADMIN_PORT = 8080


class DockerDatabaseSetup(DockerServiceSetup[DatabaseDescriptor]):
    """MySQL, PostgreSQL or MariaDB in a local container, satisfying ``DatabaseSetup``.

    Renders the engine's compose service (plus phpMyAdmin or Adminer when
    ``include_admin`` is set), starts it and waits for it to answer. A
    readiness timeout does not abort: the container descriptor is still
    returned.
    """

    family = "database"

    def __init__(
        self,
        runtime: ContainerRuntime,
        generator: ManifestGenerator,
        poller: ReadinessPoller,
        name_prefix: str = "hive",
        include_admin: bool = False,
        admin_port: int = DEFAULT_ADMIN_PORT,
        password_factory: Callable[[], str] = generate_password,
    ) -> None:
        super().__init__(runtime, generator, poller, name_prefix)
        self._include_admin: bool = include_admin
        self._admin_port: int = admin_port
        self._password_factory: Callable[[], str] = password_factory

    def setup_container(
        self, descriptor: DatabaseDescriptor, app_path: Path
    ) -> Ok[DatabaseDescriptor] | Err:
        engine = descriptor.engine
        variables = {
            **self.prefix_variables(app_path),
            "db_name": descriptor.database_name,
            "db_user": descriptor.user,
            "db_password": descriptor.password.get_secret_value(),
            "db_root_password": self._password_factory(),
            "db_port": str(descriptor.port),
        }
        if not self._generator.generate(engine.value, app_path, variables):
            return Err(ProvisioningErrorKind.MANIFEST_GENERATION_FAILED, engine.value)

        if self._include_admin:
            self._add_admin_tool(engine, app_path, variables)

        try:
            self._runtime.start_services(app_path, detached=True)
        except ContainerStartFailed as exc:
            return Err(ProvisioningErrorKind.CONTAINER_START_FAILED, str(exc))

        if not self._poller.wait(app_path, engine.service_name):
            logger.warning(
                "database_not_ready",
                extra={"engine": engine.value, "kind": ProvisioningErrorKind.READINESS_TIMEOUT.value},
            )

        return Ok(descriptor.as_container())

    def setup_local(self, descriptor: DatabaseDescriptor) -> DatabaseDescriptor:
        # Database and user creation belong to whoever validated the local server.
        return descriptor.as_local()

    def _add_admin_tool(
        self, engine: DatabaseEngine, app_path: Path, variables: dict[str, str]
    ) -> None:
        tool = "adminer" if engine is DatabaseEngine.POSTGRESQL else "phpmyadmin"
        admin_variables = {
            "container_prefix": variables["container_prefix"],
            "network_name": variables["network_name"],
            "db_service": engine.service_name,
            "admin_port": str(self._admin_port),
        }
        if not self._generator.generate(tool, app_path, admin_variables):
            logger.warning("database_admin_tool_skipped", extra={"tool": tool})
