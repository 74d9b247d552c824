"""Entry point provisioning local infrastructure for a generated application."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import structlog

from hive_infra.components.database import DatabaseDescriptor
from hive_infra.components.runtime import ContainerRuntime
from hive_infra.components.search import SearchDescriptor
from hive_infra.components.storage import StorageDescriptor
from hive_infra.config import DatabaseEngine, ProvisioningConfig
from hive_infra.credentials import generate_password
from hive_infra.providers.docker.database import DockerDatabaseSetup
from hive_infra.providers.docker.gateway import DockerGateway
from hive_infra.providers.docker.manifest import ManifestGenerator
from hive_infra.providers.docker.readiness import ReadinessPoller
from hive_infra.providers.docker.search import DockerSearchSetup
from hive_infra.providers.docker.storage import DockerStorageSetup

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisioningResult:
    """Final descriptors for every provisioned service family."""

    database: DatabaseDescriptor | None = None
    storage: StorageDescriptor | None = None
    search: SearchDescriptor | None = None

    def to_config(self) -> dict[str, Any]:
        """Merge the descriptors' config keys for the scaffolding writer."""
        config: dict[str, Any] = {}
        for descriptor in (self.database, self.storage, self.search):
            if descriptor is not None:
                config.update(descriptor.to_config())
        config["using_docker"] = any(
            d.using_container for d in (self.database, self.storage, self.search) if d is not None
        )
        return config


class ProvisioningStack:
    """Wires the container gateway and orchestrators and runs them in order."""

    def __init__(
        self,
        config: ProvisioningConfig,
        runtime: ContainerRuntime | None = None,
        generator: ManifestGenerator | None = None,
        poller: ReadinessPoller | None = None,
    ) -> None:
        """Initialise the stack with resolved configuration.

        Collaborators default to real implementations built from ``config``.
        """
        self._config: ProvisioningConfig = config
        self._runtime: ContainerRuntime = runtime or DockerGateway(
            compose_command=config.compose_command,
            start_timeout=config.start_timeout_seconds,
            command_timeout=config.command_timeout_seconds,
        )
        self._generator: ManifestGenerator = generator or ManifestGenerator(
            file_name=config.compose_file
        )
        self._poller: ReadinessPoller = poller or ReadinessPoller(
            self._runtime,
            max_attempts=config.readiness_max_attempts,
            interval_seconds=config.readiness_interval_seconds,
        )

    def run(self) -> ProvisioningResult:
        """Provision the database, storage and search services that are configured."""
        config = self._config
        app_path = config.app_path
        logger.info(
            "provisioning_started",
            extra={"app_path": str(app_path), "use_docker": config.use_docker},
        )

        database = storage = search = None
        if config.database_engine is not None:
            database = self._database_setup().setup(
                self._database_descriptor(config.database_engine), app_path
            )
        if config.storage_driver is not None:
            storage = self._storage_setup().setup(
                StorageDescriptor.for_app(
                    config.storage_driver,
                    config.storage_bucket or config.app_name,
                    region=config.storage_region,
                    using_container=config.use_docker,
                ),
                app_path,
            )
        if config.search_engine is not None:
            search = self._search_setup().setup(
                SearchDescriptor.for_app(config.search_engine, using_container=config.use_docker),
                app_path,
            )
        return ProvisioningResult(database=database, storage=storage, search=search)

    def _database_descriptor(self, engine: DatabaseEngine) -> DatabaseDescriptor:
        config = self._config
        password = (
            config.database_password.get_secret_value()
            if config.database_password is not None
            else generate_password()
        )
        descriptor = DatabaseDescriptor.for_app(
            engine,
            config.app_name,
            password,
            using_container=config.use_docker,
        )
        overrides = {
            field: value
            for field, value in (
                ("database_name", config.database_name),
                ("user", config.database_user),
            )
            if value
        }
        return descriptor.model_copy(update=overrides) if overrides else descriptor

    def _database_setup(self) -> DockerDatabaseSetup:
        return DockerDatabaseSetup(
            self._runtime,
            self._generator,
            self._poller,
            name_prefix=self._config.name_prefix,
            include_admin=self._config.include_admin,
        )

    def _storage_setup(self) -> DockerStorageSetup:
        return DockerStorageSetup(
            self._runtime, self._generator, self._poller, name_prefix=self._config.name_prefix
        )

    def _search_setup(self) -> DockerSearchSetup:
        return DockerSearchSetup(
            self._runtime,
            self._generator,
            self._poller,
            name_prefix=self._config.name_prefix,
            include_dashboard=self._config.include_dashboard,
        )


def main() -> None:
    config = ProvisioningConfig.load()
    level = logging.getLevelName(config.log_level)
    logging.basicConfig(level=level)
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))

    result = ProvisioningStack(config=config).run()
    structlog.get_logger().info(
        "provisioning_complete",
        database=result.database is not None and result.database.using_container,
        storage=result.storage is not None and result.storage.using_container,
        search=result.search is not None and result.search.using_container,
    )
    print(json.dumps(result.to_config(), indent=2))


if __name__ == "__main__":
    main()
