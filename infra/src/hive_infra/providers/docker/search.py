"""Docker Compose implementation of SearchSetup."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path

from hive_infra.components.runtime import ContainerRuntime
from hive_infra.components.search import SearchDescriptor
from hive_infra.config import SearchEngine
from hive_infra.credentials import generate_api_key, generate_password
from hive_infra.errors import (
    ContainerExecFailed,
    ContainerStartFailed,
    Err,
    Ok,
    ProvisioningErrorKind,
)
from hive_infra.providers.docker.base import DockerServiceSetup
from hive_infra.providers.docker.manifest import ManifestGenerator
from hive_infra.providers.docker.readiness import ReadinessPoller

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_DASHBOARD_PORT = 5601
ELASTICSEARCH_SERVICE = "elasticsearch"
KIBANA_USER = "kibana_system"


class DockerSearchSetup(DockerServiceSetup[SearchDescriptor]):
    """Elasticsearch, Meilisearch or OpenSearch in a local container.

    Each engine renders its own template; Elasticsearch and OpenSearch can
    layer a companion dashboard (Kibana, OpenSearch Dashboards). Kibana signs
    in as the built-in ``kibana_system`` user, whose password is set once
    Elasticsearch answers. Indexes are left to the application.
    """

    family = "search"

    def __init__(
        self,
        runtime: ContainerRuntime,
        generator: ManifestGenerator,
        poller: ReadinessPoller,
        name_prefix: str = "hive",
        include_dashboard: bool = False,
        dashboard_port: int = DEFAULT_DASHBOARD_PORT,
        password_factory: Callable[[], str] = generate_password,
    ) -> None:
        super().__init__(runtime, generator, poller, name_prefix)
        self._include_dashboard: bool = include_dashboard
        self._dashboard_port: int = dashboard_port
        self._password_factory: Callable[[], str] = password_factory

    def setup_container(
        self, descriptor: SearchDescriptor, app_path: Path
    ) -> Ok[SearchDescriptor] | Err:
        api_key = (
            descriptor.api_key.get_secret_value() if descriptor.api_key is not None else ""
        ) or generate_api_key()
        prefix = self.prefix_variables(app_path)
        port = str(descriptor.port)
        kibana_password = ""

        match descriptor.engine:
            case SearchEngine.ELASTICSEARCH:
                manifests = [
                    ("elasticsearch", {"elasticsearch_password": api_key, "elasticsearch_port": port})
                ]
                if self._include_dashboard:
                    kibana_password = self._password_factory()
                    manifests.append(
                        (
                            "kibana",
                            {
                                "kibana_port": str(self._dashboard_port),
                                "kibana_password": kibana_password,
                            },
                        )
                    )
            case SearchEngine.MEILISEARCH:
                manifests = [
                    ("meilisearch", {"meilisearch_master_key": api_key, "meilisearch_port": port})
                ]
            case SearchEngine.OPENSEARCH:
                manifests = [
                    ("opensearch", {"opensearch_password": api_key, "opensearch_port": port})
                ]
                if self._include_dashboard:
                    manifests.append(
                        ("opensearch-dashboards", {"dashboards_port": str(self._dashboard_port)})
                    )
            case _:
                return Err(ProvisioningErrorKind.UNSUPPORTED_DRIVER, str(descriptor.engine))

        (engine_kind, engine_variables), *companions = manifests
        if not self._generator.generate(engine_kind, app_path, {**prefix, **engine_variables}):
            return Err(ProvisioningErrorKind.MANIFEST_GENERATION_FAILED, engine_kind)
        for kind, variables in companions:
            if not self._generator.generate(kind, app_path, {**prefix, **variables}):
                logger.warning("search_dashboard_skipped", extra={"dashboard": kind})
                kibana_password = ""

        try:
            self._runtime.start_services(app_path, detached=True)
        except ContainerStartFailed as exc:
            return Err(ProvisioningErrorKind.CONTAINER_START_FAILED, str(exc))

        result = descriptor.as_container(api_key)
        if not self._poller.wait_http(f"{result.base_url}{descriptor.engine.health_path}"):
            logger.warning(
                "search_not_ready",
                extra={
                    "engine": descriptor.engine.value,
                    "kind": ProvisioningErrorKind.READINESS_TIMEOUT.value,
                },
            )
        if kibana_password:
            outcome = self.set_kibana_password(app_path, api_key, kibana_password)
            if isinstance(outcome, Err):
                logger.warning(
                    "search_dashboard_credentials_not_set",
                    extra={"kind": outcome.kind.value, "detail": outcome.detail},
                )
        return Ok(result)

    def setup_local(self, descriptor: SearchDescriptor) -> SearchDescriptor:
        return descriptor.as_local()

    def set_kibana_password(
        self, app_path: Path, elastic_password: str, kibana_password: str
    ) -> Ok[str] | Err:
        """Set the ``kibana_system`` password through the Elasticsearch container."""
        body = json.dumps({"password": kibana_password})
        try:
            self._runtime.exec_in_service(
                app_path,
                ELASTICSEARCH_SERVICE,
                [
                    "curl", "-sf", "-X", "POST",
                    "-u", f"elastic:{elastic_password}",
                    "-H", "Content-Type: application/json",
                    f"http://localhost:9200/_security/user/{KIBANA_USER}/_password",
                    "-d", body,
                ],
            )
        except ContainerExecFailed as exc:
            return Err(ProvisioningErrorKind.RESOURCE_CREATION_FAILED, str(exc))
        logger.info("search_dashboard_credentials_set", extra={"user": KIBANA_USER})
        return Ok(KIBANA_USER)
