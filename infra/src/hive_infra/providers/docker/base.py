"""Shared container-first, local-fallback control flow for service setup."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel

from hive_infra.components.runtime import ContainerRuntime
from hive_infra.errors import Err, Ok, ProvisioningErrorKind
from hive_infra.providers.docker.manifest import ManifestGenerator, resource_prefix
from hive_infra.providers.docker.readiness import ReadinessPoller

logger: logging.Logger = logging.getLogger(__name__)

DescriptorT = TypeVar("DescriptorT", bound=BaseModel)


class DockerServiceSetup(ABC, Generic[DescriptorT]):
    """Base orchestrator: try the container path, fall back to local.

    Subclasses implement :meth:`setup_container` (returning ``Ok`` or ``Err``)
    and :meth:`setup_local`. No exception crosses :meth:`setup`; the failure
    kind only reaches the logs.
    """

    family: str = "service"

    def __init__(
        self,
        runtime: ContainerRuntime,
        generator: ManifestGenerator,
        poller: ReadinessPoller,
        name_prefix: str = "hive",
    ) -> None:
        """Initialise the orchestrator with its injected collaborators.

        Args:
            runtime: Container runtime gateway.
            generator: Compose manifest generator.
            poller: Readiness poller for started services.
            name_prefix: Namespace for container, volume and network names.
        """
        self._runtime: ContainerRuntime = runtime
        self._generator: ManifestGenerator = generator
        self._poller: ReadinessPoller = poller
        self._name_prefix: str = name_prefix

    def setup(self, descriptor: DescriptorT, app_path: Path) -> DescriptorT:
        """Provision ``descriptor`` for the application at ``app_path``."""
        logger.info(
            f"{self.family}_setup_started",
            extra={"app_path": str(app_path), "container_requested": self._wants_container(descriptor)},
        )
        if not self._wants_container(descriptor):
            return self.setup_local(descriptor)

        if not self.supports_container(descriptor):
            logger.debug(f"{self.family}_container_not_supported", extra={"app_path": str(app_path)})
            return self.setup_local(descriptor)

        if not self._runtime.is_available():
            outcome: Ok[DescriptorT] | Err = Err(ProvisioningErrorKind.ENGINE_UNAVAILABLE)
        else:
            outcome = self._attempt_container(descriptor, app_path)

        if isinstance(outcome, Ok):
            logger.info(f"{self.family}_container_ready", extra={"app_path": str(app_path)})
            return outcome.value

        logger.warning(
            f"{self.family}_falling_back_to_local",
            extra={"kind": outcome.kind.value, "detail": outcome.detail},
        )
        return self.setup_local(descriptor)

    def _attempt_container(self, descriptor: DescriptorT, app_path: Path) -> Ok[DescriptorT] | Err:
        try:
            return self.setup_container(descriptor, app_path)
        except Exception as exc:  # noqa: BLE001 - setup() never raises
            return Err(ProvisioningErrorKind.UNEXPECTED_FAILURE, type(exc).__name__)

    def _wants_container(self, descriptor: DescriptorT) -> bool:
        return bool(getattr(descriptor, "using_container", False))

    def supports_container(self, descriptor: DescriptorT) -> bool:
        """Return whether ``descriptor`` can be provisioned in a container at all."""
        return True

    def prefix_variables(self, app_path: Path) -> dict[str, str]:
        """Return the naming variables every template receives."""
        prefix = resource_prefix(app_path, self._name_prefix)
        return {"container_prefix": prefix, "volume_prefix": prefix, "network_name": prefix}

    @abstractmethod
    def setup_container(self, descriptor: DescriptorT, app_path: Path) -> Ok[DescriptorT] | Err:
        """Provision the service in a local container."""

    @abstractmethod
    def setup_local(self, descriptor: DescriptorT) -> DescriptorT:
        """Return the descriptor for a pre-existing local installation."""
