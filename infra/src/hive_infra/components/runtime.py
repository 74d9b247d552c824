"""Provider-agnostic container runtime gateway interface."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol


class ContainerRuntime(Protocol):
    """Queries and drives a local container engine and its compose tool.

    Implementations hold no business logic and never retry; callers own the
    retry policy.
    """

    def is_engine_installed(self) -> bool: ...

    def is_engine_running(self) -> bool: ...

    def is_compose_installed(self) -> bool: ...

    def is_available(self) -> bool:
        """Return ``True`` when the engine is installed, running and compose-capable."""
        ...

    def start_services(self, directory: Path, detached: bool = True) -> None:
        """Start the manifest's services. Raises ``ContainerStartFailed``."""
        ...

    def exec_in_service(
        self,
        directory: Path,
        service_name: str,
        command: Sequence[str],
        interactive: bool = False,
        timeout: float | None = None,
    ) -> str:
        """Run ``command`` inside a service and return its stdout.

        Raises ``ContainerExecFailed``.
        """
        ...
