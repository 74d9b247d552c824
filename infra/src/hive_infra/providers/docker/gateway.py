"""Docker / Docker Compose CLI implementation of ContainerRuntime."""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

from hive_infra.errors import ContainerExecFailed, ContainerStartFailed

logger: logging.Logger = logging.getLogger(__name__)

ProcessRunner = Callable[..., "subprocess.CompletedProcess[str]"]


def run_process(
    args: Sequence[str],
    cwd: Path | None = None,
    timeout: float | None = None,
    capture: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run ``args`` to completion without raising on a non-zero exit."""
    return subprocess.run(
        list(args),
        cwd=cwd,
        timeout=timeout,
        capture_output=capture,
        text=True,
        check=False,
    )


class DockerGateway:
    """Container runtime gateway backed by the ``docker`` CLI.

    Spawns one process per call and keeps no state between calls. A missing
    binary, an ``OSError`` or a timeout is treated the same as a failed
    command.
    """

    def __init__(
        self,
        compose_command: str | Sequence[str] = "docker compose",
        start_timeout: float = 300.0,
        command_timeout: float = 60.0,
        runner: ProcessRunner = run_process,
    ) -> None:
        """Initialise the gateway.

        Args:
            compose_command: ``docker compose`` (v2 plugin) or ``docker-compose`` (v1).
            start_timeout: Seconds allowed for ``compose up``.
            command_timeout: Seconds allowed for every other command.
            runner: Process runner; replaced by a fake in tests.
        """
        if isinstance(compose_command, str):
            compose_command = shlex.split(compose_command)
        self._compose: list[str] = list(compose_command)
        self._start_timeout: float = start_timeout
        self._command_timeout: float = command_timeout
        self._runner: ProcessRunner = runner

    def _run(
        self,
        args: Sequence[str],
        cwd: Path | None = None,
        timeout: float | None = None,
        capture: bool = True,
    ) -> subprocess.CompletedProcess[str] | None:
        try:
            return self._runner(
                args,
                cwd=cwd,
                timeout=timeout if timeout is not None else self._command_timeout,
                capture=capture,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.debug(
                "container_command_not_run",
                extra={"program": args[0], "error": type(exc).__name__},
            )
            return None

    def _succeeds(self, args: Sequence[str], cwd: Path | None = None) -> bool:
        result = self._run(args, cwd=cwd)
        return result is not None and result.returncode == 0

    def is_engine_installed(self) -> bool:
        return self._succeeds(["docker", "--version"])

    def is_engine_running(self) -> bool:
        return self._succeeds(["docker", "ps"])

    def is_compose_installed(self) -> bool:
        return self._succeeds([*self._compose, "version"])

    def is_available(self) -> bool:
        """Return ``True`` when Docker is installed, running and compose-capable."""
        available = (
            self.is_engine_installed() and self.is_engine_running() and self.is_compose_installed()
        )
        logger.debug("container_engine_checked", extra={"available": available})
        return available

    def start_services(self, directory: Path, detached: bool = True) -> None:
        """Run ``compose up`` in ``directory``.

        Raises:
            ContainerStartFailed: The command failed, timed out or could not run.
        """
        args = [*self._compose, "up", *(["-d"] if detached else [])]
        logger.info("container_services_starting", extra={"directory": str(directory)})
        result = self._run(args, cwd=directory, timeout=self._start_timeout)
        if result is None:
            raise ContainerStartFailed("compose up")
        if result.returncode != 0:
            raise ContainerStartFailed("compose up", result.returncode, result.stderr or "")

    def exec_in_service(
        self,
        directory: Path,
        service_name: str,
        command: Sequence[str],
        interactive: bool = False,
        timeout: float | None = None,
    ) -> str:
        """Run ``command`` inside ``service_name`` and return its stdout.

        Interactive runs attach the caller's terminal and return ``""``.

        Raises:
            ContainerExecFailed: The command failed, timed out or could not run.
        """
        args = [*self._compose, "exec", *([] if interactive else ["-T"]), service_name, *command]
        result = self._run(args, cwd=directory, timeout=timeout, capture=not interactive)
        operation = f"compose exec {service_name}"
        if result is None:
            raise ContainerExecFailed(operation)
        if result.returncode != 0:
            raise ContainerExecFailed(operation, result.returncode, result.stderr or "")
        return result.stdout or ""

    def stop_services(self, directory: Path) -> bool:
        """Run ``compose down``; volumes are kept."""
        return self._succeeds([*self._compose, "down"], cwd=directory)

    def running_services(self, directory: Path) -> list[str]:
        """Return the names of the manifest's services that are running."""
        result = self._run(
            [*self._compose, "ps", "--services", "--filter", "status=running"], cwd=directory
        )
        if result is None or result.returncode != 0:
            return []
        return [line.strip() for line in (result.stdout or "").splitlines() if line.strip()]
