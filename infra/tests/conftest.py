"""Shared fakes for orchestrator tests; no Docker is required."""
from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from hive_infra.errors import ContainerExecFailed, ContainerStartFailed
from hive_infra.providers.docker.manifest import ManifestGenerator
from hive_infra.providers.docker.readiness import ReadinessPoller


class FakeRuntime:
    """Records every call and answers from canned behaviour."""

    def __init__(
        self,
        available: bool = True,
        start_fails: bool = False,
        exec_handler: Callable[[str, list[str]], str] | None = None,
    ) -> None:
        self.available = available
        self.start_fails = start_fails
        self.exec_handler = exec_handler
        self.calls: list[tuple[str, ...]] = []
        self.timeouts: list[float | None] = []

    def is_engine_installed(self) -> bool:
        self.calls.append(("is_engine_installed",))
        return self.available

    def is_engine_running(self) -> bool:
        self.calls.append(("is_engine_running",))
        return self.available

    def is_compose_installed(self) -> bool:
        self.calls.append(("is_compose_installed",))
        return self.available

    def is_available(self) -> bool:
        self.calls.append(("is_available",))
        return self.available

    def start_services(self, directory: Path, detached: bool = True) -> None:
        self.calls.append(("start_services", str(directory)))
        if self.start_fails:
            raise ContainerStartFailed("compose up", 1, "port is already allocated")

    def exec_in_service(
        self,
        directory: Path,
        service_name: str,
        command: Sequence[str],
        interactive: bool = False,
        timeout: float | None = None,
    ) -> str:
        self.calls.append(("exec_in_service", service_name, *command))
        self.timeouts.append(timeout)
        if self.exec_handler is None:
            return ""
        return self.exec_handler(service_name, list(command))

    def exec_commands(self) -> list[tuple[str, ...]]:
        return [call[1:] for call in self.calls if call[0] == "exec_in_service"]


class FakeClock:
    """Monotonic clock that moves only when told to."""

    def __init__(self, now: float = 100.0) -> None:
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)


class MinioServer:
    """Exec handler emulating ``mc`` against a set of existing buckets."""

    def __init__(self, buckets: set[str] | None = None, alias_fails: bool = False) -> None:
        self.buckets: set[str] = set(buckets or ())
        self.alias_fails = alias_fails

    def __call__(self, service_name: str, command: list[str]) -> str:
        if command[:3] == ["mc", "alias", "set"] and self.alias_fails:
            raise ContainerExecFailed("compose exec minio", 1, "mc: <ERROR> Unable to initialize")
        if command[:2] == ["mc", "mb"]:
            bucket = command[2].split("/", 1)[1]
            if bucket in self.buckets:
                raise ContainerExecFailed(
                    "compose exec minio",
                    1,
                    f"mc: <ERROR> Unable to make bucket `local/{bucket}`. "
                    "Your previous request to create the named bucket succeeded and you already own it. "
                    "Bucket already exists",
                )
            self.buckets.add(bucket)
            return f"Bucket created successfully `local/{bucket}`."
        return ""


@pytest.fixture
def runtime() -> FakeRuntime:
    return FakeRuntime()


@pytest.fixture
def generator() -> ManifestGenerator:
    return ManifestGenerator()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeps(clock: FakeClock) -> list[float]:
    return clock.sleeps


@pytest.fixture
def poller_factory(clock: FakeClock) -> Callable[[FakeRuntime], ReadinessPoller]:
    def build(fake: FakeRuntime, max_attempts: int = 3, **kwargs: object) -> ReadinessPoller:
        return ReadinessPoller(
            fake,
            max_attempts=max_attempts,
            interval_seconds=1.0,
            sleep=clock.sleep,
            clock=clock,
            **kwargs,  # type: ignore[arg-type]
        )

    return build


@pytest.fixture
def app_path(tmp_path: Path) -> Path:
    path = tmp_path / "apps" / "shop"
    path.mkdir(parents=True)
    return path
