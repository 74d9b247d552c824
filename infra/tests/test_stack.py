"""Tests for ProvisioningStack wiring and the merged result config."""
from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from conftest import FakeRuntime, MinioServer
from hive_infra.__main__ import ProvisioningResult, ProvisioningStack, main
from hive_infra.config import DatabaseEngine, ProvisioningConfig, SearchEngine, StorageDriver
from hive_infra.providers.docker.manifest import ManifestGenerator
from hive_infra.providers.docker.readiness import ReadinessPoller


@pytest.fixture(autouse=True)
def _isolated_cwd(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)


def _config(app_path: Path, **overrides: object) -> ProvisioningConfig:
    return ProvisioningConfig(app_path=app_path, **overrides)  # type: ignore[arg-type]


def _stack(
    config: ProvisioningConfig,
    runtime: FakeRuntime,
    generator: ManifestGenerator,
    poller_factory: Callable[..., ReadinessPoller],
) -> ProvisioningStack:
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    return ProvisioningStack(
        config=config,
        runtime=runtime,
        generator=generator,
        poller=poller_factory(runtime, http_client=client),
    )


def test_nothing_configured_provisions_nothing(
    runtime: FakeRuntime,
    generator: ManifestGenerator,
    poller_factory: Callable[..., ReadinessPoller],
    app_path: Path,
) -> None:
    result = _stack(_config(app_path), runtime, generator, poller_factory).run()
    assert result == ProvisioningResult()
    assert result.to_config() == {"using_docker": False}
    assert runtime.calls == []


def test_full_stack_in_containers(
    generator: ManifestGenerator,
    poller_factory: Callable[..., ReadinessPoller],
    app_path: Path,
) -> None:
    runtime = FakeRuntime(exec_handler=MinioServer())
    config = _config(
        app_path,
        database_engine=DatabaseEngine.MARIADB,
        storage_driver=StorageDriver.MINIO,
        search_engine=SearchEngine.MEILISEARCH,
    )
    result = _stack(config, runtime, generator, poller_factory).run()

    assert result.database is not None and result.database.using_container
    assert result.storage is not None and result.storage.using_container
    assert result.search is not None and result.search.using_container
    merged = result.to_config()
    assert merged["db_type"] == "mariadb"
    assert merged["db_name"] == "shop"
    assert merged["storage_bucket"] == "shop"
    assert merged["search_engine"] == "meilisearch"
    assert merged["using_docker"] is True
    assert (app_path / "docker-compose.yml").exists()


def test_use_docker_false_returns_local_descriptors(
    runtime: FakeRuntime,
    generator: ManifestGenerator,
    poller_factory: Callable[..., ReadinessPoller],
    app_path: Path,
) -> None:
    config = _config(
        app_path,
        use_docker=False,
        database_engine=DatabaseEngine.POSTGRESQL,
        database_name="orders",
        database_user="orders_app",
        database_password="pw",
        storage_driver=StorageDriver.S3,
        storage_bucket="Orders Media",
        storage_region="eu-west-1",
    )
    result = _stack(config, runtime, generator, poller_factory).run()

    assert result.database is not None
    assert result.database.using_container is False
    assert result.database.database_name == "orders"
    assert result.database.user == "orders_app"
    assert result.database.password.get_secret_value() == "pw"
    assert result.storage is not None
    assert result.storage.bucket == "orders-media"
    assert result.storage.region == "eu-west-1"
    assert result.to_config()["using_docker"] is False
    assert runtime.calls == []


def test_unavailable_engine_falls_back_per_service(
    generator: ManifestGenerator,
    poller_factory: Callable[..., ReadinessPoller],
    app_path: Path,
) -> None:
    runtime = FakeRuntime(available=False)
    config = _config(
        app_path, database_engine=DatabaseEngine.MYSQL, search_engine=SearchEngine.OPENSEARCH
    )
    result = _stack(config, runtime, generator, poller_factory).run()
    assert result.database is not None and not result.database.using_container
    assert result.search is not None and not result.search.using_container
    assert runtime.calls == [("is_available",), ("is_available",)]


def test_main_prints_merged_config(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], app_path: Path
) -> None:
    monkeypatch.setenv("HIVE_APP_PATH", str(app_path))
    monkeypatch.setenv("HIVE_USE_DOCKER", "false")
    monkeypatch.setenv("HIVE_DATABASE_ENGINE", "mysql")

    with patch("hive_infra.__main__.DockerGateway") as gateway:
        main()
    gateway.assert_called_once()
    output = capsys.readouterr().out
    assert '"db_type": "mysql"' in output
    assert '"using_docker": false' in output
