"""Verify descriptor value types, their transformations and config mappings."""
from __future__ import annotations

import pytest
from pydantic import SecretStr, ValidationError

from hive_infra.components.database import DatabaseDescriptor, DatabaseSetup
from hive_infra.components.runtime import ContainerRuntime
from hive_infra.components.search import SearchDescriptor, SearchSetup
from hive_infra.components.storage import StorageDescriptor, StorageSetup, normalize_bucket_name
from hive_infra.config import DatabaseEngine, SearchEngine, StorageDriver


def _database(**overrides: object) -> DatabaseDescriptor:
    fields: dict[str, object] = {
        "engine": DatabaseEngine.MYSQL,
        "host": "db.internal",
        "port": 3307,
        "database_name": "shop",
        "user": "shop_user",
        "password": "pw",
        "using_container": True,
    }
    fields.update(overrides)
    return DatabaseDescriptor(**fields)  # type: ignore[arg-type]


def test_protocols_are_importable() -> None:
    assert DatabaseSetup is not None
    assert StorageSetup is not None
    assert SearchSetup is not None
    assert ContainerRuntime is not None


def test_database_descriptor_is_frozen() -> None:
    descriptor = _database()
    with pytest.raises(ValidationError):
        descriptor.host = "elsewhere"  # type: ignore[misc]


def test_database_as_container_returns_new_value() -> None:
    descriptor = _database()
    container = descriptor.as_container()
    assert container is not descriptor
    assert container.host == "localhost"
    assert container.using_container is True
    assert container.port == 3307
    assert descriptor.host == "db.internal"


def test_database_as_local_keeps_everything_but_flag() -> None:
    descriptor = _database()
    local = descriptor.as_local()
    assert local.using_container is False
    assert local.model_dump(exclude={"using_container"}) == descriptor.model_dump(
        exclude={"using_container"}
    )


def test_database_password_not_in_repr() -> None:
    assert "hunter2" not in repr(_database(password="hunter2"))


def test_database_for_app_defaults() -> None:
    descriptor = DatabaseDescriptor.for_app(DatabaseEngine.POSTGRESQL, "My Shop!", "pw")
    assert descriptor.database_name == "my_shop"
    assert descriptor.user == "my_shop_user"
    assert descriptor.port == 5432
    assert descriptor.using_container is True


def test_database_config_round_trip() -> None:
    descriptor = _database()
    config = descriptor.to_config()
    assert config["db_type"] == "mysql"
    assert config["db_password"] == "pw"
    assert config["using_docker"] is True
    assert DatabaseDescriptor.from_config(config) == descriptor


def test_database_from_config_requires_keys() -> None:
    with pytest.raises(ValueError, match="db_name"):
        DatabaseDescriptor.from_config({"db_type": "mysql", "db_user": "u"})


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("My_Bucket!!", "my-bucket"),
        ("--assets--", "assets"),
        ("ab", "bucket-ab"),
        ("x" * 80, "x" * 63),
    ],
)
def test_normalize_bucket_name(raw: str, expected: str) -> None:
    assert normalize_bucket_name(raw) == expected


def test_storage_for_app_s3_never_requests_container() -> None:
    descriptor = StorageDescriptor.for_app(StorageDriver.S3, "shop", region="eu-west-1")
    assert descriptor.using_container is False
    assert descriptor.region == "eu-west-1"


def test_storage_as_container_sets_endpoint_and_keys() -> None:
    descriptor = StorageDescriptor.for_app(StorageDriver.MINIO, "Shop")
    container = descriptor.as_container("AK", "sk", 9100, 9101)
    assert container.endpoint == "localhost"
    assert container.port == 9100
    assert container.console_port == 9101
    assert container.secret_key == SecretStr("sk")
    assert descriptor.access_key == ""


def test_storage_to_config_is_driver_specific() -> None:
    minio = StorageDescriptor(
        driver=StorageDriver.MINIO, bucket="assets", access_key="ak", secret_key="sk", port=9000
    )
    s3 = StorageDescriptor(
        driver=StorageDriver.S3, bucket="assets", access_key="ak", secret_key="sk", region="us-east-1"
    )
    assert minio.to_config()["storage_port"] == 9000
    assert "storage_region" not in minio.to_config()
    assert s3.to_config()["storage_region"] == "us-east-1"
    assert "storage_port" not in s3.to_config()


def test_storage_from_config_accepts_legacy_keys() -> None:
    descriptor = StorageDescriptor.from_config(
        {
            "minio_bucket": "assets",
            "minio_access_key": "ak",
            "minio_secret_key": "sk",
            "minio_port": "9000",
            "using_docker": True,
        }
    )
    assert descriptor.driver == StorageDriver.MINIO
    assert descriptor.bucket == "assets"
    assert descriptor.port == 9000
    assert descriptor.using_container is True


def test_storage_from_config_requires_keys() -> None:
    with pytest.raises(ValueError):
        StorageDescriptor.from_config({"storage_bucket": "assets"})


def test_search_to_config_per_engine() -> None:
    meili = SearchDescriptor(engine=SearchEngine.MEILISEARCH, port=7700, api_key="key")
    elastic = SearchDescriptor(engine=SearchEngine.ELASTICSEARCH, port=9200)
    assert meili.to_config()["meilisearch_master_key"] == "key"
    assert meili.to_config()["meilisearch_host"] == "http://localhost"
    assert elastic.to_config()["elasticsearch_user"] == "elastic"
    assert elastic.to_config()["elasticsearch_password"] == ""
    assert elastic.to_config()["search_engine"] == "elasticsearch"


def test_search_as_container_sets_key() -> None:
    descriptor = SearchDescriptor.for_app(SearchEngine.OPENSEARCH)
    container = descriptor.as_container("generated")
    assert container.api_key == SecretStr("generated")
    assert container.base_url == "http://localhost:9200"
    assert descriptor.api_key is None
