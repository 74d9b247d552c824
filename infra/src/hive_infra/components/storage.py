"""Provider-agnostic object storage descriptor and setup interface."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, SecretStr

from hive_infra.config import StorageDriver

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_MINIO_PORT = 9000
DEFAULT_MINIO_CONSOLE_PORT = 9001

_BUCKET_INVALID = re.compile(r"[^a-z0-9-]")
_DASH_RUNS = re.compile(r"-+")


def normalize_bucket_name(name: str) -> str:
    """Coerce ``name`` into a valid S3 bucket name (3-63 chars, ``[a-z0-9-]``)."""
    bucket = _DASH_RUNS.sub("-", _BUCKET_INVALID.sub("-", name.lower())).strip("-")
    if len(bucket) < 3:
        bucket = f"bucket-{bucket}".rstrip("-")
    if len(bucket) > 63:
        bucket = bucket[:63].rstrip("-")
    return bucket


class StorageDescriptor(BaseModel):
    """Immutable connection details for an object storage bucket."""

    model_config = ConfigDict(frozen=True)

    driver: StorageDriver
    bucket: str
    access_key: str
    secret_key: SecretStr
    using_container: bool = False
    endpoint: str | None = None
    port: int | None = None
    console_port: int | None = None
    region: str | None = None

    @classmethod
    def for_app(
        cls,
        driver: StorageDriver,
        app_name: str,
        region: str | None = None,
        using_container: bool = True,
    ) -> StorageDescriptor:
        """Build the default descriptor for an application.

        Keys are left empty so the orchestrator generates them for the
        container it starts.
        """
        return cls(
            driver=driver,
            bucket=normalize_bucket_name(app_name),
            access_key="",
            secret_key=SecretStr(""),
            using_container=using_container and driver.supports_container,
            region=region if driver is StorageDriver.S3 else None,
        )

    def as_container(
        self,
        access_key: str,
        secret_key: str,
        port: int,
        console_port: int,
    ) -> StorageDescriptor:
        """Return a copy pointing at the local container with its credentials."""
        return self.model_copy(
            update={
                "access_key": access_key,
                "secret_key": SecretStr(secret_key),
                "using_container": True,
                "endpoint": "localhost",
                "port": port,
                "console_port": console_port,
            }
        )

    def as_local(self) -> StorageDescriptor:
        """Return a copy flagged as a pre-existing or managed installation."""
        return self.model_copy(update={"using_container": False})

    def to_config(self) -> dict[str, Any]:
        """Flatten into the keys embedded in generated application config."""
        config: dict[str, Any] = {
            "storage_driver": self.driver.value,
            "storage_bucket": self.bucket,
            "storage_access_key": self.access_key,
            "storage_secret_key": self.secret_key.get_secret_value(),
            "using_docker": self.using_container,
        }
        match self.driver:
            case StorageDriver.MINIO:
                config.update(
                    storage_endpoint=self.endpoint,
                    storage_port=self.port,
                    storage_console_port=self.console_port,
                )
            case StorageDriver.S3:
                config.update(storage_region=self.region)
        return config

    @classmethod
    def from_config(cls, data: dict[str, Any]) -> StorageDescriptor:
        """Inverse of :meth:`to_config`; also accepts legacy ``minio_*`` keys.

        Raises ``ValueError`` when the bucket or either key is missing.
        """

        def pick(name: str) -> Any:
            value = data.get(f"storage_{name}")
            return value if value is not None else data.get(f"minio_{name}")

        bucket, access_key, secret_key = pick("bucket"), pick("access_key"), pick("secret_key")
        if bucket is None or access_key is None or secret_key is None:
            raise ValueError("Missing required storage configuration keys")

        port, console_port = pick("port"), pick("console_port")
        return cls(
            driver=StorageDriver(data.get("storage_driver", StorageDriver.MINIO.value)),
            bucket=bucket,
            access_key=access_key,
            secret_key=SecretStr(secret_key),
            using_container=bool(data.get("using_docker", False)),
            endpoint=pick("endpoint"),
            port=int(port) if port is not None else None,
            console_port=int(console_port) if console_port is not None else None,
            region=data.get("storage_region"),
        )


class StorageSetup(Protocol):
    """Provider-agnostic interface for the object storage setup orchestrator."""

    def setup(self, descriptor: StorageDescriptor, app_path: Path) -> StorageDescriptor:
        """Provision storage and return the resulting descriptor."""
        ...
