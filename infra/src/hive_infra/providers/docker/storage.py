"""Docker Compose MinIO implementation of StorageSetup."""

from __future__ import annotations

import logging
from pathlib import Path

from hive_infra.components.storage import DEFAULT_MINIO_PORT, StorageDescriptor
from hive_infra.credentials import generate_access_key, generate_secret_key
from hive_infra.errors import (
    ContainerExecFailed,
    ContainerStartFailed,
    Err,
    Ok,
    ProvisioningErrorKind,
)
from hive_infra.providers.docker.base import DockerServiceSetup

logger: logging.Logger = logging.getLogger(__name__)

MINIO_SERVICE = "minio"
MINIO_ALIAS = "local"
MINIO_INTERNAL_URL = "http://localhost:9000"
BUCKET_EXISTS_MARKER = "already exists"


class DockerStorageSetup(DockerServiceSetup[StorageDescriptor]):
    """MinIO in a local container, satisfying ``StorageSetup``.

    The managed S3 driver never touches the container runtime. For MinIO the
    default bucket is created after start-up; a bucket that already exists
    counts as created.
    """

    family = "storage"

    def supports_container(self, descriptor: StorageDescriptor) -> bool:
        return descriptor.driver.supports_container

    def setup_container(
        self, descriptor: StorageDescriptor, app_path: Path
    ) -> Ok[StorageDescriptor] | Err:
        if not descriptor.driver.supports_container:
            return Err(ProvisioningErrorKind.UNSUPPORTED_DRIVER, descriptor.driver.value)

        access_key = descriptor.access_key or generate_access_key()
        secret_key = descriptor.secret_key.get_secret_value() or generate_secret_key()
        port = descriptor.port or DEFAULT_MINIO_PORT
        console_port = descriptor.console_port or port + 1

        variables = {
            **self.prefix_variables(app_path),
            "minio_access_key": access_key,
            "minio_secret_key": secret_key,
            "minio_port": str(port),
            "minio_console_port": str(console_port),
        }
        if not self._generator.generate(MINIO_SERVICE, app_path, variables):
            return Err(ProvisioningErrorKind.MANIFEST_GENERATION_FAILED, MINIO_SERVICE)

        try:
            self._runtime.start_services(app_path, detached=True)
        except ContainerStartFailed as exc:
            return Err(ProvisioningErrorKind.CONTAINER_START_FAILED, str(exc))

        if not self._poller.wait(app_path, MINIO_SERVICE):
            logger.warning(
                "storage_not_ready",
                extra={"kind": ProvisioningErrorKind.READINESS_TIMEOUT.value},
            )

        bucket = self.create_bucket(app_path, descriptor.bucket, access_key, secret_key)
        if isinstance(bucket, Err):
            logger.warning(
                "storage_bucket_not_created",
                extra={"bucket": descriptor.bucket, "kind": bucket.kind.value, "detail": bucket.detail},
            )

        return Ok(descriptor.as_container(access_key, secret_key, port, console_port))

    def setup_local(self, descriptor: StorageDescriptor) -> StorageDescriptor:
        return descriptor.as_local()

    def create_bucket(
        self,
        app_path: Path,
        bucket: str,
        access_key: str,
        secret_key: str,
    ) -> Ok[str] | Err:
        """Create ``bucket`` through the container's ``mc`` client.

        Idempotent: an ``already exists`` error is reported as ``Ok``.
        """
        try:
            self._runtime.exec_in_service(
                app_path,
                MINIO_SERVICE,
                ["mc", "alias", "set", MINIO_ALIAS, MINIO_INTERNAL_URL, access_key, secret_key],
            )
        except ContainerExecFailed as exc:
            return Err(ProvisioningErrorKind.RESOURCE_CREATION_FAILED, f"alias: {exc}")

        try:
            self._runtime.exec_in_service(
                app_path, MINIO_SERVICE, ["mc", "mb", f"{MINIO_ALIAS}/{bucket}"]
            )
        except ContainerExecFailed as exc:
            if BUCKET_EXISTS_MARKER in exc.stderr:
                logger.debug("storage_bucket_exists", extra={"bucket": bucket})
                return Ok(bucket)
            return Err(ProvisioningErrorKind.RESOURCE_CREATION_FAILED, f"bucket: {exc}")

        logger.info("storage_bucket_created", extra={"bucket": bucket})
        return Ok(bucket)
