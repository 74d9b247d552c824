"""Failure kinds, container gateway exceptions and tagged setup outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class ProvisioningErrorKind(StrEnum):
    """Why a container path was abandoned (or a resource step skipped)."""

    ENGINE_UNAVAILABLE = "engine_unavailable"
    MANIFEST_GENERATION_FAILED = "manifest_generation_failed"
    CONTAINER_START_FAILED = "container_start_failed"
    READINESS_TIMEOUT = "readiness_timeout"
    RESOURCE_CREATION_FAILED = "resource_creation_failed"
    UNSUPPORTED_DRIVER = "unsupported_driver"
    UNEXPECTED_FAILURE = "unexpected_failure"


class ContainerError(Exception):
    """A container engine command exited unsuccessfully.

    The message names the operation only; command arguments are kept out of
    it because they can carry credentials.
    """

    def __init__(self, operation: str, returncode: int | None = None, stderr: str = "") -> None:
        self.operation: str = operation
        self.returncode: int | None = returncode
        self.stderr: str = stderr
        super().__init__(f"{operation} failed (exit code {returncode})")


class ContainerStartFailed(ContainerError):
    """``compose up`` did not succeed."""


class ContainerExecFailed(ContainerError):
    """``compose exec`` did not succeed."""


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful setup step carrying its resulting value."""

    value: T


@dataclass(frozen=True)
class Err:
    """Failed setup step; ``kind`` stays inspectable after the fallback."""

    kind: ProvisioningErrorKind
    detail: str = ""
