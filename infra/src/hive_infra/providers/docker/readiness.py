"""Bounded readiness polling for freshly started containers."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

import httpx

from hive_infra.components.runtime import ContainerRuntime
from hive_infra.errors import ContainerExecFailed

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 30
DEFAULT_INTERVAL_SECONDS = 2.0
# Probe timeout for a zero-interval wait, which gets exactly one attempt.
SINGLE_PROBE_TIMEOUT_SECONDS = 1.0

Probe = Callable[[float], bool]


class ReadinessPoller:
    """Retries a trivial probe until it succeeds or the wait budget runs out.

    The result is a soft signal: ``False`` means the service may still be
    starting, not that provisioning failed. The budget is
    ``max_attempts * interval_seconds`` of wall-clock time, probes included:
    each probe's timeout is the time left, and no probe starts once the
    budget is spent. A zero interval means a single probe.
    """

    def __init__(
        self,
        runtime: ContainerRuntime,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialise the poller.

        Args:
            runtime: Gateway used for exec probes.
            max_attempts: Default attempt ceiling.
            interval_seconds: Default pause between attempts.
            http_client: Client used for HTTP probes; a short-lived one is
                opened per wait when omitted.
            sleep: Blocking sleep function.
            clock: Monotonic clock bounding the whole wait.
        """
        self._runtime: ContainerRuntime = runtime
        self._max_attempts: int = max_attempts
        self._interval_seconds: float = interval_seconds
        self._http_client: httpx.Client | None = http_client
        self._sleep: Callable[[float], None] = sleep
        self._clock: Callable[[], float] = clock

    def wait(
        self,
        directory: Path,
        service_name: str,
        max_attempts: int | None = None,
        interval_seconds: float | None = None,
    ) -> bool:
        """Poll ``echo ready`` inside ``service_name`` until it succeeds."""

        def probe(timeout: float) -> bool:
            try:
                self._runtime.exec_in_service(
                    directory, service_name, ["echo", "ready"], timeout=timeout
                )
            except ContainerExecFailed:
                return False
            return True

        return self._poll(service_name, probe, max_attempts, interval_seconds)

    def wait_http(
        self,
        url: str,
        max_attempts: int | None = None,
        interval_seconds: float | None = None,
    ) -> bool:
        """Poll ``GET url`` until the server answers with a status below 500."""
        if self._http_client is not None:
            return self._poll_http(self._http_client, url, max_attempts, interval_seconds)
        with httpx.Client() as client:
            return self._poll_http(client, url, max_attempts, interval_seconds)

    def _poll_http(
        self,
        client: httpx.Client,
        url: str,
        max_attempts: int | None,
        interval_seconds: float | None,
    ) -> bool:
        def probe(timeout: float) -> bool:
            try:
                response = client.get(url, timeout=timeout)
            except httpx.HTTPError:
                return False
            return response.status_code < 500

        return self._poll(url, probe, max_attempts, interval_seconds)

    def _poll(
        self,
        target: str,
        probe: Probe,
        max_attempts: int | None,
        interval_seconds: float | None,
    ) -> bool:
        attempts = max_attempts if max_attempts is not None else self._max_attempts
        interval = interval_seconds if interval_seconds is not None else self._interval_seconds

        if interval <= 0:
            if probe(SINGLE_PROBE_TIMEOUT_SECONDS):
                logger.debug("service_ready", extra={"target": target, "attempt": 1})
                return True
            logger.warning("service_readiness_timeout", extra={"target": target, "attempts": 1})
            return False

        deadline = self._clock() + attempts * interval
        attempt = 0
        while attempt < attempts:
            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            attempt += 1
            if probe(remaining):
                logger.debug("service_ready", extra={"target": target, "attempt": attempt})
                return True
            remaining = deadline - self._clock()
            if attempt < attempts and remaining > 0:
                self._sleep(min(interval, remaining))

        logger.warning("service_readiness_timeout", extra={"target": target, "attempts": attempt})
        return False
