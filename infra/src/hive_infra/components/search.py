"""Provider-agnostic search engine descriptor and setup interface."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, SecretStr

from hive_infra.config import SearchEngine

logger: logging.Logger = logging.getLogger(__name__)


class SearchDescriptor(BaseModel):
    """Immutable connection details for a search engine.

    The index itself is never provisioned; applications create it lazily.
    """

    model_config = ConfigDict(frozen=True)

    engine: SearchEngine
    port: int
    api_key: SecretStr | None = None
    using_container: bool = False
    host: str = "localhost"

    @classmethod
    def for_app(cls, engine: SearchEngine, using_container: bool = True) -> SearchDescriptor:
        """Build the default descriptor; the API key is generated at setup."""
        return cls(engine=engine, port=engine.default_port, using_container=using_container)

    @property
    def base_url(self) -> str:
        """Return the HTTP base URL for the engine."""
        return f"http://{self.host}:{self.port}"

    def as_container(self, api_key: str) -> SearchDescriptor:
        """Return a copy pointing at the local container with its key."""
        return self.model_copy(
            update={"api_key": SecretStr(api_key), "host": "localhost", "using_container": True}
        )

    def as_local(self) -> SearchDescriptor:
        """Return a copy flagged as a pre-existing local installation."""
        return self.model_copy(update={"using_container": False})

    def to_config(self) -> dict[str, Any]:
        """Flatten into the engine-specific keys of generated application config."""
        key = self.api_key.get_secret_value() if self.api_key is not None else ""
        match self.engine:
            case SearchEngine.ELASTICSEARCH:
                config: dict[str, Any] = {
                    "elasticsearch_host": self.host,
                    "elasticsearch_port": self.port,
                    "elasticsearch_user": "elastic",
                    "elasticsearch_password": key,
                }
            case SearchEngine.MEILISEARCH:
                config = {
                    "meilisearch_host": f"http://{self.host}",
                    "meilisearch_port": self.port,
                    "meilisearch_master_key": key,
                }
            case SearchEngine.OPENSEARCH:
                config = {
                    "opensearch_host": self.host,
                    "opensearch_port": self.port,
                    "opensearch_user": "admin",
                    "opensearch_password": key,
                }
        return {"search_engine": self.engine.value, **config, "using_docker": self.using_container}


class SearchSetup(Protocol):
    """Provider-agnostic interface for the search engine setup orchestrator."""

    def setup(self, descriptor: SearchDescriptor, app_path: Path) -> SearchDescriptor:
        """Provision the search engine and return the resulting descriptor."""
        ...
