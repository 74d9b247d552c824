"""Provider-agnostic database descriptor and setup interface."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, SecretStr

from hive_infra.config import DatabaseEngine
from hive_infra.naming import slugify

logger: logging.Logger = logging.getLogger(__name__)


class DatabaseDescriptor(BaseModel):
    """Immutable connection details for a relational database.

    ``using_container`` reflects intent on the way into an orchestrator and
    outcome on the way out.
    """

    model_config = ConfigDict(frozen=True)

    engine: DatabaseEngine
    host: str = "localhost"
    port: int
    database_name: str
    user: str
    password: SecretStr
    using_container: bool = False

    @classmethod
    def for_app(
        cls,
        engine: DatabaseEngine,
        app_name: str,
        password: str,
        using_container: bool = True,
    ) -> DatabaseDescriptor:
        """Build the default descriptor for an application.

        Args:
            engine: Database engine to provision.
            app_name: Application name; normalised into the database name.
            password: Application user password.
            using_container: Whether container provisioning is requested.
        """
        name = slugify(app_name, separator="_")
        return cls(
            engine=engine,
            host="localhost",
            port=engine.default_port,
            database_name=name,
            user=f"{name}_user",
            password=SecretStr(password),
            using_container=using_container,
        )

    def as_container(self) -> DatabaseDescriptor:
        """Return a copy pointing at the local container."""
        return self.model_copy(update={"host": "localhost", "using_container": True})

    def as_local(self) -> DatabaseDescriptor:
        """Return a copy flagged as a pre-existing local installation."""
        return self.model_copy(update={"using_container": False})

    def to_config(self) -> dict[str, Any]:
        """Flatten into the keys embedded in generated application config."""
        return {
            "db_type": self.engine.value,
            "db_host": self.host,
            "db_port": self.port,
            "db_name": self.database_name,
            "db_user": self.user,
            "db_password": self.password.get_secret_value(),
            "using_docker": self.using_container,
        }

    @classmethod
    def from_config(cls, data: dict[str, Any]) -> DatabaseDescriptor:
        """Inverse of :meth:`to_config`. Raises ``ValueError`` on missing keys."""
        missing = [key for key in ("db_type", "db_name", "db_user") if data.get(key) is None]
        if missing:
            raise ValueError(f"Missing required database configuration keys: {', '.join(missing)}")
        engine = DatabaseEngine(data["db_type"])
        return cls(
            engine=engine,
            host=data.get("db_host") or "localhost",
            port=int(data.get("db_port") or engine.default_port),
            database_name=data["db_name"],
            user=data["db_user"],
            password=SecretStr(data.get("db_password") or ""),
            using_container=bool(data.get("using_docker", False)),
        )


class DatabaseSetup(Protocol):
    """Provider-agnostic interface for the database setup orchestrator."""

    def setup(self, descriptor: DatabaseDescriptor, app_path: Path) -> DatabaseDescriptor:
        """Provision the database and return the resulting descriptor."""
        ...
