"""Docker Compose manifest generation from named service templates."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from hive_infra.naming import unique_slug

logger: logging.Logger = logging.getLogger(__name__)

TEMPLATES_DIR: Path = Path(__file__).resolve().parents[2] / "templates"
MERGED_SECTIONS: tuple[str, ...] = ("services", "volumes", "networks")


def resource_prefix(target_directory: Path | str, namespace: str = "hive") -> str:
    """Derive the container/volume/network name prefix for an application.

    The directory's base name is lowercased and every run of
    non-alphanumeric characters collapses to a single ``-``. Names that lose
    letters on the way (non-ASCII, or nothing alphanumeric) get a digest
    suffix so they cannot collide with each other or with a plain name.
    """
    name = Path(target_directory).resolve().name
    return f"{namespace}-{unique_slug(name)}"


def merge_manifests(existing: Mapping[str, Any], fragment: Mapping[str, Any]) -> dict[str, Any]:
    """Layer ``fragment`` over ``existing``.

    ``services``, ``volumes`` and ``networks`` merge entry by entry, so a
    regenerated service replaces only its own definition. Other top-level
    keys already present are kept.
    """
    merged: dict[str, Any] = dict(existing)
    for key, value in fragment.items():
        if key in MERGED_SECTIONS and isinstance(value, Mapping):
            section = dict(merged.get(key) or {})
            section.update(value)
            merged[key] = section
        else:
            merged.setdefault(key, value)
    return merged


class ManifestGenerator:
    """Renders compose fragments and writes them into an application directory.

    Each application directory holds a single manifest that several
    orchestrators layer their services into. The read-modify-write is not
    locked: one writer per directory at a time.
    """

    def __init__(
        self,
        templates_dir: Path = TEMPLATES_DIR,
        file_name: str = "docker-compose.yml",
    ) -> None:
        """Initialise the generator.

        Args:
            templates_dir: Directory holding ``<service_kind>.yml`` templates.
            file_name: Manifest file name inside each application directory.
        """
        self._templates_dir: Path = templates_dir
        self._file_name: str = file_name

    def manifest_path(self, target_directory: Path) -> Path:
        return Path(target_directory) / self._file_name

    def render(self, service_kind: str, variables: Mapping[str, str]) -> str | None:
        """Substitute ``{{name}}`` placeholders; ``None`` if the template is missing."""
        template_path = self._templates_dir / f"{service_kind}.yml"
        try:
            content = template_path.read_text(encoding="utf-8")
        except OSError:
            return None
        for name, value in variables.items():
            content = content.replace(f"{{{{{name}}}}}", value)
        return content

    def generate(
        self,
        service_kind: str,
        target_directory: Path,
        variables: Mapping[str, str],
    ) -> bool:
        """Render ``service_kind`` and merge it into the directory's manifest.

        Returns ``False`` (never raises) when the template is missing, the
        rendered fragment is not valid YAML, or the manifest cannot be
        read or written.
        """
        rendered = self.render(service_kind, variables)
        if rendered is None:
            logger.warning("manifest_template_missing", extra={"service_kind": service_kind})
            return False

        path = self.manifest_path(target_directory)
        try:
            fragment = yaml.safe_load(rendered) or {}
            existing = yaml.safe_load(path.read_text(encoding="utf-8")) if path.exists() else {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning(
                "manifest_load_failed",
                extra={"service_kind": service_kind, "error": type(exc).__name__},
            )
            return False
        if not isinstance(fragment, Mapping) or not isinstance(existing or {}, Mapping):
            logger.warning("manifest_not_a_mapping", extra={"service_kind": service_kind})
            return False

        manifest = merge_manifests(existing or {}, fragment)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                yaml.safe_dump(manifest, sort_keys=False, default_flow_style=False),
                encoding="utf-8",
            )
        except OSError as exc:
            logger.warning(
                "manifest_write_failed",
                extra={"service_kind": service_kind, "error": type(exc).__name__},
            )
            return False

        logger.debug(
            "manifest_generated",
            extra={"service_kind": service_kind, "path": str(path)},
        )
        return True
