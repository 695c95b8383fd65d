"""Manifest loading, caching and name resolution.

A manifest can be passed around as a file path, an already parsed
``Manifest`` or a plain mapping. ``ManifestResolver`` turns any of these into
a validated ``Manifest`` and caches file loads so that a manifest is parsed
once per resolver unless a reload is forced.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, TypeAlias

import yaml
from pydantic import ValidationError

from composekit.core.utils import logger
from composekit.errors import ManifestNotFoundError, ManifestParseError
from composekit.types.manifest import Manifest, NetworkDefinition, ServiceDefinition, VolumeDefinition

ManifestSource: TypeAlias = "str | os.PathLike[str] | Manifest | Mapping[str, Any] | None"


def parse_manifest(data: Mapping[str, Any] | None, *, source: str = "<memory>") -> Manifest:
    """Validate a raw manifest mapping.

    Args:
        data: Mapping as produced by a YAML loader.
        source: Where the data came from, used in error messages.

    Raises:
        ManifestParseError: If the data does not match the manifest schema.
    """
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ManifestParseError(f"Manifest {source} must be a mapping, got {type(data).__name__}")
    try:
        return Manifest.model_validate(dict(data))
    except ValidationError as e:
        raise ManifestParseError(f"Invalid manifest {source}: {e}") from e


def load_manifest(path: str | os.PathLike[str]) -> Manifest:
    """Load and validate a manifest file.

    Raises:
        ManifestNotFoundError: If the file does not exist.
        ManifestParseError: If the file is not valid YAML or not a valid manifest.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ManifestNotFoundError(str(path)) from e
    except yaml.YAMLError as e:
        raise ManifestParseError(f"Failed to parse manifest {path}: {e}") from e
    return parse_manifest(data, source=str(path))


class ManifestResolver:
    """Resolves manifests and the names of the resources they declare.

    Args:
        default_path: Manifest used when no explicit source is given.
        project_name: Prefix for undeclared resource names. If None, the manifest
            ``name`` or the basename of the directory holding ``default_path`` is used.
    """

    def __init__(
        self,
        default_path: str | os.PathLike[str] = "docker-compose.yml",
        *,
        project_name: str | None = None,
    ) -> None:
        self.default_path = Path(default_path)
        self.project_name = project_name
        self._cache: dict[Path, Manifest] = {}

    def load(self, path: str | os.PathLike[str] | None = None, *, force: bool = False) -> Manifest:
        """Load a manifest file, reusing the cached parse unless ``force`` is set.

        Args:
            path: Manifest file. Defaults to ``default_path``.
            force: If True, re-read the file even if it was loaded before.
        """
        key = Path(path if path is not None else self.default_path).resolve()
        if force or key not in self._cache:
            logger.debug(f"Loading manifest {key}")
            self._cache[key] = load_manifest(key)
        return self._cache[key]

    def resolve(self, source: ManifestSource = None, *, force: bool = False) -> Manifest:
        """Turn any supported manifest source into a ``Manifest``.

        Args:
            source: None (default manifest), a file path, a Manifest or a raw mapping.
            force: Force a reload when the source is a file.
        """
        if isinstance(source, Manifest):
            return source
        if isinstance(source, Mapping):
            return parse_manifest(source)
        return self.load(source, force=force)

    def prefix(self, manifest: Manifest) -> str:
        """Project prefix used for undeclared resource names."""
        if manifest.name:
            return manifest.name
        if self.project_name:
            return self.project_name
        return self.default_path.resolve().parent.name

    def prefix_name(self, key: str, manifest: Manifest) -> str:
        """Name of an undeclared resource: ``<project>_<key>``."""
        return f"{self.prefix(manifest)}_{key}"

    def network_name(self, key: str, manifest: Manifest) -> str:
        """Engine name of the network declared under ``key``."""
        definition = manifest.networks.get(key)
        if definition is not None and definition.name:
            return definition.name
        return self.prefix_name(key, manifest)

    def volume_name(self, key: str, manifest: Manifest) -> str:
        """Engine name of the volume declared under ``key``."""
        definition = manifest.volumes.get(key)
        if definition is not None and definition.name:
            return definition.name
        return self.prefix_name(key, manifest)

    def networks(self, manifest: Manifest) -> dict[str, NetworkDefinition]:
        """All declared networks keyed by engine name."""
        return {self.network_name(key, manifest): definition for key, definition in manifest.networks.items()}

    def volumes(self, manifest: Manifest) -> dict[str, VolumeDefinition]:
        """All declared volumes keyed by engine name."""
        return {self.volume_name(key, manifest): definition for key, definition in manifest.volumes.items()}

    def service_definition(
        self,
        name: str,
        source: ManifestSource = None,
        *,
        force: bool = False,
    ) -> ServiceDefinition | None:
        """Look up a service definition; None if the manifest does not declare it."""
        return self.resolve(source, force=force).services.get(name)


__all__ = [
    "ManifestResolver",
    "ManifestSource",
    "load_manifest",
    "parse_manifest",
]
