"""
package.json models.

Reads the project manifest and builds the minimal manifest handed to
the package manager: only the requested dependencies, each pinned to
the version spec the project already declares.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from assetzip.errors import ConfigurationError


class PackageManifest(BaseModel):
    """The parts of a project package.json that matter for slicing."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")

    def find_version(self, name: str) -> str | None:
        """Version spec for a dependency, preferring runtime dependencies."""
        return self.dependencies.get(name) or self.dev_dependencies.get(name)


class ManifestSlice(BaseModel):
    """Synthetic package.json containing only the requested dependencies."""

    name: str = "build"
    private: bool = True
    dependencies: dict[str, str] = Field(default_factory=dict)

    def to_json(self) -> str:
        return self.model_dump_json()


def load_manifest(path: str | Path) -> PackageManifest:
    """
    Load and validate a package.json file.

    Raises:
        ConfigurationError: If the file is missing, not valid JSON or has the wrong shape
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigurationError(f"Package manifest not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e

    try:
        return PackageManifest.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid package manifest {path}: {e}") from e


def build_manifest_slice(
    manifest: PackageManifest,
    package_names: Iterable[str],
    *,
    source: str | Path = "package.json",
) -> ManifestSlice:
    """
    Build a manifest restricted to package_names.

    Args:
        manifest: The project manifest
        package_names: Dependency names to keep
        source: Manifest path, used in error messages

    Raises:
        ConfigurationError: If a name is in neither dependencies nor devDependencies
    """
    dependencies: dict[str, str] = {}
    for name in package_names:
        version = manifest.find_version(name)
        if not version:
            raise ConfigurationError(f"Cannot find dependency {name} in {source}")
        dependencies[name] = version

    return ManifestSlice(dependencies=dependencies)
