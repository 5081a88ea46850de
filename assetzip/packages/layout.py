"""
Installed package layout resolution.

npm and yarn leave a flat node_modules tree that can be walked as is.
pnpm keeps every package version once in a content-addressable store
(node_modules/.pnpm/<name>@<version>/node_modules/<name>) and only links
a subset of them to the top level, as recorded in node_modules/.modules.yaml.

For pnpm the store is archived once under <prefix>/.pnpm, and every
hoisted package is archived a second time under <prefix>/<alias> so that
the archive resolves modules the way the installed tree does. The
duplicated bytes are expected and not deduplicated.
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path
from typing import Any, AsyncIterator, Iterable

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from assetzip.entries import ArchiveEntry, IgnoreMatcher, get_folder_entries, join_archive_path
from assetzip.errors import ConfigurationError, LayoutError

from .lockfile import LockfileKind

NODE_MODULES = "node_modules"
PNPM_STORE = ".pnpm"
PNPM_STATE_FILE = ".modules.yaml"


# -----------------------------------------------------------------------------
# pnpm state
# -----------------------------------------------------------------------------


class ModulesState(BaseModel):
    """The part of pnpm's node_modules/.modules.yaml used for hoisting."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    hoisted_dependencies: dict[str, dict[str, Any]] = Field(
        default_factory=dict, alias="hoistedDependencies"
    )

    @field_validator("hoisted_dependencies", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value


def _load_state(path: Path) -> ModulesState:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise LayoutError(f"pnpm state file not found: {path}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise LayoutError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise LayoutError(f"Expected a mapping in {path}, got {type(data).__name__}")

    try:
        return ModulesState.model_validate(data)
    except ValidationError as e:
        raise LayoutError(f"Malformed pnpm state file {path}: {e}") from e


async def read_hoisted_dependencies(node_modules_dir: str | Path) -> dict[str, dict[str, Any]]:
    """
    Read pnpm's hoisting map from node_modules/.modules.yaml.

    Returns:
        Mapping of dependency path (e.g. "lodash@4.17.21") to the alias
        names it was hoisted under

    Raises:
        LayoutError: If the file is missing or malformed
    """
    path = Path(node_modules_dir) / PNPM_STATE_FILE
    state = await asyncio.to_thread(_load_state, path)
    return state.hoisted_dependencies


def store_dir_name(dep_path: str) -> str:
    """
    Directory name pnpm uses in the store for a dependency path.

    "@babel/core@7.0.0" -> "@babel+core@7.0.0"
    "react-dom@18.2.0(react@18.2.0)" -> "react-dom@18.2.0_react@18.2.0"
    """
    name = dep_path.lstrip("/")
    name = name.replace(")(", "_").replace("(", "_").replace(")", "")
    return name.replace("/", "+")


def _is_valid_alias(alias: str) -> bool:
    """An alias must be a plain or scoped package directory under node_modules."""
    segments = alias.split("/")
    return 0 < len(segments) <= 2 and all(s not in ("", ".", "..") for s in segments)


def package_name(dep_path: str) -> str:
    """Package name part of a dependency path, scoped names included."""
    spec = dep_path.lstrip("/").split("(", 1)[0]
    at = spec.find("@", 1) if spec.startswith("@") else spec.find("@")
    return spec[:at] if at > 0 else spec


# -----------------------------------------------------------------------------
# Layout entries
# -----------------------------------------------------------------------------


async def _pnpm_entries(
    node_modules_dir: Path,
    archive_path: str,
    matcher: IgnoreMatcher,
    verbose: bool,
) -> AsyncIterator[ArchiveEntry]:
    hoisted = await read_hoisted_dependencies(node_modules_dir)
    store = node_modules_dir / PNPM_STORE

    if not await asyncio.to_thread(store.is_dir):
        raise LayoutError(f"pnpm store not found: {store}")

    # Resolve every hoisted package up front so an inconsistent install
    # fails before anything is yielded
    targets: list[tuple[str, Path]] = []
    missing: list[str] = []
    for dep_path, aliases in hoisted.items():
        bad = [alias for alias in aliases if not _is_valid_alias(alias)]
        if bad:
            raise LayoutError(
                f"Invalid hoisted alias {bad[0]!r} for {dep_path} in {PNPM_STATE_FILE}"
            )
        source = store / store_dir_name(dep_path) / NODE_MODULES / package_name(dep_path)
        if not await asyncio.to_thread(source.is_dir):
            missing.append(f"{dep_path} ({source})")
            continue
        for alias in aliases:
            targets.append((alias, source))

    if missing:
        raise LayoutError(
            "Hoisted packages missing from the pnpm store: " + ", ".join(missing)
        )

    if verbose:
        print(
            f"pnpm layout: store + {len(targets)} hoisted package(s)",
            file=sys.stderr,
        )

    async for entry in get_folder_entries(
        store,
        archive_path=join_archive_path(archive_path, PNPM_STORE),
        ignore=matcher,
    ):
        yield entry

    for alias, source in targets:
        async for entry in get_folder_entries(
            source,
            archive_path=join_archive_path(archive_path, alias),
            ignore=matcher,
        ):
            yield entry


async def get_layout_entries(
    kind: LockfileKind,
    install_dir: str | Path,
    archive_path: str = NODE_MODULES,
    ignore: Iterable[str] | IgnoreMatcher | None = None,
    *,
    verbose: bool = False,
) -> AsyncIterator[ArchiveEntry]:
    """
    Yield archive entries for an installed node_modules tree.

    Args:
        kind: Package manager that produced the install
        install_dir: Directory the package manager ran in (holds node_modules)
        archive_path: Archive prefix for the node_modules contents
        ignore: Gitignore-style patterns applied relative to each walked root

    Yields:
        ArchiveEntry for each file, in the same flat shape for every manager

    Raises:
        ConfigurationError: If kind is not a known package manager
        LayoutError: If the installed tree is missing or inconsistent
    """
    if not isinstance(kind, LockfileKind):
        raise ConfigurationError(f"Unknown package manager: {kind!r}")

    node_modules_dir = Path(install_dir) / NODE_MODULES
    matcher = ignore if isinstance(ignore, IgnoreMatcher) else IgnoreMatcher(ignore)

    if kind is LockfileKind.PNPM:
        async for entry in _pnpm_entries(node_modules_dir, archive_path, matcher, verbose):
            yield entry
        return

    if not await asyncio.to_thread(os.path.isdir, node_modules_dir):
        raise LayoutError(f"node_modules not found after install: {node_modules_dir}")

    if verbose:
        print(f"{kind.value} layout: {node_modules_dir}", file=sys.stderr)

    async for entry in get_folder_entries(node_modules_dir, archive_path=archive_path, ignore=matcher):
        yield entry
