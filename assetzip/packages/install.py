"""
Dependency installation.

Installs a subset of a project's dependencies into a scratch directory
with the project's own package manager and lockfile, then streams the
result as archive entries.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Iterable

from assetzip.entries import ArchiveEntry, IgnoreMatcher
from assetzip.errors import ConfigurationError, InstallError
from assetzip.runtime import RuntimeConfig, get_global_config

from .layout import get_layout_entries
from .lockfile import LockfileKind
from .manifest import ManifestSlice, build_manifest_slice, load_manifest


@dataclass
class PackageInstall:
    """Result of a successful install."""

    kind: LockfileKind
    install_dir: Path
    manifest: ManifestSlice

    @property
    def node_modules_dir(self) -> Path:
        return self.install_dir / "node_modules"


async def run_install(command: list[str], cwd: Path) -> int:
    """
    Run the package manager and wait for it to exit.

    Output goes straight to this process's stdout/stderr.

    Returns:
        The process exit code

    Raises:
        InstallError: If the executable cannot be started
    """
    try:
        proc = await asyncio.create_subprocess_exec(*command, cwd=os.fspath(cwd))
    except FileNotFoundError as e:
        raise InstallError(f"{command[0]} executable not found") from e
    return await proc.wait()


def _prepare_install_dir(
    install_dir: Path,
    manifest: ManifestSlice,
    lockfile: Path,
    npmrc_lines: list[str],
) -> None:
    install_dir.mkdir(parents=True, exist_ok=True)
    (install_dir / "package.json").write_text(manifest.to_json(), encoding="utf-8")
    shutil.copyfile(lockfile, install_dir / lockfile.name)
    if npmrc_lines:
        (install_dir / ".npmrc").write_text("\n".join(npmrc_lines) + "\n", encoding="utf-8")


async def install_packages(
    package_file_path: str | Path,
    package_lock_path: str | Path,
    package_names: Iterable[str],
    *,
    package_arch: str | None = None,
    package_platform: str | None = None,
    work_dir: str | Path | None = None,
    verbose: bool = False,
) -> PackageInstall:
    """
    Install package_names into a scratch directory.

    The lockfile kind and the requested names are validated before
    anything is written or spawned.

    Args:
        package_file_path: Project package.json
        package_lock_path: Project lockfile; its name selects the package manager
        package_names: Dependencies to install
        package_arch: Target CPU architecture (.npmrc "arch")
        package_platform: Target OS platform (.npmrc "platform")
        work_dir: Install directory (default: new temp directory). Never removed here.
        verbose: Print the install command to stderr

    Returns:
        PackageInstall describing the populated directory

    Raises:
        ConfigurationError: Unknown lockfile, missing files or unknown dependency names
        InstallError: If the package manager fails or cannot be started
    """
    kind = LockfileKind.from_path(package_lock_path)
    lockfile = Path(package_lock_path)
    if not await asyncio.to_thread(lockfile.is_file):
        raise ConfigurationError(f"Lockfile not found: {lockfile}")

    project_manifest = await asyncio.to_thread(load_manifest, package_file_path)
    manifest = build_manifest_slice(
        project_manifest, package_names, source=package_file_path
    )

    config = RuntimeConfig(package_arch=package_arch, package_platform=package_platform)
    npmrc_lines = config.npmrc_lines()

    if work_dir is None:
        install_dir = Path(await asyncio.to_thread(tempfile.mkdtemp, prefix="assetzip-"))
    else:
        install_dir = Path(work_dir)

    await asyncio.to_thread(_prepare_install_dir, install_dir, manifest, lockfile, npmrc_lines)

    command = kind.install_command
    if verbose:
        flags = ", ".join(npmrc_lines)
        print(f"\n{command[0]} install {flags}".rstrip(), file=sys.stderr)
        print(f"  in {install_dir}", file=sys.stderr)

    returncode = await run_install(command, install_dir)
    if returncode != 0:
        raise InstallError(
            f"{command[0]} exited with non-zero exit code {returncode}",
            returncode=returncode,
        )

    return PackageInstall(kind=kind, install_dir=install_dir, manifest=manifest)


async def get_package_entries(
    package_file_path: str | Path,
    package_lock_path: str | Path,
    package_names: Iterable[str],
    *,
    archive_path: str | None = None,
    ignore: Iterable[str] | IgnoreMatcher | None = None,
    package_arch: str | None = None,
    package_platform: str | None = None,
    work_dir: str | Path | None = None,
    verbose: bool | None = None,
    config: RuntimeConfig | None = None,
) -> AsyncIterator[ArchiveEntry]:
    """
    Install dependencies and yield archive entries for them.

    Arguments left as None fall back to config (or the global config).
    The install runs to completion before the first entry is yielded.
    The install directory must outlive consumption of the entries.

    Example:
        async for entry in get_package_entries(
            "package.json", "pnpm-lock.yaml", ["lodash"], package_arch="arm64"
        ):
            zf.writestr(entry.archive_path, entry.read_bytes())
    """
    cfg = config or get_global_config()

    install = await install_packages(
        package_file_path,
        package_lock_path,
        package_names,
        package_arch=package_arch or cfg.package_arch,
        package_platform=package_platform or cfg.package_platform,
        work_dir=work_dir,
        verbose=cfg.verbose if verbose is None else verbose,
    )

    async for entry in get_layout_entries(
        install.kind,
        install.install_dir,
        archive_path=cfg.archive_path if archive_path is None else archive_path,
        ignore=cfg.ignore if ignore is None else ignore,
        verbose=cfg.verbose if verbose is None else verbose,
    ):
        yield entry
