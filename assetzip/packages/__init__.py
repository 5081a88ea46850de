"""
Installed dependency packaging.

Installs a project's dependencies with npm, yarn or pnpm and streams the
resulting node_modules tree as archive entries in one flat shape,
whichever package manager produced it.

Usage:
    from assetzip.packages import get_package_entries

    async for entry in get_package_entries("package.json", "yarn.lock", ["sharp"]):
        print(entry.archive_path)
"""

from .install import PackageInstall, get_package_entries, install_packages, run_install
from .layout import (
    ModulesState,
    get_layout_entries,
    package_name,
    read_hoisted_dependencies,
    store_dir_name,
)
from .lockfile import LockfileKind
from .manifest import ManifestSlice, PackageManifest, build_manifest_slice, load_manifest

__all__ = [
    # Lockfiles
    "LockfileKind",
    # Manifests
    "PackageManifest",
    "ManifestSlice",
    "load_manifest",
    "build_manifest_slice",
    # Layout
    "ModulesState",
    "get_layout_entries",
    "read_hoisted_dependencies",
    "store_dir_name",
    "package_name",
    # Install
    "PackageInstall",
    "install_packages",
    "get_package_entries",
    "run_install",
]
