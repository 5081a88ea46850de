"""Package manager detection from lockfile names."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path

from assetzip.errors import ConfigurationError


class LockfileKind(str, Enum):
    """Package managers whose install output can be archived."""

    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"

    @property
    def lockfile_name(self) -> str:
        return LOCKFILE_NAMES[self]

    @property
    def install_command(self) -> list[str]:
        """Command that installs exactly what the lockfile records."""
        return list(INSTALL_COMMANDS[self])

    @classmethod
    def from_path(cls, path: str | Path) -> "LockfileKind":
        """
        Determine the package manager from a lockfile path.

        Only the basename is inspected.

        Raises:
            ConfigurationError: If the filename is not a known lockfile
        """
        name = os.path.basename(os.fspath(path))
        for kind, lockfile_name in LOCKFILE_NAMES.items():
            if name == lockfile_name:
                return kind
        known = ", ".join(LOCKFILE_NAMES.values())
        raise ConfigurationError(
            f"Unrecognized lockfile '{path}' (expected one of: {known})"
        )


LOCKFILE_NAMES: dict[LockfileKind, str] = {
    LockfileKind.NPM: "package-lock.json",
    LockfileKind.YARN: "yarn.lock",
    LockfileKind.PNPM: "pnpm-lock.yaml",
}

INSTALL_COMMANDS: dict[LockfileKind, tuple[str, ...]] = {
    LockfileKind.NPM: ("npm", "ci"),
    LockfileKind.YARN: ("yarn", "--frozen-lockfile"),
    # The sliced package.json no longer matches the lockfile's importer
    LockfileKind.PNPM: ("pnpm", "install", "--no-frozen-lockfile"),
}
