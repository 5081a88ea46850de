"""
Runtime configuration for assetzip.

Holds the defaults used when packaging dependencies: the archive prefix,
ignore patterns and the target CPU architecture / OS platform. Values can
come from explicit arguments or environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_ARCHIVE_PATH = "node_modules"

ENV_PACKAGE_ARCH = "ASSETZIP_PACKAGE_ARCH"
ENV_PACKAGE_PLATFORM = "ASSETZIP_PACKAGE_PLATFORM"
ENV_IGNORE = "ASSETZIP_IGNORE"


@dataclass
class RuntimeConfig:
    """
    Configuration for dependency packaging.

    Attributes:
        archive_path: Archive prefix for installed packages
        ignore: Gitignore-style patterns applied while walking
        package_arch: Target CPU architecture written to .npmrc (e.g. "arm64")
        package_platform: Target OS platform written to .npmrc (e.g. "linux")
        verbose: Print progress to stderr
    """

    archive_path: str = DEFAULT_ARCHIVE_PATH
    ignore: list[str] = field(default_factory=list)

    # Install targeting
    package_arch: str | None = None
    package_platform: str | None = None

    # Debug
    verbose: bool = False

    def npmrc_lines(self) -> list[str]:
        """Package manager settings restricting optional native packages."""
        lines: list[str] = []
        if self.package_arch:
            lines.append(f"arch={self.package_arch}")
        if self.package_platform:
            lines.append(f"platform={self.package_platform}")
        return lines


def _split_patterns(value: str | None) -> list[str]:
    if not value:
        return []
    return [p.strip() for p in value.split(",") if p.strip()]


def get_runtime_config(
    archive_path: str | None = None,
    ignore: list[str] | None = None,
    package_arch: str | None = None,
    package_platform: str | None = None,
    verbose: bool = False,
) -> RuntimeConfig:
    """
    Create a runtime configuration.

    Explicit arguments take precedence over ASSETZIP_* environment variables.

    Args:
        archive_path: Override archive prefix
        ignore: Override ignore patterns
        package_arch: Override target architecture
        package_platform: Override target platform
        verbose: Enable verbose output

    Returns:
        Configured RuntimeConfig instance
    """
    config = RuntimeConfig(
        package_arch=os.environ.get(ENV_PACKAGE_ARCH) or None,
        package_platform=os.environ.get(ENV_PACKAGE_PLATFORM) or None,
        ignore=_split_patterns(os.environ.get(ENV_IGNORE)),
        verbose=verbose,
    )

    if archive_path is not None:
        config.archive_path = archive_path
    if ignore is not None:
        config.ignore = list(ignore)
    if package_arch:
        config.package_arch = package_arch
    if package_platform:
        config.package_platform = package_platform

    return config


# Global config instance (can be set by the CLI)
_global_config: RuntimeConfig | None = None


def set_global_config(config: RuntimeConfig) -> None:
    """Set the global runtime configuration."""
    global _global_config
    _global_config = config


def get_global_config() -> RuntimeConfig:
    """Get the global runtime configuration, creating default if needed."""
    global _global_config
    if _global_config is None:
        _global_config = get_runtime_config()
    return _global_config


def reset_global_config() -> None:
    """Forget the global configuration so the next get re-reads the environment."""
    global _global_config
    _global_config = None
