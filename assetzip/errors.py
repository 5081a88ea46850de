"""Exceptions raised while building archive entry streams."""

from __future__ import annotations


class AssetZipError(Exception):
    """Base exception for assetzip operations."""

    pass


class ConfigurationError(AssetZipError):
    """Raised for bad inputs detected before any install or walk starts."""

    pass


class InstallError(AssetZipError):
    """Raised when the package manager could not be run or failed."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class LayoutError(AssetZipError):
    """Raised when an installed node_modules tree is inconsistent."""

    pass
