"""
assetzip: lazy archive entry streams for folders and installed node_modules trees.
"""

__version__ = "0.1.0"

from .entries import ArchiveEntry, IgnoreMatcher, get_folder_entries
from .errors import AssetZipError, ConfigurationError, InstallError, LayoutError
from .packages import LockfileKind, get_layout_entries, get_package_entries

__all__ = [
    "__version__",
    "ArchiveEntry",
    "IgnoreMatcher",
    "get_folder_entries",
    "LockfileKind",
    "get_layout_entries",
    "get_package_entries",
    "AssetZipError",
    "ConfigurationError",
    "InstallError",
    "LayoutError",
]
