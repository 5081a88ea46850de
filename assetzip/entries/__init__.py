"""
Archive entry enumeration.

Turns a directory tree into a lazy async stream of archive entries,
filtered by gitignore-style patterns.

Usage:
    from assetzip.entries import get_folder_entries

    async for entry in get_folder_entries("./dist", archive_path="app", ignore=["*.map"]):
        print(entry.archive_path)
"""

from .entry import ArchiveEntry, is_path_safe, join_archive_path, normalize_path
from .folder import get_folder_entries
from .ignore import IgnoreMatcher, IgnoreRule, compile_rule

__all__ = [
    # Entries
    "ArchiveEntry",
    "join_archive_path",
    "normalize_path",
    "is_path_safe",
    # Ignore
    "IgnoreMatcher",
    "IgnoreRule",
    "compile_rule",
    # Walker
    "get_folder_entries",
]
