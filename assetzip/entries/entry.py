"""
Archive entry type and archive path helpers.

An archive entry pairs the path a file will have inside an archive with
the file it comes from on disk. Content is never read until the consumer
asks for it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import BinaryIO


# -----------------------------------------------------------------------------
# Path helpers
# -----------------------------------------------------------------------------


def normalize_path(path: str) -> str:
    """
    Normalize path to forward slashes, remove leading ./ and /

    Converts Windows backslashes and ensures consistent format.
    """
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    normalized = normalized.lstrip("/")
    return normalized


def is_path_safe(path: str) -> bool:
    """
    Check if path stays inside the archive root.

    Rejects paths that:
    - Are empty
    - Are absolute
    - Contain .. components

    Args:
        path: Path to check (normalized first)

    Returns:
        True if path is safe
    """
    if not path or path.startswith(("/", "\\")):
        return False

    normalized = normalize_path(path)
    if not normalized:
        return False

    return ".." not in PurePosixPath(normalized).parts


def join_archive_path(*parts: str) -> str:
    """
    Join archive path fragments with forward slashes.

    Empty fragments and "." are dropped, so an empty prefix yields the
    relative path unchanged. The result never has a leading or trailing
    slash.
    """
    segments: list[str] = []
    for part in parts:
        for segment in normalize_path(part).split("/"):
            if segment and segment != ".":
                segments.append(segment)
    return "/".join(segments)


# -----------------------------------------------------------------------------
# Archive Entry
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """
    A file destined for an archive.

    Attributes:
        archive_path: Archive-root-relative path, forward slashes, no leading slash
        source_path: Path of the file on disk (may go through symlinks)
    """

    archive_path: str
    source_path: str

    @property
    def name(self) -> str:
        """Filename without directory."""
        return self.archive_path.rsplit("/", 1)[-1]

    def open(self) -> BinaryIO:
        """
        Open a binary stream over the file content.

        The caller owns the returned handle and must close it.
        """
        return open(self.source_path, "rb")

    def read_bytes(self) -> bytes:
        """Read the whole file content."""
        with self.open() as handle:
            return handle.read()
