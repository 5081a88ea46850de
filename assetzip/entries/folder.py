"""
Directory walker.

Enumerates a folder tree as an async stream of ArchiveEntry objects.
The walk uses an explicit work stack instead of recursion, lists one
directory per step and never reads file content.
"""

from __future__ import annotations

import asyncio
import errno
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Iterable

from assetzip.errors import ConfigurationError

from .entry import ArchiveEntry, join_archive_path, normalize_path
from .ignore import IgnoreMatcher


@dataclass(frozen=True, slots=True)
class _Child:
    """A directory child with its resolved type."""

    name: str
    path: str
    is_dir: bool
    is_file: bool
    is_link: bool


@dataclass(frozen=True, slots=True)
class _Pending:
    """A directory waiting on the work stack."""

    path: str
    real: str
    # Real paths of this directory and its ancestors, for loop detection
    ancestors: frozenset[str]


def _scan(directory: str) -> list[_Child]:
    """List a directory's children with the type info scandir already has."""
    children: list[_Child] = []
    with os.scandir(directory) as it:
        for entry in it:
            is_link = entry.is_symlink()
            children.append(
                _Child(
                    name=entry.name,
                    path=entry.path,
                    is_dir=not is_link and entry.is_dir(follow_symlinks=False),
                    is_file=not is_link and entry.is_file(follow_symlinks=False),
                    is_link=is_link,
                )
            )
    return children


def _resolve_link(child: _Child) -> _Child | None:
    """Follow a symlink to its target type. Broken links return None."""
    try:
        st = os.stat(child.path)
    except (FileNotFoundError, NotADirectoryError):
        return None
    except OSError as e:
        if e.errno == errno.ELOOP:
            return None
        raise
    return _Child(
        name=child.name,
        path=child.path,
        is_dir=stat.S_ISDIR(st.st_mode),
        is_file=stat.S_ISREG(st.st_mode),
        is_link=True,
    )


async def get_folder_entries(
    source: str | Path,
    archive_path: str = "",
    ignore: Iterable[str] | IgnoreMatcher | None = None,
) -> AsyncIterator[ArchiveEntry]:
    """
    Walk a directory tree and yield an ArchiveEntry per regular file.

    Symlinks are followed to their real type; broken links, sockets,
    devices and fifos are skipped. Ignored directories are pruned and
    never listed. Entry order is not guaranteed.

    Args:
        source: Root directory to walk (may itself be a symlink)
        archive_path: Prefix prepended to every relative path
        ignore: Gitignore-style patterns, or a prebuilt IgnoreMatcher

    Yields:
        ArchiveEntry for each non-ignored regular file

    Raises:
        NotADirectoryError: If source is missing or not a directory
        ConfigurationError: If archive_path escapes the archive root
    """
    if ".." in normalize_path(archive_path).split("/"):
        raise ConfigurationError(f"Archive path must stay inside the archive: {archive_path!r}")

    root = os.path.abspath(os.fspath(source))
    if not await asyncio.to_thread(os.path.isdir, root):
        raise NotADirectoryError(f"Not a directory: {root}")

    prefix = join_archive_path(archive_path)
    matcher = ignore if isinstance(ignore, IgnoreMatcher) else IgnoreMatcher(ignore)
    root_real = await asyncio.to_thread(os.path.realpath, root)
    work: list[_Pending] = [_Pending(root, root_real, frozenset({root_real}))]

    while work:
        current = work.pop()
        children = await asyncio.to_thread(_scan, current.path)

        for child in children:
            if child.is_link:
                resolved = await asyncio.to_thread(_resolve_link, child)
                if resolved is None:
                    continue
                child = resolved

            if not child.is_dir and not child.is_file:
                continue

            # Split on the OS separator only; other characters belong to the name
            parts = os.path.relpath(child.path, root).split(os.sep)
            if matcher and matcher.ignores_parts(parts, child.is_dir):
                continue

            if child.is_dir:
                if child.is_link:
                    real = await asyncio.to_thread(os.path.realpath, child.path)
                    if real in current.ancestors:
                        continue
                else:
                    real = os.path.join(current.real, child.name)
                work.append(_Pending(child.path, real, current.ancestors | {real}))
            else:
                rel_path = "/".join(parts)
                yield ArchiveEntry(
                    archive_path=f"{prefix}/{rel_path}" if prefix else rel_path,
                    source_path=child.path,
                )
