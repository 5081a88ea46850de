"""Tests for the directory walker."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

import assetzip.entries.folder as folder_module
from assetzip.entries import ArchiveEntry, IgnoreMatcher, get_folder_entries
from assetzip.errors import ConfigurationError

from .conftest import collect, write_tree


@pytest.mark.asyncio
async def test_yields_one_entry_per_file(tmp_path: Path):
    root = write_tree(
        tmp_path / "src",
        {
            "index.js": "main",
            "lib/util.js": "util",
            "lib/deep/er/file.txt": "deep",
        },
    )
    (root / "empty-dir").mkdir()

    entries = await collect(get_folder_entries(root))

    assert entries == {
        "index.js": b"main",
        "lib/util.js": b"util",
        "lib/deep/er/file.txt": b"deep",
    }


@pytest.mark.asyncio
async def test_empty_directory_yields_nothing(tmp_path: Path):
    (tmp_path / "empty").mkdir()

    assert await collect(get_folder_entries(tmp_path / "empty")) == {}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("prefix", "expected"),
    [
        ("", "a/b.txt"),
        ("/", "a/b.txt"),
        ("app", "app/a/b.txt"),
        ("app/", "app/a/b.txt"),
        ("/bundle/node_modules", "bundle/node_modules/a/b.txt"),
        ("win\\style", "win/style/a/b.txt"),
    ],
)
async def test_archive_prefix_is_joined_with_forward_slashes(tmp_path: Path, prefix, expected):
    root = write_tree(tmp_path / "src", {"a/b.txt": "x"})

    entries = await collect(get_folder_entries(root, archive_path=prefix))

    assert list(entries) == [expected]


@pytest.mark.asyncio
async def test_prefix_escaping_archive_is_rejected(tmp_path: Path):
    root = write_tree(tmp_path / "src", {"a.txt": "x"})

    with pytest.raises(ConfigurationError):
        await collect(get_folder_entries(root, archive_path="../outside"))


@pytest.mark.asyncio
async def test_missing_or_file_root_raises(tmp_path: Path):
    (tmp_path / "file.txt").write_text("x")

    with pytest.raises(NotADirectoryError):
        await collect(get_folder_entries(tmp_path / "missing"))
    with pytest.raises(NotADirectoryError):
        await collect(get_folder_entries(tmp_path / "file.txt"))


@pytest.mark.asyncio
async def test_follows_directory_and_file_symlinks(tmp_path: Path):
    shared = write_tree(tmp_path / "shared", {"pkg/index.js": "shared"})
    root = write_tree(tmp_path / "src", {"own.js": "own", "real.txt": "real"})
    os.symlink(shared / "pkg", root / "linked-pkg")
    os.symlink(root / "real.txt", root / "alias.txt")

    entries = await collect(get_folder_entries(root))

    assert entries == {
        "own.js": b"own",
        "real.txt": b"real",
        "alias.txt": b"real",
        "linked-pkg/index.js": b"shared",
    }


@pytest.mark.asyncio
async def test_shared_symlinked_directory_is_listed_under_each_path(tmp_path: Path):
    root = write_tree(tmp_path / "src", {"a/dep/index.js": "dep"})
    os.symlink(root / "a" / "dep", root / "b")

    entries = await collect(get_folder_entries(root))

    assert set(entries) == {"a/dep/index.js", "b/index.js"}


@pytest.mark.asyncio
async def test_broken_symlink_is_skipped(tmp_path: Path):
    root = write_tree(tmp_path / "src", {"ok.txt": "ok"})
    os.symlink(tmp_path / "nowhere", root / "dangling")

    assert list(await collect(get_folder_entries(root))) == ["ok.txt"]


@pytest.mark.asyncio
async def test_self_referencing_symlink_is_skipped(tmp_path: Path):
    root = write_tree(tmp_path / "src", {"ok.txt": "ok"})
    os.symlink(root / "self", root / "self")

    assert list(await collect(get_folder_entries(root))) == ["ok.txt"]


@pytest.mark.asyncio
async def test_symlink_through_a_file_is_skipped(tmp_path: Path):
    root = write_tree(tmp_path / "src", {"ok.txt": "ok"})
    os.symlink(root / "ok.txt" / "sub", root / "bad")

    assert list(await collect(get_folder_entries(root))) == ["ok.txt"]


@pytest.mark.asyncio
@pytest.mark.skipif(os.sep != "/", reason="backslash is the separator on Windows")
async def test_backslash_in_file_name_is_kept(tmp_path: Path):
    root = write_tree(tmp_path / "src", {"lib/a\\b.js": "x", "..\\up.js": "y"})

    entries = await collect(get_folder_entries(root, archive_path="app", ignore=["/a"]))

    assert entries == {"app/lib/a\\b.js": b"x", "app/..\\up.js": b"y"}


@pytest.mark.asyncio
@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="requires os.mkfifo")
async def test_special_files_are_skipped(tmp_path: Path):
    root = write_tree(tmp_path / "src", {"ok.txt": "ok"})
    os.mkfifo(root / "pipe")

    assert list(await collect(get_folder_entries(root))) == ["ok.txt"]


@pytest.mark.asyncio
async def test_symlinked_root_is_followed(tmp_path: Path):
    real = write_tree(tmp_path / "real", {"x/y.txt": "y"})
    os.symlink(real, tmp_path / "link")

    entries = await collect(get_folder_entries(tmp_path / "link", archive_path="out"))

    assert entries == {"out/x/y.txt": b"y"}


@pytest.mark.asyncio
async def test_symlink_loop_terminates(tmp_path: Path):
    root = write_tree(tmp_path / "src", {"a/f.txt": "f"})
    os.symlink(root, root / "a" / "loop")
    os.symlink(root / "a", root / "a" / "self")

    entries = await collect(get_folder_entries(root))

    assert list(entries) == ["a/f.txt"]


@pytest.mark.asyncio
async def test_ignore_patterns_filter_files_and_prune_directories(tmp_path: Path):
    root = write_tree(
        tmp_path / "src",
        {
            "index.js": "",
            "index.js.map": "",
            "test/fixture.js": "",
            "test/unit.js": "",
            "lib/test/keep.js": "",
            "docs/readme.md": "",
        },
    )

    entries = await collect(
        get_folder_entries(root, ignore=["*.map", "/test/", "!test/fixture.js", "docs"])
    )

    assert set(entries) == {"index.js", "lib/test/keep.js"}


@pytest.mark.asyncio
async def test_ignored_directories_are_never_listed(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    root = write_tree(tmp_path / "src", {"keep/a.js": "", "skip/b.js": "", "skip/deep/c.js": ""})
    scanned: list[str] = []
    original_scan = folder_module._scan

    def spy(directory: str):
        scanned.append(os.path.relpath(directory, root))
        return original_scan(directory)

    monkeypatch.setattr(folder_module, "_scan", spy)

    entries = await collect(get_folder_entries(root, ignore=["skip/"]))

    assert set(entries) == {"keep/a.js"}
    assert sorted(scanned) == [".", "keep"]


@pytest.mark.asyncio
async def test_accepts_prebuilt_matcher(tmp_path: Path):
    root = write_tree(tmp_path / "src", {"a.js": "", "b.ts": ""})

    entries = await collect(get_folder_entries(root, ignore=IgnoreMatcher(["*.ts"])))

    assert set(entries) == {"a.js"}


@pytest.mark.asyncio
async def test_content_is_opened_lazily(tmp_path: Path):
    root = write_tree(tmp_path / "src", {"data.txt": "before"})

    entries = [entry async for entry in get_folder_entries(root)]
    (root / "data.txt").write_text("after")

    assert len(entries) == 1
    assert isinstance(entries[0], ArchiveEntry)
    assert entries[0].name == "data.txt"
    with entries[0].open() as handle:
        assert handle.read() == b"after"


@pytest.mark.asyncio
async def test_closing_stream_stops_walking(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    root = write_tree(tmp_path / "src", {"top.txt": "", "d1/a.txt": "", "d2/b.txt": ""})
    scanned: list[str] = []
    original_scan = folder_module._scan

    def spy(directory: str):
        scanned.append(directory)
        return original_scan(directory)

    monkeypatch.setattr(folder_module, "_scan", spy)

    # The root listing yields top.txt before d1/ or d2/ are listed
    stream = get_folder_entries(root)
    first = await stream.__anext__()
    await stream.aclose()

    assert first.archive_path == "top.txt"
    assert len(scanned) == 1


@pytest.mark.asyncio
async def test_deep_tree_does_not_recurse(tmp_path: Path):
    depth = 150
    rel = "/".join(["d"] * depth) + "/leaf.txt"
    root = write_tree(tmp_path / "src", {rel: "leaf"})

    entries = await collect(get_folder_entries(root))

    assert entries == {rel: b"leaf"}
