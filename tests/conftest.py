"""Shared fixtures for assetzip tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import AsyncIterator

import pytest

from assetzip.runtime import reset_global_config


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Create files (and their parent directories) under root."""
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


async def collect(entries: AsyncIterator) -> dict[str, bytes]:
    """Drain an entry stream into {archive_path: content}, failing on duplicates."""
    result: dict[str, bytes] = {}
    async for entry in entries:
        assert entry.archive_path not in result, f"duplicate entry {entry.archive_path}"
        result[entry.archive_path] = entry.read_bytes()
    return result


def write_pnpm_layout(install_dir: Path, modules_yaml: str, store: dict[str, str]) -> Path:
    """Build node_modules/.modules.yaml and node_modules/.pnpm/<files>."""
    node_modules = install_dir / "node_modules"
    write_tree(node_modules / ".pnpm", store)
    (node_modules / ".modules.yaml").write_text(modules_yaml, encoding="utf-8")
    return node_modules


@pytest.fixture(autouse=True)
def clean_runtime_config(monkeypatch: pytest.MonkeyPatch):
    """Reset the global config and clear ASSETZIP_* env between tests."""
    reset_global_config()
    monkeypatch.delenv("ASSETZIP_PACKAGE_ARCH", raising=False)
    monkeypatch.delenv("ASSETZIP_PACKAGE_PLATFORM", raising=False)
    monkeypatch.delenv("ASSETZIP_IGNORE", raising=False)
    yield
    reset_global_config()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project directory with package.json and one lockfile of each kind."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "package.json").write_text(
        json.dumps(
            {
                "name": "my-app",
                "version": "1.0.0",
                "dependencies": {"lodash": "^4.17.21", "sharp": "0.33.2"},
                "devDependencies": {"typescript": "~5.4.0", "lodash": "4.0.0"},
            }
        ),
        encoding="utf-8",
    )
    (root / "package-lock.json").write_text('{"lockfileVersion": 3}', encoding="utf-8")
    (root / "yarn.lock").write_text("# yarn lockfile v1\n", encoding="utf-8")
    (root / "pnpm-lock.yaml").write_text("lockfileVersion: '9.0'\n", encoding="utf-8")
    (root / "shrinkwrap.yaml").write_text("shrinkwrapVersion: 3\n", encoding="utf-8")
    return root
