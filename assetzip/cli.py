"""
assetzip CLI.

Commands:
    folder     List the archive entries of a directory tree
    packages   Install dependencies and list their archive entries

Examples:
    assetzip folder ./dist -p app -i "*.map"
    assetzip packages package.json pnpm-lock.yaml sharp lodash --arch arm64 --platform linux
    assetzip packages package.json package-lock.json express --count
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import AsyncIterator


def _read_ignore_patterns(args: argparse.Namespace) -> list[str]:
    """Patterns from --ignore options followed by --ignore-file lines."""
    from pathlib import Path

    patterns = list(args.ignore or [])
    if args.ignore_file:
        patterns.extend(Path(args.ignore_file).read_text(encoding="utf-8").splitlines())
    return patterns


async def _print_entries(entries: AsyncIterator, count_only: bool) -> int:
    count = 0
    async for entry in entries:
        count += 1
        if not count_only:
            print(entry.archive_path)
    return count


def cmd_folder(args: argparse.Namespace) -> int:
    """Handle folder command."""
    from assetzip.entries import get_folder_entries
    from assetzip.errors import AssetZipError

    try:
        ignore = _read_ignore_patterns(args)
        count = asyncio.run(
            _print_entries(
                get_folder_entries(args.source, archive_path=args.prefix, ignore=ignore),
                args.count,
            )
        )
        if args.count:
            print(count)
        elif args.verbose:
            print(f"\n{count} entries", file=sys.stderr)
        return 0
    except (AssetZipError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_packages(args: argparse.Namespace) -> int:
    """Handle packages command."""
    import tempfile

    from assetzip.errors import AssetZipError
    from assetzip.packages import get_package_entries
    from assetzip.runtime import get_runtime_config, set_global_config

    try:
        config = get_runtime_config(
            archive_path=args.prefix,
            ignore=_read_ignore_patterns(args) or None,
            package_arch=args.arch,
            package_platform=args.platform,
            verbose=args.verbose,
        )
        set_global_config(config)

        async def run(work_dir: str) -> int:
            return await _print_entries(
                get_package_entries(
                    args.package_json,
                    args.lockfile,
                    args.names,
                    work_dir=work_dir,
                    config=config,
                ),
                args.count,
            )

        if args.keep:
            count = asyncio.run(run(args.keep))
        else:
            with tempfile.TemporaryDirectory(prefix="assetzip-") as work_dir:
                count = asyncio.run(run(work_dir))

        if args.count:
            print(count)
        elif args.verbose:
            print(f"\n{count} entries", file=sys.stderr)
        return 0
    except KeyboardInterrupt:
        return 130
    except (AssetZipError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-i",
        "--ignore",
        action="append",
        metavar="PATTERN",
        help="Gitignore-style pattern to exclude (repeatable)",
    )
    parser.add_argument(
        "--ignore-file",
        help="Read additional patterns from a .gitignore-style file",
    )
    parser.add_argument(
        "-c",
        "--count",
        action="store_true",
        help="Print only the number of entries",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print progress information",
    )


def main(argv: list[str] | None = None) -> int:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        prog="assetzip",
        description="List the archive entries of folders and installed dependencies.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # folder
    folder_parser = subparsers.add_parser(
        "folder",
        help="List the archive entries of a directory tree",
    )
    folder_parser.add_argument(
        "source",
        help="Directory to walk",
    )
    folder_parser.add_argument(
        "-p",
        "--prefix",
        default="",
        help="Archive path prefix (default: archive root)",
    )
    _add_common_arguments(folder_parser)

    # packages
    packages_parser = subparsers.add_parser(
        "packages",
        help="Install dependencies and list their archive entries",
    )
    packages_parser.add_argument(
        "package_json",
        help="Path to the project package.json",
    )
    packages_parser.add_argument(
        "lockfile",
        help="Path to package-lock.json, yarn.lock or pnpm-lock.yaml",
    )
    packages_parser.add_argument(
        "names",
        nargs="+",
        help="Dependency names to install",
    )
    packages_parser.add_argument(
        "-p",
        "--prefix",
        default=None,
        help="Archive path prefix (default: node_modules)",
    )
    packages_parser.add_argument(
        "--arch",
        default=None,
        help="Target CPU architecture, e.g. arm64 (env: ASSETZIP_PACKAGE_ARCH)",
    )
    packages_parser.add_argument(
        "--platform",
        default=None,
        help="Target OS platform, e.g. linux (env: ASSETZIP_PACKAGE_PLATFORM)",
    )
    packages_parser.add_argument(
        "--keep",
        metavar="DIR",
        default=None,
        help="Install into DIR and keep it instead of a temp directory",
    )
    _add_common_arguments(packages_parser)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "folder":
        return cmd_folder(args)
    elif args.command == "packages":
        return cmd_packages(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
