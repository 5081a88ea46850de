"""
Gitignore-style path matching.

Supports the subset of gitignore syntax used for archive filtering:
ordered patterns where the last match wins, ``!`` negation, directory-only
patterns with a trailing slash, anchoring, ``*``/``?``/``[...]`` wildcards
and ``**`` segments.

Paths are archive-relative with forward slashes. Directories are queried
with a trailing slash, files without.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from .entry import is_path_safe, normalize_path


class _InvalidPattern(Exception):
    pass


@dataclass(frozen=True)
class IgnoreRule:
    """A single compiled pattern."""

    pattern: str
    regex: re.Pattern[str]
    negated: bool
    dir_only: bool

    def matches(self, path: str, is_dir: bool) -> bool:
        if self.dir_only and not is_dir:
            return False
        return self.regex.match(path) is not None


def _translate(body: str) -> str:
    """Translate a glob body (no leading ``!``/``/``, no trailing ``/``) to a regex."""
    out: list[str] = []
    i = 0
    n = len(body)

    while i < n:
        c = body[i]
        if c == "*":
            if body.startswith("**", i):
                at_segment_start = i == 0 or body[i - 1] == "/"
                if at_segment_start and body.startswith("/", i + 2):
                    out.append("(?:.*/)?")
                    i += 3
                    continue
                if at_segment_start and i + 2 == n:
                    out.append(".*")
                    i += 2
                    continue
                # "a**b" behaves like a single star
                while i < n and body[i] == "*":
                    i += 1
                out.append("[^/]*")
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            j = i + 1
            negate = j < n and body[j] in "!^"
            if negate:
                j += 1
            if j < n and body[j] == "]":
                j += 1
            while j < n and body[j] != "]":
                j += 1
            if j >= n:
                raise _InvalidPattern(body)
            start = i + 2 if negate else i + 1
            content = (
                body[start:j]
                .replace("\\", "\\\\")
                .replace("[", "\\[")
                .replace("]", "\\]")
            )
            if not content:
                raise _InvalidPattern(body)
            out.append(f"[^/{content}]" if negate else f"[{content}]")
            i = j
        elif c == "\\" and i + 1 < n:
            out.append(re.escape(body[i + 1]))
            i += 1
        else:
            out.append(re.escape(c))
        i += 1

    return "".join(out)


def _strip_trailing_spaces(line: str) -> str:
    while line.endswith(" ") and not line.endswith("\\ "):
        line = line[:-1]
    return line


def compile_rule(line: str) -> IgnoreRule | None:
    """
    Compile one pattern line.

    Returns None for blank lines and comments. A pattern that cannot be
    compiled as a glob is matched as a literal path instead.
    """
    pattern = _strip_trailing_spaces(line.rstrip("\r\n"))
    if not pattern or pattern.startswith("#"):
        return None

    body = pattern
    negated = False
    if body.startswith("!"):
        negated = True
        body = body[1:]
    elif body.startswith(("\\!", "\\#")):
        body = body[1:]

    dir_only = body.endswith("/")
    body = body.rstrip("/")
    if not body:
        return None

    # A slash anywhere but the end anchors the pattern to the root
    anchored = "/" in body
    body = body.lstrip("/")
    if body.startswith("**/"):
        anchored = True

    try:
        translated = _translate(body)
        prefix = "" if anchored else "(?:.*/)?"
        regex = re.compile(f"^{prefix}{translated}$", re.DOTALL)
    except (_InvalidPattern, re.error):
        prefix = "" if anchored else "(?:.*/)?"
        regex = re.compile(f"^{prefix}{re.escape(body)}$", re.DOTALL)

    return IgnoreRule(pattern=pattern, regex=regex, negated=negated, dir_only=dir_only)


class IgnoreMatcher:
    """
    Ordered gitignore pattern set.

    Usage:
        matcher = IgnoreMatcher(["*.map", "test/", "!test/fixtures.js"])
        matcher.ignores("lib/index.js.map")  # True
        matcher.ignores("test/")  # True
    """

    def __init__(self, patterns: Iterable[str] | None = None) -> None:
        self.rules: list[IgnoreRule] = []
        if patterns:
            self.add(patterns)

    def add(self, patterns: Iterable[str] | str) -> "IgnoreMatcher":
        """Append patterns; a string is split into lines like a .gitignore file."""
        if isinstance(patterns, str):
            patterns = patterns.splitlines()
        for line in patterns:
            rule = compile_rule(line)
            if rule is not None:
                self.rules.append(rule)
        return self

    def __bool__(self) -> bool:
        return bool(self.rules)

    def _test(self, path: str, is_dir: bool) -> bool:
        ignored = False
        for rule in self.rules:
            # Only a negation can change an ignored path, and vice versa
            if rule.negated != ignored:
                continue
            if rule.matches(path, is_dir):
                ignored = not rule.negated
        return ignored

    def ignores(self, path: str) -> bool:
        """
        Check whether an archive-relative path is ignored.

        A path inside an ignored directory is always ignored, even when a
        later negation pattern matches the path itself.

        Raises:
            ValueError: If path is empty, absolute or escapes the root
        """
        if not is_path_safe(path):
            raise ValueError(f"Path must be relative and inside the root: {path!r}")
        if not self.rules:
            return False

        normalized = normalize_path(path)
        return self.ignores_parts(normalized.rstrip("/").split("/"), normalized.endswith("/"))

    def ignores_parts(self, parts: list[str], is_dir: bool) -> bool:
        """
        Check an already split relative path.

        Segments are taken as-is, so a backslash inside a file name stays
        part of that name.
        """
        for depth in range(1, len(parts)):
            if self._test("/".join(parts[:depth]), True):
                return True

        return self._test("/".join(parts), is_dir)
