"""Ant-style path patterns for file-set selection.

``**`` matches any number of directories, ``*`` any run of characters inside
one path segment and ``?`` a single character. A pattern ending with ``/``
matches everything below that directory. Paths and patterns always use ``/``.
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Sequence

DEFAULT_EXCLUDES = (
    # Editors and OS
    "**/*~",
    "**/#*#",
    "**/.#*",
    "**/%*%",
    "**/._*",
    "**/.DS_Store",
    # Version control
    "**/CVS",
    "**/CVS/**",
    "**/.cvsignore",
    "**/.svn",
    "**/.svn/**",
    "**/.git",
    "**/.git/**",
    "**/.gitignore",
    "**/.gitattributes",
    "**/.gitmodules",
    "**/.hg",
    "**/.hg/**",
    "**/.hgignore",
    "**/.bzr",
    "**/.bzr/**",
    "**/.bzrignore",
)


def normalize_pattern(pattern: str) -> str:
    pattern = pattern.strip().replace("\\", "/").lstrip("/")
    if pattern.endswith("/"):
        pattern += "**"
    return pattern


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> re.Pattern:
    """Translate an Ant-style pattern into an anchored regular expression."""
    pattern = normalize_pattern(pattern)
    out = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("/**", i) and i + 3 == len(pattern):
            out.append("(?:/.*)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(out) + r"\Z")


def match_path(pattern: str, path: str) -> bool:
    """
    Example:
        >>> match_path("**/*.txt", "docs/readme.txt")
        True
        >>> match_path("*.txt", "docs/readme.txt")
        False
    """
    return compile_pattern(pattern).match(path.strip("/")) is not None


class PathMatcher:
    """
    Include/exclude selection for relative paths.

    Args:
        includes: Patterns to include; empty means everything
        excludes: Patterns to exclude; an excluded directory excludes its subtree
        use_default_excludes: Also exclude version-control and editor files
    """

    def __init__(
        self,
        includes: Sequence[str] | None = None,
        excludes: Sequence[str] | None = None,
        use_default_excludes: bool = True,
    ):
        self.includes = [p for p in (includes or []) if p and p.strip()] or ["**"]
        self.excludes = [p for p in (excludes or []) if p and p.strip()]
        if use_default_excludes:
            self.excludes.extend(DEFAULT_EXCLUDES)

    def _any(self, patterns: Iterable[str], path: str) -> bool:
        return any(match_path(p, path) for p in patterns)

    def is_excluded(self, path: str) -> bool:
        """True if the path or any of its parent directories is excluded."""
        parts = path.strip("/").split("/")
        return any(
            self._any(self.excludes, "/".join(parts[: i + 1])) for i in range(len(parts))
        )

    def is_included(self, path: str) -> bool:
        return self._any(self.includes, path.strip("/"))

    def matches(self, path: str) -> bool:
        return self.is_included(path) and not self.is_excluded(path)
