"""Workspace-relative include/exclude filtering."""

from __future__ import annotations

import functools
import os
import re
from pathlib import Path
from typing import Iterable

DEFAULT_EXCLUDE_PATTERNS = [".venv/**", "**/.venv/**"]


def relative_path(path: str | Path, roots: Iterable[str | Path]) -> str | None:
    """Return ``path`` relative to the first root containing it, with '/' separators.

    Returns None when ``path`` is not inside any root.
    """
    target = os.path.abspath(path)
    for root in roots:
        root_path = os.path.abspath(root)
        try:
            if os.path.commonpath([target, root_path]) != root_path:
                continue
        except ValueError:
            # Different drives on Windows.
            continue
        return Path(os.path.relpath(target, root_path)).as_posix()
    return None


def _translate(pattern: str) -> str:
    """Translate a glob into a regex where only ``**`` crosses '/'.

    ``*`` and ``?`` stay inside one path segment, ``**/`` matches zero or more
    directories and a trailing ``/**`` matches everything below a directory.
    """
    parts = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("/**", i) and i + 3 == n:
            parts.append("(?:/.*)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif c == "*":
            parts.append("[^/]*")
            i += 1
        elif c == "?":
            parts.append("[^/]")
            i += 1
        elif c == "[":
            j = i + 1
            if j < n and pattern[j] == "!":
                j += 1
            if j < n and pattern[j] == "]":
                j += 1
            end = pattern.find("]", j)
            if end < 0:
                parts.append(re.escape(c))
                i += 1
                continue
            stuff = pattern[i + 1 : end].replace("\\", "\\\\")
            if stuff.startswith("!"):
                stuff = "^" + stuff[1:]
            elif stuff.startswith(("^", "[")):
                stuff = "\\" + stuff
            parts.append(f"[{stuff}]")
            i = end + 1
        else:
            parts.append(re.escape(c))
            i += 1
    return "".join(parts)


@functools.lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern:
    return re.compile(_translate(pattern), re.DOTALL)


def matches_glob(rel_path: str, pattern: str) -> bool:
    """Match a workspace-relative path against one glob pattern.

    Supports:
    - globs on the full path, where "*" and "?" stop at "/": "docs/*.md"
    - "**" across directories: "docs/**", "**/.venv/**" (also matches ".venv/x")
    - basename matching when the pattern has no slash: "*.md", "CHANGELOG.md"
    Dotfiles are not special-cased, so "*" matches ".hidden" as well.
    """
    regex = _compile(pattern)
    if regex.fullmatch(rel_path):
        return True
    return "/" not in pattern and regex.fullmatch(rel_path.rsplit("/", 1)[-1]) is not None


def should_exclude(
    path: str | Path,
    exclude_patterns: Iterable[str],
    include_patterns: Iterable[str],
    roots: Iterable[str | Path],
) -> bool:
    """Return True if ``path`` must not be reviewed.

    Paths outside every workspace root are never excluded. When include
    patterns are configured a path must match one of them; exclude patterns
    always win.
    """
    rel = relative_path(path, roots)
    if not rel:
        return False

    include_patterns = list(include_patterns)
    if include_patterns and not any(matches_glob(rel, p) for p in include_patterns):
        return True

    return any(matches_glob(rel, p) for p in exclude_patterns)
