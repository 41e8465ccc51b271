"""Shell-style glob matching over paths relative to the scan base.

Only `*` (any run of characters, separators included) and `?` (exactly one
character) are special; everything else matches literally. Matching is
anchored at both ends and case-sensitive.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Translate a glob pattern into an anchored regular expression.

    Args:
        pattern (str): the glob pattern to translate

    Returns:
        re.Pattern[str]: the compiled expression, matching whole strings only
    """
    parts: list[str] = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def match_pattern(path: str, pattern: str) -> bool:
    """Check whether a relative path matches a glob pattern.

    Args:
        path (str): the path to test, relative to the scan base
        pattern (str): the glob pattern; an empty pattern never matches

    Returns:
        bool: True if the whole path matches the pattern
    """
    if not pattern:
        return False
    return compile_pattern(pattern).fullmatch(path) is not None


def relative_to_base(path: str | Path, base: str | Path) -> str:
    """Send the path of `path` relative to `base`, without a leading separator.

    Args:
        path (str | Path): the path to "relativise"
        base (str | Path): the base directory of the scan

    Returns:
        str: the relative path with POSIX separators. If `path` is not under
            `base`, the path itself is returned with leading separators stripped.
    """
    try:
        rel = Path(path).relative_to(base).as_posix()
    except ValueError:
        rel = Path(path).as_posix()
    if rel == ".":
        return ""
    return rel.lstrip("/")


def should_exclude(path: str | Path, base: str | Path, ignore_patterns: Iterable[str]) -> bool:
    """Check if `path` matches any exclude pattern.

    Args:
        path (str | Path): the entry to test
        base (str | Path): the base directory patterns are relative to
        ignore_patterns (Iterable[str]): glob patterns to exclude

    Returns:
        bool: True if the entry must be skipped
    """
    rel = relative_to_base(path, base)
    return any(match_pattern(rel, pattern) for pattern in ignore_patterns)


def should_include(path: str | Path, base: str | Path, include_patterns: Iterable[str]) -> bool:
    """Check if `path` matches at least one include pattern.

    Args:
        path (str | Path): the entry to test
        base (str | Path): the base directory patterns are relative to
        include_patterns (Iterable[str]): glob patterns to include

    Returns:
        bool: True if the entry is selected by an include pattern
    """
    rel = relative_to_base(path, base)
    return any(match_pattern(rel, pattern) for pattern in include_patterns)


def normalize_patterns(patterns: Sequence[str | None]) -> list[str]:
    """Normalize a sequence of glob patterns.

    Strips whitespace, drops empty entries and replaces backslashes with
    forward slashes.

    Args:
        patterns (Sequence[str | None]): the patterns to normalize

    Returns:
        list[str]: the normalized patterns
    """
    out: list[str] = []
    for pattern in patterns:
        cleaned = (pattern or "").strip()
        if not cleaned:
            continue
        out.append(cleaned.replace("\\", "/"))
    return out


def split_patterns(raw: str) -> list[str]:
    """Split a comma-separated pattern list as given on the command line."""
    return normalize_patterns(raw.split(","))
