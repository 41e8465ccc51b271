"""Recursive directory scanning under global resource budgets."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from tree_digest.config import ContentKind, FileNode, NodeType, ScanStats
from tree_digest.logging import logger
from tree_digest.patterns import should_exclude, should_include
from tree_digest.text_detection import is_text_file, read_file_content

if TYPE_CHECKING:
    from tree_digest.config import QueryConfig


def is_safe_symlink(link: Path, base: Path) -> bool:
    """Check that a symlink resolves to a location inside `base`.

    Args:
        link (Path): the symlink to check
        base (Path): the directory the target must live under

    Returns:
        bool: True if the fully resolved target is `base` or lies below it.
            Dangling or looping links are never safe.
    """
    try:
        target = link.resolve(strict=True)
        real_base = base.resolve(strict=True)
    except (OSError, RuntimeError):
        return False
    return target == real_base or target.is_relative_to(real_base)


def scan_file(path: Path, name: str, size: int) -> FileNode:
    """Build the node of a file whose size has already been admitted by the budget."""
    if is_text_file(path):
        content: str | None = read_file_content(path)
        kind = ContentKind.TEXT
    else:
        content = None
        kind = ContentKind.BINARY
    return FileNode(
        name=name,
        type=NodeType.FILE,
        path=path,
        size=size,
        content=content,
        content_kind=kind,
    )


def scan_directory(
    path: Path,
    query: QueryConfig,
    stats: ScanStats | None = None,
    depth: int = 0,
) -> FileNode | None:
    """Recursively scan `path` into a tree of retained nodes.

    Pruning happens at entry, in order: depth budget, file-count budget,
    total-size budget, already visited real path. Within a directory, entries
    are visited in listing order; excluded entries are skipped entirely, files
    rejected by include patterns are dropped and flag the directory's
    `ignore_content`, and symlinks resolving outside `query.local_path` are
    never followed.

    Args:
        path (Path): the directory to scan
        query (QueryConfig): patterns, limits and base path of the ingestion
        stats (ScanStats | None): totals shared with the rest of the scan;
            a fresh accumulator is created for a top-level call
        depth (int): depth of `path` below the scan root

    Raises:
        OSError: any filesystem error other than a permission failure while
            listing a directory.

    Returns:
        FileNode | None: the directory node, or None when pruned
    """
    if stats is None:
        stats = ScanStats()
    limits = query.limits

    if depth > limits.max_depth:
        logger.info("Skipping deep directory", path=str(path), max_depth=limits.max_depth)
        return None
    if stats.total_files >= limits.max_files:
        logger.info("Skipping further processing: maximum file limit reached", max_files=limits.max_files)
        return None
    if stats.total_size >= limits.max_total_size:
        logger.info(
            "Skipping further processing: maximum total size reached",
            max_total_size=limits.max_total_size,
        )
        return None

    real_path = path.resolve(strict=True)
    if real_path in stats.seen_paths:
        logger.info("Skipping already visited path", path=str(path))
        return None
    stats.seen_paths.add(real_path)

    base = query.local_path
    include_patterns = query.include_patterns
    children: list[FileNode] = []
    size = 0
    file_count = 0
    dir_count = 0
    ignore_content = False

    try:
        with os.scandir(path) as entries:
            for entry in entries:
                entry_path = Path(entry.path)

                if should_exclude(entry_path, base, query.ignore_patterns):
                    continue

                is_file = entry.is_file()
                if is_file and include_patterns is not None and not should_include(entry_path, base, include_patterns):
                    ignore_content = True
                    continue

                if entry.is_symlink() and not is_safe_symlink(entry_path, base):
                    logger.info("Skipping symlink that points outside base directory", path=str(entry_path))
                    continue

                if is_file:
                    file_size = entry.stat().st_size
                    if stats.total_size + file_size > limits.max_total_size:
                        logger.info("Skipping file: would exceed total size limit", path=str(entry_path))
                        continue
                    if stats.total_files >= limits.max_files:
                        logger.info("Maximum file limit reached", max_files=limits.max_files)
                        break
                    stats.total_files += 1
                    stats.total_size += file_size

                    children.append(scan_file(entry_path, entry.name, file_size))
                    size += file_size
                    file_count += 1
                elif entry.is_dir():
                    subdir = scan_directory(entry_path, query, stats, depth + 1)
                    if subdir is not None and (include_patterns is None or subdir.file_count > 0):
                        children.append(subdir)
                        size += subdir.size
                        file_count += subdir.file_count
                        dir_count += 1 + subdir.dir_count
    except PermissionError:
        logger.warning("Permission denied", path=str(path))

    return FileNode(
        name=path.name,
        type=NodeType.DIRECTORY,
        path=path,
        size=size,
        file_count=file_count,
        dir_count=dir_count,
        children=tuple(children),
        ignore_content=ignore_content,
    )
