from __future__ import annotations

import io
from typing import TYPE_CHECKING

from tree_digest.config import CONTENT_DELIMITER, DEFAULT_BRANCHES

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from tree_digest.config import FileNode, FileRecord, QueryConfig

TREE_HEADER = "Directory structure:\n"


def build_tree_lines(node: FileNode, root_name: str) -> list[str]:
    """Build a visual tree representation of a scanned node.

    Children keep their discovery order; nothing is sorted. A node without a
    name gets no line of its own and its children are drawn at its level.

    Args:
        node (FileNode): the root of the tree to draw
        root_name (str): the name to use for the root when it has none

    Returns:
        list[str]: one string per node, suitable for printing
    """
    lines: list[str] = []

    def walk(current: FileNode, prefix: str, *, last: bool, name: str) -> None:
        ext = ""
        if name:
            branch = "└── " if last else "├── "
            lines.append(prefix + branch + name)
            ext = "    " if last else "│   "
        children = current.children
        for idx, child in enumerate(children):
            walk(child, prefix + ext, last=idx == len(children) - 1, name=child.name)

    walk(node, "", last=True, name=node.name or root_name)
    return lines


def render_tree(query: QueryConfig, node: FileNode) -> str:
    """Render the tree diagram of a scan, one node per line with a trailing newline.

    Args:
        query (QueryConfig): the query, whose slug names an unnamed root
        node (FileNode): the scan result

    Returns:
        str: the tree diagram
    """
    return "".join(f"{line}\n" for line in build_tree_lines(node, query.slug))


def render_content(records: Sequence[FileRecord]) -> str:
    """Concatenate file contents, each introduced by a delimited header.

    Records whose content was elided are left out.

    Args:
        records (Sequence[FileRecord]): the extracted files, in output order

    Returns:
        str: the concatenated contents
    """
    out = io.StringIO()
    for rec in records:
        if rec.content is None:
            continue
        out.write(f"{CONTENT_DELIMITER}\n")
        out.write(f"File: {rec.path}\n")
        out.write(f"{CONTENT_DELIMITER}\n")
        out.write(f"{rec.content}\n\n")
    return out.getvalue()


def repository_line(query: QueryConfig) -> str | None:
    if query.user_name and query.repo_name:
        return f"Repository: {query.user_name}/{query.repo_name}"
    return None


def render_summary(query: QueryConfig, node: FileNode) -> str:
    """Summarize a directory ingestion.

    Lines, in order: repository identity (remote sources only), number of
    files analyzed, subpath (when not the root), then either the commit or a
    non-default branch.

    Args:
        query (QueryConfig): the query that produced `node`
        node (FileNode): the scan result

    Returns:
        str: the summary lines joined with newlines, with a trailing newline
    """
    parts: list[str] = []
    repo = repository_line(query)
    if repo:
        parts.append(repo)
    parts.append(f"Files analyzed: {node.file_count}")
    if query.subpath and query.subpath != "/":
        parts.append(f"Subpath: {query.subpath}")
    if query.commit:
        parts.append(f"Commit: {query.commit}")
    elif query.branch and query.branch not in DEFAULT_BRANCHES:
        parts.append(f"Branch: {query.branch}")
    return "\n".join(parts) + "\n"


def render_single_file_summary(query: QueryConfig, path: Path, size: int, content: str) -> str:
    """Summarize a single-file ingestion, without a trailing newline."""
    parts: list[str] = []
    repo = repository_line(query)
    if repo:
        parts.append(repo)
    parts.append(f"File: {path.name}")
    parts.append(f"Size: {size:,} bytes")
    line_count = len(content.split("\n"))
    parts.append(f"Lines: {line_count:,}")
    return "\n".join(parts)


def build_output(summary: str, tree: str, content: str) -> str:
    """Assemble the document written to an output file."""
    return f"{summary}\n{tree}\n{content}"
