"""Turn a materialized source tree into (summary, tree, content) strings."""

from __future__ import annotations

import stat
from typing import TYPE_CHECKING

from tree_digest.config import TOO_LARGE_MARKER, ContentKind, FileRecord
from tree_digest.exceptions import IngestError, SourceNotFoundError, UnsupportedContentError
from tree_digest.logging import logger
from tree_digest.output_construction import (
    TREE_HEADER,
    render_content,
    render_single_file_summary,
    render_summary,
    render_tree,
)
from tree_digest.patterns import relative_to_base
from tree_digest.scanner import scan_directory
from tree_digest.text_detection import is_text_file, read_file_content
from tree_digest.tokens import generate_token_string

if TYPE_CHECKING:
    from pathlib import Path

    from tree_digest.config import FileNode, QueryConfig

IngestResult = tuple[str, str, str]


def extract_files(query: QueryConfig, node: FileNode, max_file_size: int | None = None) -> list[FileRecord]:
    """Flatten a scanned tree into file records, depth first, children in order.

    Binary files are skipped. Files larger than `max_file_size` keep a record
    with their real size but no content.

    Args:
        query (QueryConfig): the query, whose `local_path` records are relative to
        node (FileNode): the tree to flatten
        max_file_size (int | None): content ceiling in bytes; defaults to
            `query.max_file_size`

    Returns:
        list[FileRecord]: one record per retained text file
    """
    limit = query.max_file_size if max_file_size is None else max_file_size
    records: list[FileRecord] = []

    def walk(current: FileNode) -> None:
        if current.is_directory:
            for child in current.children:
                walk(child)
            return
        if current.content_kind is ContentKind.BINARY:
            return
        too_large = current.size > limit
        records.append(
            FileRecord(
                path=relative_to_base(current.path, query.local_path),
                content=None if too_large else current.content,
                size=current.size,
                content_kind=ContentKind.TOO_LARGE if too_large else ContentKind.TEXT,
            ),
        )

    walk(node)
    return records


def ingest_single_file(path: Path, query: QueryConfig) -> IngestResult:
    """Ingest one file.

    Args:
        path (Path): the file to ingest
        query (QueryConfig): the ingestion parameters

    Raises:
        UnsupportedContentError: if `path` is not a regular file or not text

    Returns:
        IngestResult: (summary, tree, content)
    """
    st = path.stat()
    if not stat.S_ISREG(st.st_mode):
        raise UnsupportedContentError(path=path, reason="not a file", message=f"Path {path} is not a file")
    if not is_text_file(path):
        raise UnsupportedContentError(path=path, reason="not a text file", message=f"File {path} is not a text file")

    size = st.st_size
    content = TOO_LARGE_MARKER if size > query.max_file_size else read_file_content(path)
    record = FileRecord(
        path=relative_to_base(path, query.local_path),
        content=content,
        size=size,
        content_kind=ContentKind.TOO_LARGE if size > query.max_file_size else ContentKind.TEXT,
    )

    summary = render_single_file_summary(query, path, size, content)
    files_content = render_content([record])
    tree = f"{TREE_HEADER}└── {path.name}"

    tokens = generate_token_string(files_content)
    if tokens:
        summary = f"{summary}\nEstimated tokens: {tokens}"
    return summary, tree, files_content


def ingest_directory(path: Path, query: QueryConfig) -> IngestResult:
    """Scan a directory and render it.

    Args:
        path (Path): the directory to ingest
        query (QueryConfig): the ingestion parameters

    Raises:
        IngestError: if the scan is pruned at its root

    Returns:
        IngestResult: (summary, tree, content)
    """
    root = scan_directory(path, query)
    if root is None:
        raise IngestError(message="Failed to scan directory")

    records = extract_files(query, root)
    summary = render_summary(query, root)
    tree = TREE_HEADER + render_tree(query, root)
    files_content = render_content(records)

    tokens = generate_token_string(tree + files_content)
    if tokens:
        summary = f"{summary}Estimated tokens: {tokens}"
    logger.info("Ingested directory", path=str(path), files=root.file_count, size=root.size)
    return summary, tree, files_content


def ingest_from_query(query: QueryConfig) -> IngestResult:
    """Ingest the tree or file described by `query`.

    Args:
        query (QueryConfig): the ingestion parameters

    Raises:
        SourceNotFoundError: if the target path does not exist
        UnsupportedContentError: in single-file mode, if the target is not a
            regular text file

    Returns:
        IngestResult: (summary, tree, content)
    """
    path = query.scan_root
    if not path.exists():
        raise SourceNotFoundError(slug=query.slug or str(path))
    if query.is_blob:
        return ingest_single_file(path, query)
    return ingest_directory(path, query)
