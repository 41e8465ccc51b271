"""tree_digest: flatten a repository or directory into an LLM-friendly digest.

The digest has three parts:

1) a **summary**: repository identity, number of files, optional sub-path,
   commit or branch, and an estimated token count;
2) a **tree diagram** of every retained file and directory;
3) the **contents** of every retained text file, each behind a delimited header.

Sources are either a GitHub URL, cloned into a temporary directory that is
removed afterwards, or a local path.

Usage
-----
    - Local directory to stdout:
        tree-digest path/to/project

    - Remote repository, only Python files, written to a file:
        tree-digest https://github.com/owner/repo -t include -p "*.py" -o digest.txt

    - Skip some extra patterns and cap file contents at 256 KB:
        tree-digest . -p "docs*,*.csv" -s 256
"""

from __future__ import annotations

import argparse
import shutil
import sys
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tree_digest import __version__
from tree_digest.clone import clone_repo, is_remote_source, parse_git_url
from tree_digest.config import DEFAULT_IGNORE_PATTERNS, QueryConfig
from tree_digest.exceptions import SourceNotFoundError, TreeDigestError
from tree_digest.ingest import ingest_from_query
from tree_digest.logging import logger, setup_logging
from tree_digest.output_construction import build_output
from tree_digest.patterns import split_patterns
from tree_digest.settings import Settings, build_settings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tree_digest.ingest import IngestResult

TEMP_DIR_PREFIX = "tree-digest-"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tree-digest",
        description="Analyze and ingest a code repository into a single LLM-friendly text.",
    )
    p.add_argument("source", nargs="?", default=None, help="GitHub URL or local path.")
    p.add_argument("-s", "--max-size", type=int, default=None, help="Maximum file size in KB (default: 1024).")
    p.add_argument("-p", "--pattern", type=str, default=None, help="Comma list of include/exclude patterns.")
    p.add_argument(
        "-t",
        "--pattern-type",
        choices=["include", "exclude"],
        default=None,
        help="Pattern type (default: exclude).",
    )
    p.add_argument("-o", "--output", type=Path, default=None, help="Output file path.")
    p.add_argument("--branch", type=str, default=None, help="Branch to ingest (remote sources).")
    p.add_argument("--commit", type=str, default=None, help="Commit to ingest (remote sources).")
    p.add_argument("--subpath", type=str, default=None, help="Only ingest this sub-path of the source.")
    p.add_argument("--config", type=Path, default=None, help="YAML settings file.")
    p.add_argument("--log-file", type=str, default=None, help="Log file path.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse command-line arguments into validated settings.

    Args:
        argv (Sequence[str] | None): arguments, without the program name

    Raises:
        ConfigurationError: if the merged settings are invalid (e.g. no source)

    Returns:
        Settings: the validated settings
    """
    args = build_parser().parse_args(argv)
    return build_settings(vars(args))


def build_query(settings: Settings, local_path: Path, slug: str, **repo_info: Any) -> QueryConfig:  # noqa: ANN401
    """Translate CLI settings into the query driving the ingestion.

    Args:
        settings (Settings): validated settings
        local_path (Path): where the source tree lives on disk
        slug (str): display label of the source
        **repo_info (Any): `user_name`, `repo_name`, `branch`, `commit` for remote sources

    Returns:
        QueryConfig: the query
    """
    patterns = split_patterns(settings.pattern)
    if settings.pattern_type == "include":
        ignore_patterns = DEFAULT_IGNORE_PATTERNS
        include_patterns: tuple[str, ...] | None = tuple(patterns)
    else:
        ignore_patterns = (*DEFAULT_IGNORE_PATTERNS, *patterns)
        include_patterns = None
    return QueryConfig(
        local_path=local_path,
        ignore_patterns=ignore_patterns,
        include_patterns=include_patterns,
        max_file_size=settings.max_file_size,
        slug=slug,
        subpath=settings.subpath,
        **repo_info,
    )


def ingest_remote(settings: Settings) -> IngestResult:
    """Clone a GitHub repository into a temporary directory and ingest it.

    The temporary directory is removed whatever the outcome.
    """
    repo_info = parse_git_url(settings.source)
    if settings.branch:
        repo_info["branch"] = settings.branch
    if settings.commit:
        repo_info["commit"] = settings.commit
    tmp_dir = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX))
    try:
        query = build_query(
            settings,
            tmp_dir,
            slug=f"{repo_info['user_name']}/{repo_info['repo_name']}",
            **repo_info,
        )
        clone_repo(query)
        return ingest_from_query(query)
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)
        logger.info("Removed temporary clone", path=str(tmp_dir))


def ingest_local(settings: Settings) -> IngestResult:
    """Ingest a local directory or file."""
    resolved = Path(settings.source).expanduser().resolve()
    if not resolved.exists():
        raise SourceNotFoundError(slug=str(resolved), message=f"Path does not exist: {resolved}")
    if resolved.is_file():
        # a file given directly is scanned as a sub-path of its directory
        settings = settings.model_copy(update={"subpath": resolved.name})
        resolved = resolved.parent
    query = build_query(settings, resolved, slug=resolved.name or "root")
    if query.scan_root.is_file():
        query = query.model_copy(update={"is_blob": True})
    return ingest_from_query(query)


def write_output(settings: Settings, summary: str, tree: str, content: str) -> None:
    if settings.output:
        settings.output.write_text(build_output(summary, tree, content), encoding="utf-8")
        print(f"Output written to {settings.output}")  # noqa: T201
        return
    print(summary)  # noqa: T201
    print(f"\n{tree}")  # noqa: T201
    print(f"\n{content}")  # noqa: T201


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = parse_args(argv)
    except TreeDigestError as e:
        print(f"Error: {e}", file=sys.stderr)  # noqa: T201
        return 1
    if settings.log_file:
        setup_logging(settings.log_file, force=True)

    try:
        if is_remote_source(settings.source):
            summary, tree, content = ingest_remote(settings)
        else:
            summary, tree, content = ingest_local(settings)
        write_output(settings, summary, tree, content)
    except (TreeDigestError, OSError) as e:
        logger.error("Ingestion failed", source=settings.source, error=str(e))  # noqa: TRY400
        print(f"Error: {e}", file=sys.stderr)  # noqa: T201
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
