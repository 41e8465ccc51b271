from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum, auto
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

MAX_FILE_SIZE = 10_000_000
CLONE_TIMEOUT = 20  # seconds
DEFAULT_MAX_SIZE_KB = 1024

MAX_DIRECTORY_DEPTH = 20
MAX_FILES = 10_000
MAX_TOTAL_SIZE_BYTES = 500 * 1024 * 1024

TEXT_SNIFF_BYTES = 1024
CONTENT_DELIMITER = "=" * 48
TOO_LARGE_MARKER = "[Content ignored: file too large]"
DEFAULT_BRANCHES = frozenset({"main", "master"})

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    # Python
    "*.pyc",
    "*.pyo",
    "*.pyd",
    "__pycache__",
    # JavaScript
    "node_modules",
    "bower_components",
    # Version control
    ".git",
    ".svn",
    ".hg",
    ".gitignore",
    # Images
    "*.svg",
    "*.png",
    "*.jpg",
    "*.jpeg",
    "*.gif",
    # Virtual environments
    "venv",
    ".venv",
    "env",
    # IDEs
    ".idea",
    ".vscode",
    # Temporary files
    "*.log",
    "*.bak",
    "*.swp",
    "*.tmp",
    ".DS_Store",
    "Thumbs.db",
    # Build output
    "build",
    "dist",
    "*.egg-info",
    "*.so",
    "*.dylib",
    "*.dll",
    # Lock files
    "package-lock.json",
    "yarn.lock",
    # Project boilerplate
    "LICENSE",
    "LICENSE.*",
    "COPYING",
    "AUTHORS",
    "AUTHORS.*",
    "CONTRIBUTORS",
    "CONTRIBUTORS.*",
    "CHANGELOG",
    "CHANGELOG.*",
    "CONTRIBUTING",
    "CONTRIBUTING.*",
)


class NodeType(StrEnum):
    """Kind of a scanned filesystem node."""

    FILE = auto()
    DIRECTORY = auto()


class ContentKind(StrEnum):
    """State of a file's payload.

    `TEXT` and `BINARY` are decided while scanning; `TOO_LARGE` is only ever
    assigned when records are extracted from the tree.
    """

    TEXT = auto()
    BINARY = auto()
    TOO_LARGE = auto()


class ScanLimits(BaseModel):
    """Global budgets enforced across a whole scan."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_depth: int = Field(default=MAX_DIRECTORY_DEPTH, ge=0, description="Deepest directory level scanned")
    max_files: int = Field(default=MAX_FILES, ge=0, description="Maximum number of files retained")
    max_total_size: int = Field(default=MAX_TOTAL_SIZE_BYTES, ge=0, description="Maximum cumulative bytes retained")


class QueryConfig(BaseModel):
    """Immutable parameters threaded through scanning, extraction and formatting.

    Attributes:
        local_path: Root of the materialized tree; relative paths and symlink
            checks are computed against it.
        ignore_patterns: Glob patterns whose matches are skipped entirely.
        include_patterns: When set, only files matching one of these are kept.
        max_file_size: Files larger than this keep their tree entry but lose
            their content.
        slug: Display label, also used for an unnamed root node.
        subpath: Optional path below `local_path` to scope the scan to.
        is_blob: Single-file mode.
        user_name: Repository owner, when the source is remote.
        repo_name: Repository name, when the source is remote.
        branch: Requested branch.
        commit: Requested commit; takes precedence over `branch`.
        limits: Depth, file-count and total-size budgets.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    local_path: Path
    ignore_patterns: tuple[str, ...] = DEFAULT_IGNORE_PATTERNS
    include_patterns: tuple[str, ...] | None = None
    max_file_size: int = Field(default=MAX_FILE_SIZE, ge=0)
    slug: str = ""
    subpath: str | None = None
    is_blob: bool = False
    user_name: str | None = None
    repo_name: str | None = None
    branch: str | None = None
    commit: str | None = None
    limits: ScanLimits = Field(default_factory=ScanLimits)

    @field_validator("include_patterns")
    @classmethod
    def _strip_include_patterns(cls, value: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if value is None:
            return None
        return tuple(p.strip() for p in value)

    @computed_field
    @property
    def scan_root(self) -> Path:
        """Path the ingestion starts from: `local_path` joined with `subpath`."""
        if not self.subpath:
            return self.local_path
        return self.local_path / self.subpath.lstrip("/")

    @computed_field
    @property
    def repo_url(self) -> str | None:
        """GitHub URL of the repository, when owner and name are known."""
        if not self.user_name or not self.repo_name:
            return None
        return f"https://github.com/{self.user_name}/{self.repo_name}"


class FileNode(BaseModel):
    """One file or directory retained by a scan.

    For directories, `size`, `file_count` and `dir_count` only account for
    retained children. File nodes have no children and a `file_count` of 0.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: NodeType
    path: Path
    size: int = Field(default=0, ge=0)
    file_count: int = Field(default=0, ge=0)
    dir_count: int = Field(default=0, ge=0)
    children: tuple[FileNode, ...] = ()
    ignore_content: bool = False
    content: str | None = None
    content_kind: ContentKind | None = None

    @property
    def is_directory(self) -> bool:
        return self.type is NodeType.DIRECTORY


@dataclass
class ScanStats:
    """Running totals shared by every call of one top-level scan."""

    total_files: int = 0
    total_size: int = 0
    seen_paths: set[Path] = field(default_factory=set)


class FileRecord(BaseModel):
    """A retained file flattened out of the tree.

    Attributes:
        path: Path relative to the query's base, POSIX separators.
        content: Text payload, or None when elided.
        size: File size in bytes.
        content_kind: Why `content` is present or not.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    content: str | None
    size: int = Field(..., ge=0)
    content_kind: ContentKind = ContentKind.TEXT
