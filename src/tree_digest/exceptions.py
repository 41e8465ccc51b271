from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class TreeDigestError(Exception):
    """Base exception for errors in the tree_digest package."""

    message: str = "tree_digest failed."

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ConfigurationError(TreeDigestError):
    """Raised when required query or settings fields are missing or invalid."""

    message: str = "Invalid configuration."


@dataclass(frozen=True)
class SourceNotFoundError(TreeDigestError):
    """Raised when the path to ingest does not exist."""

    slug: str = ""
    message: str = ""

    def __str__(self) -> str:
        return self.message or f"{self.slug} cannot be found"


@dataclass(frozen=True)
class UnsupportedContentError(TreeDigestError):
    """Raised when single-file mode targets something that is not a regular text file."""

    path: Path = Path()
    reason: str = ""
    message: str = ""

    def __str__(self) -> str:
        return self.message or f"{self.path}: {self.reason}"


@dataclass(frozen=True)
class IngestError(TreeDigestError):
    """Raised when ingestion cannot produce any result."""


@dataclass(frozen=True)
class InvalidRepositoryUrlError(TreeDigestError):
    """Raised when a repository URL cannot be parsed."""

    url: str = ""
    message: str = "Invalid GitHub URL format"

    def __str__(self) -> str:
        return f"{self.message}: {self.url}"


@dataclass(frozen=True)
class CloneError(TreeDigestError):
    """Raised when a repository cannot be cloned."""

    message: str = "Failed to clone repository"


@dataclass(frozen=True)
class CloneTimeoutError(CloneError):
    """Raised when a git command exceeds the clone timeout."""

    timeout: float = 0.0
    message: str = ""

    def __str__(self) -> str:
        return self.message or f"Clone operation timed out after {self.timeout:g} seconds"


@dataclass(frozen=True)
class GitCommandError(CloneError):
    """Raised when a git command fails."""

    command: str = ""
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    message: str = ""

    def __str__(self) -> str:
        detail = self.stderr.strip() or self.stdout.strip()
        base = self.message or f"`{self.command}` exited with status {self.returncode}"
        return f"{base}: {detail}" if detail else base
