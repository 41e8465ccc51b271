"""Acquire a remote repository as a local directory with the git CLI."""

from __future__ import annotations

import re
import subprocess  # noqa: S404
from typing import TYPE_CHECKING, Any

from tree_digest.config import CLONE_TIMEOUT, DEFAULT_BRANCHES
from tree_digest.exceptions import (
    CloneError,
    CloneTimeoutError,
    ConfigurationError,
    GitCommandError,
    InvalidRepositoryUrlError,
)
from tree_digest.logging import logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tree_digest.config import QueryConfig

_HTTPS_URL = re.compile(r"https://github\.com/([^/]+)/([^/\s]+)(/tree/([^/\s]+))?")
_SSH_URL = re.compile(r"git@github\.com:([^/]+)/([^/\s]+?)(\.git)?$")


def is_remote_source(source: str) -> bool:
    """Tell a GitHub URL apart from a local path."""
    return "github.com" in source


def parse_git_url(url: str) -> dict[str, Any]:
    """Extract owner, repository and branch from a GitHub URL.

    Both `https://github.com/<owner>/<repo>[/tree/<branch>]` and
    `git@github.com:<owner>/<repo>[.git]` are accepted.

    Args:
        url (str): the URL to parse

    Raises:
        InvalidRepositoryUrlError: if `url` is not a GitHub repository URL

    Returns:
        dict[str, Any]: `user_name`, `repo_name` and `branch` (`main` by default)
    """
    match = _HTTPS_URL.search(url)
    if match:
        user_name, repo_name, branch = match.group(1), match.group(2), match.group(4)
    else:
        match = _SSH_URL.search(url.strip())
        if not match:
            raise InvalidRepositoryUrlError(url=url)
        user_name, repo_name, branch = match.group(1), match.group(2), None
    return {
        "user_name": user_name,
        "repo_name": repo_name.removesuffix(".git"),
        "branch": branch or "main",
    }


def run_git(args: Sequence[str], timeout: float = CLONE_TIMEOUT) -> subprocess.CompletedProcess[str]:
    """Run a git command and fail loudly.

    Args:
        args (Sequence[str]): arguments following `git`
        timeout (float): wall-clock limit in seconds

    Raises:
        CloneTimeoutError: if the command does not finish in time
        GitCommandError: if the command exits with a non-zero status

    Returns:
        subprocess.CompletedProcess[str]: the finished process
    """
    command = ["git", *args]
    logger.info("Running git", command=" ".join(command))
    try:
        out = subprocess.run(  # noqa: S603
            command,
            text=True,
            capture_output=True,
            check=False,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise CloneTimeoutError(timeout=timeout) from e
    if out.returncode != 0:
        raise GitCommandError(
            command=" ".join(command),
            returncode=out.returncode,
            stdout=out.stdout,
            stderr=out.stderr,
        )
    return out


def check_repo_exists(url: str) -> bool:
    """Check that `git ls-remote` can reach the repository.

    Args:
        url (str): the repository URL

    Returns:
        bool: True if the repository answered, False on any failure
    """
    try:
        run_git(["ls-remote", url])
    except (CloneError, OSError) as e:
        logger.info("Repository is not reachable", url=url, error=str(e))
        return False
    return True


def clone_repo(query: QueryConfig, timeout: float = CLONE_TIMEOUT) -> None:
    """Clone the repository described by `query` into `query.local_path`.

    A commit triggers a full single-branch clone followed by a checkout; a
    non-default branch a shallow clone of that branch; otherwise the default
    branch is cloned shallowly.

    Args:
        query (QueryConfig): must carry `user_name` and `repo_name`
        timeout (float): wall-clock limit for each git call, in seconds

    Raises:
        ConfigurationError: if the repository identity is missing
        CloneError: if the repository is unreachable or a git call fails
    """
    url = query.repo_url
    if url is None:
        raise ConfigurationError(message="Repository information missing")
    if not check_repo_exists(url):
        raise CloneError(message="Repository not found, make sure it is public")

    dest = str(query.local_path)
    try:
        if query.commit:
            run_git(["clone", "--single-branch", url, dest], timeout=timeout)
            run_git(["-C", dest, "checkout", query.commit], timeout=timeout)
        elif query.branch and query.branch not in DEFAULT_BRANCHES:
            run_git(["clone", "--depth=1", "--single-branch", "--branch", query.branch, url, dest], timeout=timeout)
        else:
            run_git(["clone", "--depth=1", "--single-branch", url, dest], timeout=timeout)
    except OSError as e:
        raise CloneError(message=f"Failed to clone repository: {e}") from e
    logger.info("Cloned repository", url=url, dest=dest)
