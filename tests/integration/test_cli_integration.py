from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from tree_digest import cli
from tree_digest.exceptions import CloneError

if TYPE_CHECKING:
    from pytest_mock import MockerFixture

    from tree_digest.config import QueryConfig


@pytest.mark.integration
def test_main_ingests_a_cloned_repository_and_removes_the_clone(
    tmp_path: Path,
    mocker: MockerFixture,
) -> None:
    clone_dirs: list[Path] = []

    def fake_clone(query: QueryConfig) -> None:
        clone_dirs.append(query.local_path)
        (query.local_path / "src").mkdir()
        (query.local_path / "src" / "app.py").write_text("print('hi')\n", encoding="utf-8")
        (query.local_path / ".git").mkdir()
        (query.local_path / ".git" / "HEAD").write_text("ref: refs/heads/dev\n", encoding="utf-8")

    mocker.patch.object(cli, "clone_repo", side_effect=fake_clone)
    output = tmp_path / "digest.txt"

    exit_code = cli.main(["https://github.com/owner/repo/tree/dev", "--output", str(output)])

    assert exit_code == 0
    text = output.read_text(encoding="utf-8")
    assert text.startswith("Repository: owner/repo\nFiles analyzed: 1\nBranch: dev\nEstimated tokens: ")
    assert "└── app.py" in text
    assert "File: src/app.py" in text
    assert ".git" not in text
    assert clone_dirs
    assert clone_dirs[0].name.startswith(cli.TEMP_DIR_PREFIX)
    assert not clone_dirs[0].exists()


@pytest.mark.integration
def test_main_cleans_up_when_the_clone_fails(mocker: MockerFixture, capsys: pytest.CaptureFixture[str]) -> None:
    clone_dirs: list[Path] = []

    def failing_clone(query: QueryConfig) -> None:
        clone_dirs.append(query.local_path)
        raise CloneError(message="Repository not found, make sure it is public")

    mocker.patch.object(cli, "clone_repo", side_effect=failing_clone)

    exit_code = cli.main(["https://github.com/owner/missing"])

    assert exit_code == 1
    assert "Repository not found" in capsys.readouterr().err
    assert not clone_dirs[0].exists()


@pytest.mark.integration
def test_main_passes_commit_to_the_clone(mocker: MockerFixture, capsys: pytest.CaptureFixture[str]) -> None:
    seen: list[QueryConfig] = []

    def fake_clone(query: QueryConfig) -> None:
        seen.append(query)
        (query.local_path / "README.txt").write_text("readme\n", encoding="utf-8")

    mocker.patch.object(cli, "clone_repo", side_effect=fake_clone)

    exit_code = cli.main(["git@github.com:owner/repo.git", "--commit", "abc123"])

    assert exit_code == 0
    assert seen[0].commit == "abc123"
    assert seen[0].slug == "owner/repo"
    out = capsys.readouterr().out
    assert "Commit: abc123" in out
