from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests.utils import TFS_PATH, TFS_URL, commit_file, run, track


@pytest.fixture(autouse=True)
def _git_identity(monkeypatch):
    """Ensure git commands can commit even if the user has no global config."""
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Tfs Merge")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "tfs-merge@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Tfs Merge")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "tfs-merge@example.com")


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch) -> Iterator[Path]:
    """Keep the user's own git-tfs-merge configuration out of tests."""
    home = tmp_path / "tfs-merge-home"
    home.mkdir()
    monkeypatch.setenv("TFS_MERGE_HOME", str(home))
    monkeypatch.delenv("TFS_MERGE_LOG_LEVEL", raising=False)
    yield home


@pytest.fixture()
def temp_repo(tmp_path: Path) -> Path:
    repo_dir = tmp_path / "repo"
    repo_dir.mkdir()
    run(["git", "init"], cwd=repo_dir)
    run(["git", "checkout", "-b", "develop"], cwd=repo_dir)
    commit_file(repo_dir, "README.md", "# Demo\n", "Initial commit")
    return repo_dir


@pytest.fixture()
def tfs_repo(temp_repo: Path) -> Path:
    """Repository with ``develop`` bound to TFS and ``feature/x`` checked out.

    Upstreams are configured in branch.* keys only; nothing here talks to a
    remote.
    """
    track(temp_repo, "develop")
    run(["git", "config", "tfs-remote.develop.repository", TFS_PATH], cwd=temp_repo)
    run(["git", "config", "tfs-remote.develop.url", TFS_URL], cwd=temp_repo)
    run(["git", "checkout", "-b", "feature/x"], cwd=temp_repo)
    commit_file(temp_repo, "feature.txt", "feature\n", "Add feature")
    track(temp_repo, "feature/x")
    return temp_repo


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo CLI logging setup so caplog sees package records again."""
    yield
    package_logger = logging.getLogger("tfs_merge")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
