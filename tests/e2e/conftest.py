"""Shared fixtures for end-to-end runs of git-tfs-merge.

The CLI runs in a subprocess against a working clone of a bare "origin"
repository. A shell stand-in for git-tfs sits first on PATH: it rebases onto
``refs/remotes/tfs/<id>`` on pull and, on rcheckin, moves that ref to HEAD
and writes a git note the way git-tfs records changeset ids.
"""

from __future__ import annotations

import os
import stat
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import pytest

from tests.utils import TFS_PATH, TFS_URL, commit_file, run

REPO_ROOT = Path(__file__).resolve().parents[2]

FAKE_GIT_TFS = """#!/bin/sh
set -e
echo "$*" >> "$GIT_TFS_LOG"
case "$1" in
  pull)
    if [ -n "$GIT_TFS_FAIL_RESYNC" ] && [ -f "$GIT_TFS_STATE/checked-in" ]; then
      echo "TF30063: You are not authorized to access the server." >&2
      exit 1
    fi
    if git rev-parse --verify --quiet "refs/remotes/tfs/$4" >/dev/null; then
      git rebase --quiet "refs/remotes/tfs/$4"
    fi
    ;;
  rcheckin)
    git update-ref "refs/remotes/tfs/$3" HEAD
    git notes --ref=tfvc-sync add -f -m "git-tfs-id: [$3];C42" HEAD
    touch "$GIT_TFS_STATE/checked-in"
    ;;
  *)
    echo "git-tfs stand-in: unsupported command $1" >&2
    exit 2
    ;;
esac
"""


@dataclass
class TfsSandbox:
    """Paths of one end-to-end sandbox."""

    work: Path
    origin: Path
    bin_dir: Path
    state_dir: Path

    @property
    def git_tfs_log(self) -> Path:
        return self.state_dir / "git-tfs.log"

    def git_tfs_calls(self) -> list[str]:
        if not self.git_tfs_log.exists():
            return []
        return self.git_tfs_log.read_text(encoding="utf-8").splitlines()

    def env(self, **extra: str) -> dict[str, str]:
        env = os.environ.copy()
        env["PATH"] = f"{self.bin_dir}{os.pathsep}{env.get('PATH', '')}"
        env["PYTHONPATH"] = str(REPO_ROOT / "src")
        env["GIT_TFS_LOG"] = str(self.git_tfs_log)
        env["GIT_TFS_STATE"] = str(self.state_dir)
        env.pop("GIT_TFS_FAIL_RESYNC", None)
        env.update(extra)
        return env


@pytest.fixture()
def sandbox(tmp_path: Path) -> TfsSandbox:
    """Clone with ``develop`` bound to TFS and ``feature/x`` pushed and checked out."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    script = bin_dir / "git-tfs"
    script.write_text(FAKE_GIT_TFS, encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    state_dir = tmp_path / "state"
    state_dir.mkdir()

    origin = tmp_path / "origin.git"
    run(["git", "init", "--bare", str(origin)], cwd=tmp_path)

    work = tmp_path / "work"
    work.mkdir()
    run(["git", "init"], cwd=work)
    run(["git", "checkout", "-b", "develop"], cwd=work)
    commit_file(work, "README.md", "# Demo\n", "Initial commit")
    run(["git", "remote", "add", "origin", str(origin)], cwd=work)
    run(["git", "push", "-u", "origin", "develop"], cwd=work)

    run(["git", "config", "tfs-remote.develop.repository", TFS_PATH], cwd=work)
    run(["git", "config", "tfs-remote.develop.url", TFS_URL], cwd=work)
    run(["git", "update-ref", "refs/remotes/tfs/develop", "develop"], cwd=work)

    run(["git", "checkout", "-b", "feature/x"], cwd=work)
    commit_file(work, "feature.txt", "feature\n", "Add feature")
    run(["git", "push", "-u", "origin", "feature/x"], cwd=work)

    return TfsSandbox(work=work, origin=origin, bin_dir=bin_dir, state_dir=state_dir)


@pytest.fixture()
def run_cli(sandbox: TfsSandbox) -> Callable[..., subprocess.CompletedProcess[str]]:
    """Return a helper that runs git-tfs-merge from source inside the sandbox."""

    def _run_cli(*args: str, **env: str) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            [sys.executable, "-m", "tfs_merge", *args],
            cwd=str(sandbox.work),
            capture_output=True,
            text=True,
            input="",
            env=sandbox.env(**env),
            timeout=120,
        )

    return _run_cli
