"""Shared helpers for building throwaway git repositories in tests."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable

from tfs_merge.core.git_ops import CommandResult, format_command

TFS_PATH = "$/Project/Develop"
TFS_URL = "https://tfs.example.com/tfs/DefaultCollection"


def run(cmd: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    """Run a command in ``cwd`` and fail loudly."""
    return subprocess.run(cmd, cwd=cwd, check=True, capture_output=True, text=True)


def commit_file(repo: Path, name: str, content: str, message: str) -> None:
    (repo / name).write_text(content, encoding="utf-8")
    run(["git", "add", name], cwd=repo)
    run(["git", "commit", "-m", message], cwd=repo)


def track(repo: Path, branch: str, remote: str = "origin", remote_branch: str | None = None) -> None:
    """Configure an upstream without needing a reachable remote."""
    run(["git", "config", f"branch.{branch}.remote", remote], cwd=repo)
    run(["git", "config", f"branch.{branch}.merge", f"refs/heads/{remote_branch or branch}"], cwd=repo)


class FakeRunner:
    """Scripted stand-in for run_command that records every call.

    ``fail_on`` maps a formatted command line to the 1-based occurrence that
    should fail; ``on_run`` is called with each line before it "runs".
    """

    def __init__(
        self,
        fail_on: dict[str, int] | None = None,
        notes: bool = False,
        on_run: Callable[[str], None] | None = None,
    ):
        self.fail_on = fail_on or {}
        self.notes = notes
        self.on_run = on_run
        self.calls: list[str] = []

    def __call__(self, cmd, cwd=None, capture=True) -> CommandResult:
        line = format_command(cmd)
        self.calls.append(line)
        if self.on_run:
            self.on_run(line)
        if cmd[:2] == ["git", "for-each-ref"]:
            return CommandResult(0, "refs/notes/tfvc-sync" if self.notes else "")
        if self.fail_on.get(line) == self.calls.count(line):
            return CommandResult(1, "", f"fatal: {line} failed")
        return CommandResult(0)

    @property
    def workflow_calls(self) -> list[str]:
        return [line for line in self.calls if "for-each-ref" not in line]
