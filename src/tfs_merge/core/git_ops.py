"""Git command execution and repository queries.

Every external command goes through :func:`run_command`, which never raises
on a non-zero exit. Callers inspect the returned :class:`CommandResult` and
decide how a failure maps onto the workflow outcome.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

__all__ = [
    "CommandResult",
    "CommandRunner",
    "GitCommandError",
    "Upstream",
    "format_command",
    "get_config",
    "get_current_branch",
    "get_git_dir",
    "get_repo_root",
    "get_upstream",
    "has_notes_refs",
    "is_rebase_in_progress",
    "run_command",
]

logger = logging.getLogger(__name__)

REBASE_MARKERS = ("rebase-merge", "rebase-apply")


class GitCommandError(RuntimeError):
    """Raised when a git query needed to continue cannot be answered."""

    def __init__(self, cmd: Sequence[str], result: "CommandResult"):
        self.cmd = list(cmd)
        self.result = result
        detail = result.first_error_line() or f"exit code {result.returncode}"
        super().__init__(f"{format_command(cmd)} failed: {detail}")


@dataclass
class CommandResult:
    """Outcome of one external command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def first_error_line(self) -> str:
        for line in self.stderr.splitlines():
            stripped = line.strip()
            if stripped:
                return stripped
        return ""


@dataclass(frozen=True)
class Upstream:
    """Remote tracking configuration of a local branch."""

    remote: str
    branch: str

    @property
    def ref(self) -> str:
        return f"{self.remote}/{self.branch}"


CommandRunner = Callable[..., CommandResult]


def format_command(cmd: Sequence[str]) -> str:
    """Render an argument vector as a copy-pasteable shell line."""
    return " ".join(shlex.quote(part) for part in cmd)


def run_command(
    cmd: Sequence[str],
    cwd: Path | None = None,
    capture: bool = True,
) -> CommandResult:
    """Run a command to completion and normalize its result.

    With ``capture=False`` the command writes straight to the terminal, which
    is what long-running git and git-tfs operations need so the operator sees
    their progress. A missing executable is reported as exit code 127.
    """
    logger.debug("Running: %s", format_command(cmd))
    try:
        if capture:
            completed = subprocess.run(
                list(cmd),
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
            result = CommandResult(
                returncode=completed.returncode,
                stdout=(completed.stdout or "").strip(),
                stderr=(completed.stderr or "").strip(),
            )
        else:
            completed = subprocess.run(
                list(cmd),
                cwd=str(cwd) if cwd else None,
                check=False,
            )
            result = CommandResult(returncode=completed.returncode)
    except FileNotFoundError:
        result = CommandResult(
            returncode=127,
            stderr=f"{cmd[0]} executable not found on PATH",
        )
    logger.debug("Exit code %d: %s", result.returncode, format_command(cmd))
    return result


def _git_query(repo_root: Path | None, args: list[str]) -> CommandResult:
    return run_command(["git", *args], cwd=repo_root, capture=True)


def get_repo_root(path: Path | None = None) -> Path:
    """Return the top-level directory of the repository containing ``path``."""
    cmd = ["rev-parse", "--show-toplevel"]
    result = _git_query(path, cmd)
    if not result.ok or not result.stdout:
        raise GitCommandError(["git", *cmd], result)
    return Path(result.stdout)


def get_git_dir(repo_root: Path) -> Path:
    """Return the absolute git directory, which holds the rebase markers."""
    cmd = ["rev-parse", "--absolute-git-dir"]
    result = _git_query(repo_root, cmd)
    if not result.ok or not result.stdout:
        raise GitCommandError(["git", *cmd], result)
    return Path(result.stdout)


def get_current_branch(repo_root: Path) -> str | None:
    """Return the checked-out branch name, or None when HEAD is detached."""
    result = _git_query(repo_root, ["symbolic-ref", "--quiet", "--short", "HEAD"])
    if not result.ok or not result.stdout:
        return None
    return result.stdout


def get_config(repo_root: Path, key: str) -> str | None:
    """Read a single git config value; None when the key is unset."""
    result = _git_query(repo_root, ["config", "--get", key])
    if not result.ok or not result.stdout:
        return None
    return result.stdout


def get_upstream(repo_root: Path, branch: str) -> Upstream | None:
    """Return the upstream of ``branch`` from its branch.* configuration.

    Reading ``branch.<name>.remote`` and ``branch.<name>.merge`` keeps remote
    names containing slashes unambiguous, which parsing ``@{u}`` would not.
    """
    remote = get_config(repo_root, f"branch.{branch}.remote")
    merge_ref = get_config(repo_root, f"branch.{branch}.merge")
    if not remote or not merge_ref or remote == ".":
        return None
    remote_branch = merge_ref.removeprefix("refs/heads/")
    return Upstream(remote=remote, branch=remote_branch)


def has_notes_refs(repo_root: Path, runner: CommandRunner = run_command) -> bool:
    """True when the repository holds any refs/notes/* (git-tfs metadata)."""
    result = runner(
        ["git", "for-each-ref", "--count=1", "--format=%(refname)", "refs/notes/"],
        cwd=repo_root,
        capture=True,
    )
    return result.ok and bool(result.stdout)


def is_rebase_in_progress(git_dir: Path) -> bool:
    """Check for the directory git leaves behind while a rebase awaits resolution."""
    return any((git_dir / marker).is_dir() for marker in REBASE_MARKERS)
